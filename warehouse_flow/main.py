"""Command-line entry point for seeding a store and running transitions."""

from __future__ import annotations

import argparse
import asyncio
from typing import List, Optional

from warehouse_flow.enterprise.config.settings import AppSettings, get_settings
from warehouse_flow.observability import configure_logging
from warehouse_flow.persistence import EntityStore, InMemoryEntityStore, SqlEntityStore
from warehouse_flow.persistence.database import create_schema, dispose_engine, get_sessionmaker, init_engine
from warehouse_flow.services import TransitionCoordinator, load_seed_file, seed_store
from warehouse_flow.server.grpc import start_grpc_server


async def _open_store(settings: AppSettings) -> EntityStore:
    if settings.database.enabled:
        await create_schema(init_engine(settings))
        return SqlEntityStore(get_sessionmaker())
    store = InMemoryEntityStore()
    if settings.seed.path:
        await seed_store(store, load_seed_file(settings.seed.path))
    return store


async def _run(args: argparse.Namespace, settings: AppSettings) -> None:
    store = await _open_store(settings)
    coordinator = TransitionCoordinator(store, settings=settings)
    try:
        if args.command == "seed":
            report = await seed_store(store, load_seed_file(args.path))
            print(f"created={report.created} skipped={report.skipped}")
        elif args.command == "induct":
            result = await coordinator.induct(args.package_id, args.warehouse_id)
            print(result.model_dump_json(indent=2))
        elif args.command == "stow":
            result = await coordinator.stow(args.pallet_id, args.package_ids)
            print(result.model_dump_json(indent=2))
        elif args.command == "grpc":
            server = await start_grpc_server(coordinator, port=args.port)
            print(f"gRPC server listening on port {args.port}")
            await server.wait_for_termination()
    finally:
        await dispose_engine()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Warehouse package/pallet transition engine.")
    sub = parser.add_subparsers(dest="command", required=True)

    seed = sub.add_parser("seed", help="Load warehouses, locations and packages from YAML.")
    seed.add_argument("path", help="Seed YAML file.")

    induct = sub.add_parser("induct", help="Induct one package into a warehouse.")
    induct.add_argument("package_id")
    induct.add_argument("warehouse_id")

    stow = sub.add_parser("stow", help="Stow packages onto a pallet.")
    stow.add_argument("pallet_id")
    stow.add_argument("package_ids", nargs="+")

    grpc_cmd = sub.add_parser("grpc", help="Serve the gRPC transition API.")
    grpc_cmd.add_argument("--port", type=int, default=50051)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.logging)
    asyncio.run(_run(args, settings))


if __name__ == "__main__":
    main()
