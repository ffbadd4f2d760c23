"""Async gRPC server that mirrors the REST transition operations.

Requests and responses are ``google.protobuf.Struct`` messages carrying the
same bodies as the REST API.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

import grpc
import structlog
from google.protobuf import json_format, struct_pb2
from pydantic import BaseModel, ValidationError

from warehouse_flow.exceptions import EntityStoreError
from warehouse_flow.server.api.schemas.transitions import (
    BatchInductResultSchema,
    InductBatchRequestSchema,
    InductRequestSchema,
    InductResultSchema,
    StowRequestSchema,
    StowResultSchema,
)
from warehouse_flow.services import BatchRunner, TransitionCoordinator

logger = structlog.get_logger(__name__)


def _to_struct(schema: BaseModel) -> struct_pb2.Struct:
    struct = struct_pb2.Struct()
    struct.update(schema.model_dump(mode="json"))
    return struct


class TransitionGrpcService:
    def __init__(self, coordinator: TransitionCoordinator) -> None:
        self.coordinator = coordinator
        self.runner = BatchRunner(coordinator)

    async def _call(
        self,
        context: grpc.aio.ServicerContext,
        handler: Callable[[], Awaitable[BaseModel]],
    ) -> struct_pb2.Struct:
        try:
            return _to_struct(await handler())
        except ValidationError as exc:
            context.set_code(grpc.StatusCode.INVALID_ARGUMENT)
            context.set_details(str(exc))
        except EntityStoreError as exc:
            logger.error("store_unavailable", operation=exc.operation, error=exc.detail)
            context.set_code(grpc.StatusCode.UNAVAILABLE)
            context.set_details("Entity store unavailable")
        return struct_pb2.Struct()

    async def Induct(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        async def handler() -> InductResultSchema:
            body = InductRequestSchema.model_validate(json_format.MessageToDict(request))
            result = await self.coordinator.induct(body.package_id, body.warehouse_id, body.received_at)
            return InductResultSchema.from_domain(result)

        return await self._call(context, handler)

    async def InductBatch(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        async def handler() -> BatchInductResultSchema:
            body = InductBatchRequestSchema.model_validate(json_format.MessageToDict(request))
            batch = await self.runner.induct_batch(body.items)
            return BatchInductResultSchema.from_domain(batch)

        return await self._call(context, handler)

    async def Stow(self, request: struct_pb2.Struct, context: grpc.aio.ServicerContext) -> struct_pb2.Struct:  # noqa: N802
        async def handler() -> StowResultSchema:
            payload: Dict[str, Any] = json_format.MessageToDict(request)
            body = StowRequestSchema.model_validate(payload)
            pallet_id = payload.get("pallet_id", payload.get("palletId", ""))
            result = await self.coordinator.stow(pallet_id, body.package_ids, body.stowed_at)
            return StowResultSchema.from_domain(result)

        return await self._call(context, handler)


class _TransitionHandler(grpc.GenericRpcHandler):
    def __init__(self, servicer: TransitionGrpcService) -> None:
        self.servicer = servicer
        self._method_handlers = {
            name: grpc.unary_unary_rpc_method_handler(
                getattr(servicer, name),
                request_deserializer=struct_pb2.Struct.FromString,
                response_serializer=struct_pb2.Struct.SerializeToString,
            )
            for name in ("Induct", "InductBatch", "Stow")
        }

    def service(self, handler_call_details: grpc.HandlerCallDetails):
        method = handler_call_details.method.rsplit("/", maxsplit=1)[-1]
        return self._method_handlers.get(method)


def create_grpc_server(coordinator: TransitionCoordinator, port: int = 50051) -> grpc.aio.Server:
    server = grpc.aio.server()
    handler = _TransitionHandler(TransitionGrpcService(coordinator))
    server.add_generic_rpc_handlers((handler,))
    server.add_insecure_port(f"[::]:{port}")
    return server


async def start_grpc_server(coordinator: TransitionCoordinator, port: int = 50051) -> grpc.aio.Server:
    server = create_grpc_server(coordinator, port)
    await server.start()
    return server
