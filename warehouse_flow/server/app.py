"""FastAPI application exposing the transition engine."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from warehouse_flow.enterprise.config.settings import get_settings
from warehouse_flow.exceptions import EntityStoreError
from warehouse_flow.observability import configure_logging, configure_tracer
from warehouse_flow.observability.metrics import REQUEST_COUNTER, set_metrics_enabled
from warehouse_flow.persistence.database import create_schema, dispose_engine, init_engine
from warehouse_flow.server.api.routers import (
	health_router,
	observability_router,
	packages_router,
	pallets_router,
)
from warehouse_flow.server.dependencies import get_store
from warehouse_flow.services import load_seed_file, seed_store

settings = get_settings()
configure_logging(settings.logging)
configure_tracer("warehouse-flow-api", settings.telemetry.otlp_endpoint)
set_metrics_enabled(settings.telemetry.metrics_enabled)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
	if settings.database.enabled:
		await create_schema(init_engine(settings))
	if settings.seed.path:
		await seed_store(get_store(), load_seed_file(settings.seed.path))
	yield
	await dispose_engine()


app = FastAPI(title="Warehouse Flow API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

FastAPIInstrumentor.instrument_app(app)


@app.middleware("http")
async def count_requests(request: Request, call_next):
	REQUEST_COUNTER.inc()
	response = await call_next(request)
	return response


@app.exception_handler(EntityStoreError)
async def store_unavailable(request: Request, exc: EntityStoreError) -> JSONResponse:
	logger.error("store_unavailable", path=request.url.path, operation=exc.operation, error=exc.detail)
	return JSONResponse(
		status_code=503,
		content={"detail": "Entity store unavailable", "operation": exc.operation},
	)


app.include_router(health_router, prefix="/api/v1")
app.include_router(packages_router, prefix="/api/v1")
app.include_router(pallets_router, prefix="/api/v1")
app.include_router(observability_router, prefix="/api/v1")


@app.get("/")
async def root() -> dict[str, str]:
	return {"message": "Warehouse Flow API"}
