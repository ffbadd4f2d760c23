"""Liveness and readiness probes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from warehouse_flow.server.api.schemas.transitions import HealthCheckSchema, ReadinessSchema
from warehouse_flow.server.dependencies import get_health_indicator
from warehouse_flow.services import StoreHealthIndicator

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready", response_model=ReadinessSchema)
async def ready(indicator: StoreHealthIndicator = Depends(get_health_indicator)):
    check = await indicator.check("database")
    body = ReadinessSchema(
        status="ready" if check.up else "unavailable",
        checks={check.key: HealthCheckSchema(status=check.status, message=check.message)},
    )
    if not check.up:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
