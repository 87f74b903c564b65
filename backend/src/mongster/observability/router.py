"""Observability API endpoints.

Provides metrics, health checks, and readiness checks for monitoring.
"""

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..dependencies import Context
from .health import (
    HealthStatus,
    check_acceptor_health,
    check_store_health,
    get_overall_health,
)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics in text exposition format."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of the mail store and the SMTP acceptor",
)
def health_check(context: Context):
    """Check health of all components.

    Returns 200 unless a component is unhealthy, 503 otherwise.
    """
    components = {
        "store": check_store_health(context.store),
        "smtp": check_acceptor_health(context.acceptor),
    }

    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "components": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        }
    }

    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503

    return JSONResponse(
        content=response_data,
        status_code=status_code
    )


@router.get("/ready", summary="Readiness check endpoint")
def readiness_check(context: Context):
    """Ready once the mail store answers."""
    store_health = check_store_health(context.store)

    if store_health.status == HealthStatus.HEALTHY:
        return {
            "status": "ready",
            "message": "Application is ready to serve traffic"
        }
    return JSONResponse(
        content={
            "status": "not_ready",
            "message": store_health.message
        },
        status_code=503
    )
