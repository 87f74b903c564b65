"""Health check utilities for Mongster.

Provides health and readiness checks for the mail store and SMTP acceptor.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..domain.mail.ports import MailStorePort, StoreUnavailable
from ..infrastructure.ingest.acceptor import SmtpAcceptor
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_store_health(store: MailStorePort) -> ComponentHealth:
    """Check mail store connectivity.

    Args:
        store: Mail store

    Returns:
        ComponentHealth: Store health status
    """
    try:
        start = time.time()
        store.ping()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Mail store OK",
            latency_ms=round(latency_ms, 2)
        )
    except StoreUnavailable as e:
        logger.error(f"Mail store health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Mail store error: {str(e)}"
        )


def check_acceptor_health(acceptor: SmtpAcceptor) -> ComponentHealth:
    """Report whether the SMTP acceptor is listening.

    A stopped acceptor only degrades the service: captured mail can still
    be listed and cleared.
    """
    if acceptor.is_running:
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message=f"Listening on {acceptor.hostname}:{acceptor.port}"
        )
    return ComponentHealth(
        status=HealthStatus.DEGRADED,
        message="SMTP acceptor not running"
    )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component health.

    Args:
        components: Dictionary of component name to health status

    Returns:
        HealthStatus: Overall health (worst component status)
    """
    statuses = [comp.status for comp in components.values()]

    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
