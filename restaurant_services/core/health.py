"""
Health reporting and the per-request database gate.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from restaurant_services.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)

Probe = Callable[[], Awaitable[bool]]

DATABASE_UNREACHABLE = "Banco de dados não está acessível. Tente novamente mais tarde."


def utc_timestamp() -> str:
    """Current time as an ISO-8601 string with millisecond precision."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def health_payload(service: str, dependency: str, connected: bool) -> dict[str, str]:
    """Body returned by every GET /health endpoint."""
    return {
        "status": "OK",
        "service": service,
        dependency: "Connected" if connected else "Disconnected",
        "timestamp": utc_timestamp(),
    }


def database_gate(probe: Probe, unavailable_error: str) -> Callable[[], Awaitable[None]]:
    """
    Build a FastAPI dependency that probes the backing store first.

    The probe runs on every request; when it reports the store as
    unreachable the request is rejected with 503 before the route runs.

    Args:
        probe: Coroutine function returning True when the store answers
        unavailable_error: Title used in the 503 envelope

    Example:
        >>> require_database = database_gate(
        ...     lambda: database.check_connection(),
        ...     "Serviço de pedidos indisponível",
        ... )
        >>> @app.get("/orders", dependencies=[Depends(require_database)])
    """

    async def require_database() -> None:
        if not await probe():
            logger.warning(f"Health gate closed: {unavailable_error}")
            raise ServiceUnavailableError(unavailable_error, DATABASE_UNREACHABLE)

    return require_database
