"""
Observability helpers.

Structured logging through `extra=`, operator-facing diagnostic events for
degraded pricing, and a request middleware adding correlation IDs.
"""

import time
import uuid
import logging
from typing import Any
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("transport_pricing")
diagnostics_logger = logging.getLogger("transport_pricing.diagnostics")


class DiagnosticEvent:
    """Diagnostic event names emitted by the pricing domain."""
    RESOLUTION_DEGRADED = "pricing.resolution_degraded"
    ORPHAN_OVERRIDES = "pricing.orphan_overrides"
    OVERRIDES_APPLIED = "pricing.overrides_applied"
    OVERRIDES_REJECTED = "pricing.overrides_rejected"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def log_diagnostic(event: str, level: int = logging.WARNING, **fields: Any) -> None:
    """
    Emit a structured diagnostic event.

    The event name goes in the message and in `extra["event"]`; every other
    field is attached to the record so log shippers can index it.
    """
    diagnostics_logger.log(level, event, extra={"event": event, "context": fields})


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = (time.perf_counter() - start_time) * 1000  # ms
        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(round(process_time, 2))

        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(process_time, 2),
        }

        if response.status_code >= 500:
            logger.error("Request Failed", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("Request Error", extra=log_data)
        else:
            logger.info("Request API", extra=log_data)

        return response
