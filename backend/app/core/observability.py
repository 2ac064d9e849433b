"""
Request observability and logging setup.

Every request gets a correlation ID (taken from ``X-Correlation-ID`` or
generated), echoed back on the response and attached to the access log.
"""

import time
import uuid
import logging
from typing import Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from backend.app.core.config import settings

logger = logging.getLogger("parcels.http")

CORRELATION_HEADER = "X-Correlation-ID"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once at startup."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
    if not settings.db_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        log_data = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "ip": request.client.host if request.client else "unknown",
        }

        try:
            response = await call_next(request)
        except Exception:
            log_data["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            logger.exception("Request crashed", extra=log_data)
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers["X-Process-Time"] = f"{duration_ms:.2f}"

        log_data.update(status_code=response.status_code, duration_ms=round(duration_ms, 2))

        if response.status_code >= 500:
            logger.error("Request failed", extra=log_data)
        elif response.status_code >= 400:
            logger.warning("Request rejected", extra=log_data)
        else:
            logger.info("Request served", extra=log_data)

        return response
