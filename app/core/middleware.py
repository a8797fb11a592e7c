"""FastAPI middleware for trace_id propagation and access logging."""
from __future__ import annotations

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.trace_context import clear_trace_id, generate_trace_id, set_trace_id

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-Id"


class TraceIdMiddleware(BaseHTTPMiddleware):
    """Read or generate X-Trace-Id, echo it back and write an access log."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = request.headers.get(TRACE_HEADER) or generate_trace_id()
        set_trace_id(trace_id)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
            latency_ms = int((time.time() - start_time) * 1000)
            response.headers[TRACE_HEADER] = trace_id
            logger.info(
                "ACCESS %s %s status=%s latency_ms=%s client_ip=%s",
                request.method,
                request.url.path,
                response.status_code,
                latency_ms,
                client_ip,
            )
            return response
        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "ACCESS %s %s status=500 latency_ms=%s client_ip=%s error=%s",
                request.method,
                request.url.path,
                latency_ms,
                client_ip,
                e,
                exc_info=True,
            )
            raise
        finally:
            clear_trace_id()
