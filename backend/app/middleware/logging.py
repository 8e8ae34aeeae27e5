"""Access logging middleware: one structured JSON line per request, with a request ID."""

import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("clearpath.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
        }

        try:
            response = await call_next(request)
        except Exception:
            log_data["status"] = 500
            log_data["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 1)
            logger.error(json.dumps(log_data))
            raise

        log_data["status"] = response.status_code
        log_data["duration_ms"] = round((time.perf_counter() - start_time) * 1000, 1)
        if "content-length" in response.headers:
            log_data["bytes"] = int(response.headers["content-length"])

        logger.info(json.dumps(log_data))

        response.headers["X-Request-ID"] = request_id
        return response
