"""
Request logging middleware and logging setup.
"""

import time
import uuid
import logging
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Configure structured logging
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger("policy_import")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an ID and log its outcome and duration.

    Uses the caller's X-Request-ID when present. Uploads are logged with
    their content length since those are the only large requests.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        extra = ""
        if request.url.path.endswith("/upload"):
            extra = f" | content_length={request.headers.get('content-length', 'unknown')}"

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed | "
                f"request_id={request_id} | "
                f"method={request.method} | "
                f"path={request.url.path} | "
                f"duration_ms={duration_ms:.2f} | "
                f"error={str(e)}"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request completed | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path} | "
            f"status={response.status_code} | "
            f"duration_ms={duration_ms:.2f}{extra}"
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        return response
