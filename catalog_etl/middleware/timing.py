"""
Request timing middleware
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_etl.core.logging import log

# Batch calls fetch images and call the model, so only flag really slow requests
SLOW_REQUEST_SECONDS = 20.0


class TimingMiddleware(BaseHTTPMiddleware):
    """Report request duration in X-Process-Time"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        if process_time > SLOW_REQUEST_SECONDS:
            log.warning("Slow request", path=request.url.path, seconds=round(process_time, 3))

        return response
