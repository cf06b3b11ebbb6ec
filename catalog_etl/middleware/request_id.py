"""
Request ID middleware
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_etl.core.logging import log


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and bind it to every log record emitted while serving it"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        with log.contextualize(request_id=request_id):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response
