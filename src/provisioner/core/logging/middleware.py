"""Request logging for the trigger API.

Every request gets a request id, and requests under ``/tenants/{tenant_id}``
also carry the tenant id, both bound to structlog's context so lifecycle
events logged while handling the request can be correlated.
"""

import re
import time
import uuid
from typing import Any

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint


logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
_TENANT_PATH = re.compile(r"/tenants/(?P<tenant_id>[a-z0-9]+)")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each trigger request once it completes.

    Health probes are not logged.
    """

    def __init__(self, app: Any, exclude_paths: tuple[str, ...] = ("/health/",)) -> None:
        super().__init__(app)
        self.exclude_paths = exclude_paths

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        path = request.url.path
        if path.startswith(self.exclude_paths):
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        context: dict[str, str] = {"request_id": request_id}
        if match := _TENANT_PATH.search(path):
            context["tenant_id"] = match["tenant_id"]

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars(*context)

        if response.status_code >= 500:
            log = logger.error
        elif response.status_code >= 400:
            log = logger.warning
        else:
            log = logger.info
        log(
            "request_completed",
            method=request.method,
            path=path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            request_id=request_id,
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
