import time
import uuid
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = ("/health",)

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Tag every request (and every log line it produces) with a correlation ID.

    The ID comes from the ``X-Request-ID`` header when the caller (the
    marketplace frontend or the scheduler) sends one, otherwise a UUID4 is
    generated.  It is bound into structlog's context variables together with
    the method and path, so routing fallbacks and status advancements
    triggered by the request can be traced back to it, and it is echoed in
    the response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid,
            method=request.method,
            path=request.path,
        )

        started = time.monotonic()
        response = self.get_response(request)
        duration_ms = round((time.monotonic() - started) * 1000, 2)

        # load balancer probes hit /health every few seconds
        log = logger.debug if request.path.startswith(QUIET_PATHS) else logger.info
        log(
            "request_finished",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response[REQUEST_ID_HEADER] = cid
        return response
