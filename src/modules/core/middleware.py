import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware:
    """Extracts or generates a correlation ID for each request.

    The incoming ``X-Request-ID`` is honoured when present and sane
    (non-empty, at most 128 chars); otherwise a UUID4 is generated.  The
    ID is bound into structlog contextvars for every log line of the
    request and echoed back in the ``X-Request-ID`` response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        incoming = request.META.get("HTTP_X_REQUEST_ID", "").strip()
        if incoming and len(incoming) <= MAX_CORRELATION_ID_LENGTH:
            cid = incoming
        else:
            cid = str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        logger.info(
            "request_started",
            method=request.method,
            path=request.path,
        )

        response = self.get_response(request)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.path,
            status_code=response.status_code,
        )

        response["X-Request-ID"] = cid
        return response
