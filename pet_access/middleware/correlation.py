"""Correlation ID middleware.

Generates or extracts a correlation ID per request and binds it, along
with a cleared caller identity, to the logging context.

Pure ASGI middleware rather than BaseHTTPMiddleware, so context
variables set here are visible to the route and its dependencies.
"""

import time
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pet_access.logging_config import caller_id_ctx, correlation_id_ctx, get_logger

logger = get_logger(__name__)

# Header name for correlation ID
CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """Pure ASGI middleware that adds correlation IDs to requests.

    Uses the incoming X-Correlation-ID header when present, otherwise a
    new UUID. The ID is set in the logging context and echoed in the
    response headers.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = headers.get(b"x-correlation-id", b"").decode() or str(
            uuid.uuid4()
        )

        correlation_token = correlation_id_ctx.set(correlation_id)
        caller_token = caller_id_ctx.set(None)

        start_time = time.perf_counter()
        status_code: int | None = None
        method = scope.get("method", "")
        path = scope.get("path", "")

        logger.debug("Request started", method=method, path=path)

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code

            if message["type"] == "http.response.start":
                status_code = message.get("status")
                response_headers = list(message.get("headers", []))
                response_headers.append(
                    (CORRELATION_ID_HEADER.lower().encode(), correlation_id.encode())
                )
                message = {**message, "headers": response_headers}

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
            )
        except Exception:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.exception(
                "Request failed",
                method=method,
                path=path,
                duration_ms=round(duration_ms, 2),
            )
            raise
        finally:
            caller_id_ctx.reset(caller_token)
            correlation_id_ctx.reset(correlation_token)
