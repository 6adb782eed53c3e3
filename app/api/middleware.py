import logging
from typing import Optional

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app import config

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than the configured cap with 413.

    The body is counted while it is read, so chunked uploads without a
    Content-Length header are bounded too. Accepted bodies are buffered and
    replayed to the application.
    """

    def __init__(self, app: ASGIApp, max_body_size: Optional[int] = None):
        self.app = app
        self.max_body_size = max_body_size

    @property
    def limit(self) -> int:
        return self.max_body_size if self.max_body_size is not None else config.MAX_BODY_SIZE

    async def reject(self, scope: Scope, receive: Receive, send: Send, size: int) -> None:
        logger.warning(f"Rejected request body of at least {size} bytes (limit {self.limit})")
        response = JSONResponse(status_code=413, content={"error": "Request body too large"})
        await response(scope, receive, send)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.limit
        content_length = Headers(scope=scope).get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit:
            await self.reject(scope, receive, send, int(content_length))
            return

        body = bytearray()
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            body.extend(message.get("body", b""))
            if len(body) > limit:
                await self.reject(scope, receive, send, len(body))
                return
            more_body = message.get("more_body", False)

        replayed = False

        async def replay() -> Message:
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": bytes(body), "more_body": False}
            return await receive()

        await self.app(scope, replay, send)
