"""
mrbeans/core/body_limit.py — Request body size cap

Runs ahead of routing, so oversized bodies are refused before FastAPI
buffers and parses them (and before the admin check could even run).
A declared Content-Length over the cap is rejected without reading; a
streamed body is counted chunk by chunk and replayed downstream when it
stays under the cap.
"""
from __future__ import annotations

from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from mrbeans.core.errors import ErrorCode, create_error_response

BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
TOO_LARGE_MESSAGE = "Zahtjev je prevelik"


def _content_length(scope: Scope) -> int | None:
    for key, value in scope.get("headers") or []:
        if key.lower() == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None


async def _drain(receive: Receive, more_body: bool) -> None:
    while more_body:
        message = await receive()
        more_body = message.get("type") == "http.request" and bool(message.get("more_body"))


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        envelope = create_error_response(TOO_LARGE_MESSAGE, 413, None, ErrorCode.INVALID_INPUT)
        await JSONResponse(status_code=413, content=envelope)(scope, receive, send)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("method", "").upper() not in BODY_METHODS:
            await self.app(scope, receive, send)
            return

        declared = _content_length(scope)
        if declared is not None:
            if declared > self.max_bytes:
                await self._reject(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        # No Content-Length (chunked): buffer up to the cap, then replay
        buffered: list[Message] = []
        size = 0
        while True:
            message = await receive()
            buffered.append(message)
            if message.get("type") != "http.request":
                break
            size += len(message.get("body", b""))
            more_body = bool(message.get("more_body"))
            if size > self.max_bytes:
                await _drain(receive, more_body)
                await self._reject(scope, receive, send)
                return
            if not more_body:
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)
