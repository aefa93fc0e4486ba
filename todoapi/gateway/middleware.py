from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from todoapi.observability import Metrics, iso_now, use_request_context

CallNext = Callable[[Request], Awaitable[Response]]
HttpMiddleware = Callable[[Request, CallNext], Awaitable[Response]]


def raw_request_path(request: Request) -> str:
    """Request path as sent on the wire, percent-escapes intact."""
    raw = request.scope.get("raw_path")
    if raw:
        return bytes(raw).decode("latin-1")
    return request.url.path


def _trace_line(method: str, path: str, stage: str) -> str:
    return f"[{method} {path} {iso_now()}] {stage}."


def request_logging(logger: logging.Logger, metrics: Metrics) -> HttpMiddleware:
    """Wrap every request with Started/Finished trace lines.

    The Finished line is emitted even when a downstream handler raises; the
    exception then propagates unchanged.
    """

    async def _log_request(request: Request, call_next: CallNext) -> Response:
        method = request.method
        path = raw_request_path(request)
        with use_request_context(method, path, request.headers.get("X-Request-ID")):
            start = time.perf_counter()
            logger.info(_trace_line(method, path, "Started"), extra={"event": "request_started"})
            metrics.increment("http_requests", {"method": method})
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    _trace_line(method, path, "Finished"),
                    exc_info=True,
                    extra={
                        "event": "request_failed",
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise
            logger.info(
                _trace_line(method, path, "Finished"),
                extra={
                    "event": "request_finished",
                    "status": response.status_code,
                    "duration_ms": (time.perf_counter() - start) * 1000.0,
                },
            )
            return response

    return _log_request


def prefix_redirect(
    source: str,
    target: str,
    logger: logging.Logger,
    metrics: Metrics,
    *,
    status_code: int = 302,
) -> HttpMiddleware:
    """Redirect any path starting with `source` to the same path under `target`.

    Both prefixes are given with leading and trailing slashes, e.g.
    ("/tasks/", "/todos/"). The query string is carried over.
    """

    async def _redirect(request: Request, call_next: CallNext) -> Response:
        path = raw_request_path(request)
        if not path.startswith(source):
            return await call_next(request)
        location = target + path[len(source) :]
        if request.url.query:
            location = f"{location}?{request.url.query}"
        logger.info(
            "legacy path redirect",
            extra={"event": "path_redirect", "location": location, "status": status_code},
        )
        metrics.increment("task_redirects")
        return RedirectResponse(location, status_code=status_code)

    return _redirect


__all__ = [
    "CallNext",
    "HttpMiddleware",
    "prefix_redirect",
    "raw_request_path",
    "request_logging",
]
