import functools
import logging
import time
import uuid

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from corsrelay.config import ConfigManager
from corsrelay.constants import (
    ALLOW_ANY_ORIGIN,
    ALLOW_ORIGIN_HEADER,
    INVALID_TARGET_MESSAGE,
    MISSING_TARGET_MESSAGE,
    PROXY_ERROR_HEADER,
    TARGET_QUERY_PARAM,
)
from corsrelay.datastructures import ProxyRequest
from corsrelay.exceptions import (
    RelayException,
    UpstreamTimeoutException,
    UpstreamTransportException,
)
from corsrelay.headers import outbound_request_headers, relayed_response_headers
from corsrelay.logging import setup_logging
from corsrelay.version import VERSION


RELAY_METHODS = ["GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS", "PATCH"]


setup_logging()

logger = logging.getLogger("corsrelay")


def _error_response(status_code: int, details: str, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "message": "Upstream request failed" if status_code in (502, 504) else "Internal Server Error",
                "source": "proxy",
                "details": details,
                "correlation_id": correlation_id,
            },
        },
        headers={PROXY_ERROR_HEADER: "proxy", ALLOW_ORIGIN_HEADER: ALLOW_ANY_ORIGIN},
    )


def relay_route():
    def wrapper(func):
        @functools.wraps(func)
        async def wrapped(*args, **kwargs):
            request: Request = kwargs.get("request") or next(
                arg for arg in args if isinstance(arg, Request)
            )
            correlation_id = str(uuid.uuid4())
            request.state.correlation_id = correlation_id
            logger.info(
                "Incoming relay request",
                extra={
                    "correlation_id": correlation_id,
                    "method": request.method,
                    "url": str(request.url),
                    "client_host": request.client.host if request.client else "unknown",
                }
            )
            start_time = time.time()

            try:
                response = await func(*args, **kwargs)
                elapsed_time = time.time() - start_time
                logger.info(
                    "Relay request processed",
                    extra={
                        "correlation_id": correlation_id,
                        "status_code": response.status_code,
                        "content_type": response.headers.get("Content-Type", "unknown"),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return response
            except RelayException as re:
                elapsed_time = time.time() - start_time
                logger.error(
                    "RelayException encountered",
                    exc_info=True,
                    extra={
                        "correlation_id": correlation_id,
                        "exception": str(re),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return _error_response(re.status_code, str(re), correlation_id)
            except Exception as exc:
                elapsed_time = time.time() - start_time
                logger.error(
                    "Unexpected error occurred",
                    exc_info=True,
                    extra={
                        "correlation_id": correlation_id,
                        "exception": str(exc),
                        "elapsed_time": f"{elapsed_time:.3f}s",
                    }
                )
                return _error_response(500, "An unexpected error occurred.", correlation_id)
        return wrapped
    return wrapper


def is_absolute_url(value: str) -> bool:
    try:
        url = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return bool(url.scheme) and bool(url.host)


class Relay:
    """Forwards each request to the URL named in its ``url`` query parameter.

    The upstream response is streamed back untouched, except that the
    cross-origin header is always set to allow any origin.
    """

    def __init__(
        self,
        config: ConfigManager | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ConfigManager()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self.config.PROXY_CLIENT_TIMEOUT_SECS,
            follow_redirects=self.config.PROXY_FOLLOW_REDIRECTS,
        )

    @relay_route()
    async def _meta_route(self, request: Request):
        return JSONResponse(content={"version": VERSION}, status_code=200)

    @relay_route()
    async def _relay_route(self, request: Request):
        return await self.handle(request)

    async def handle(self, request: Request) -> Response:
        target = request.query_params.get(TARGET_QUERY_PARAM)
        if not target:
            return PlainTextResponse(MISSING_TARGET_MESSAGE, status_code=400)
        if not is_absolute_url(target):
            return PlainTextResponse(INVALID_TARGET_MESSAGE, status_code=400)

        body = await request.body()
        proxy_request = ProxyRequest(
            method=request.method,
            url=target,
            headers=outbound_request_headers(request.headers.raw),
            content=body or None,
        )
        return await self.forward(proxy_request, correlation_id=getattr(request.state, "correlation_id", None))

    async def forward(self, proxy_request: ProxyRequest, correlation_id: str | None = None) -> Response:
        logger.debug(
            "Forwarding request upstream",
            extra={
                "correlation_id": correlation_id,
                "method": proxy_request.method,
                "target": proxy_request.url,
            }
        )
        client = self._client()
        outbound = client.build_request(
            proxy_request.method,
            proxy_request.url,
            headers=proxy_request.headers.raw,
            content=proxy_request.content,
        )
        try:
            upstream = await client.send(outbound, stream=True)
        except httpx.TimeoutException as e:
            await client.aclose()
            raise UpstreamTimeoutException(f"Request timed out: {e!s}") from e
        except httpx.RequestError as e:
            await client.aclose()
            raise UpstreamTransportException(f"Upstream request failed: {e!s}") from e

        try:
            logger.info(
                "Upstream responded",
                extra={
                    "correlation_id": correlation_id,
                    "status_code": upstream.status_code,
                    "reason_phrase": upstream.reason_phrase,
                }
            )
            return StreamingResponse(
                upstream.aiter_raw(),
                status_code=upstream.status_code,
                headers=relayed_response_headers(upstream.headers.raw),
                background=BackgroundTask(_close_upstream, upstream, client),
            )
        except Exception:
            await _close_upstream(upstream, client)
            raise

    def to_fastapi(self, app: FastAPI):
        app.api_route("/_relay/meta", methods=["GET"])(self._meta_route)
        app.api_route("/{path:path}", methods=RELAY_METHODS)(self._relay_route)


async def _close_upstream(upstream: httpx.Response, client: httpx.AsyncClient):
    await upstream.aclose()
    await client.aclose()
