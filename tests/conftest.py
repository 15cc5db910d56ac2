import httpx
import pytest

from fastapi import FastAPI
from corsrelay import Relay


class Upstream:
    """Stands in for the upstream API and records what reached it."""

    def __init__(self, respond=None):
        self.requests: list[httpx.Request] = []
        self.respond = respond or (lambda request: httpx.Response(200, json={"id": 1}))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self.respond(request)

    def transport(self):
        return httpx.MockTransport(self)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def relay_app(upstream):
    app = FastAPI()
    Relay(transport=upstream.transport()).to_fastapi(app)
    return app


@pytest.fixture
def anyio_backend():
    return 'asyncio'
