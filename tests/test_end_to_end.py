import httpx
import pytest

from corsrelay.client import ClientConfig, RelayClient


@pytest.mark.anyio
async def test_client_reaches_upstream_through_relay(relay_app, upstream):
    upstream.respond = lambda request: httpx.Response(200, json={"id": 1399, "name": "Show"})
    config = ClientConfig(proxy_url="http://relay.test", api_key="k")

    async with RelayClient(config, transport=httpx.ASGITransport(app=relay_app)) as client:
        data = await client.fetch_tv_show_details(1399)

    assert data == {"id": 1399, "name": "Show"}
    assert len(upstream.requests) == 1
    assert str(upstream.requests[0].url) == "https://api.themoviedb.org/3/tv/1399?api_key=k"
