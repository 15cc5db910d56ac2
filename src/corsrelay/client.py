"""Client for reaching an upstream API through a running relay.

Every call is retried on any failure, with a delay that grows by one
``backoff_unit_secs`` per attempt::

    async with RelayClient(ClientConfig.from_env()) as client:
        movies = await client.fetch_popular_movies()
"""
import asyncio
import logging
import typing
from urllib.parse import quote, urlencode

import httpx
from pydantic import BaseModel, field_validator

from corsrelay.config import ConfigManager
from corsrelay.constants import TARGET_QUERY_PARAM
from corsrelay.exceptions import ConfigurationException, UpstreamStatusException

logger = logging.getLogger("corsrelay")


class RequestOptions(typing.TypedDict, total=False):
    method: str
    headers: typing.Dict[str, str]
    body: typing.Union[str, bytes, None]


class ClientConfig(BaseModel):
    proxy_url: str
    base_url: str = "https://api.themoviedb.org/3"
    api_key: str = ""
    max_retries: int = 3
    backoff_unit_secs: float = 1.0
    timeout_secs: typing.Optional[float] = 30.0

    @field_validator("proxy_url", "base_url")
    def validate_absolute(cls, value: str):
        url = httpx.URL(value)
        if not url.scheme or not url.host:
            raise ValueError(f"Expected an absolute URL, got: {value!r}")
        return value.rstrip("/")

    @field_validator("max_retries")
    def validate_max_retries(cls, value: int):
        if value < 1:
            raise ValueError("max_retries must be at least 1")
        return value

    @classmethod
    def from_env(cls, config: ConfigManager | None = None) -> "ClientConfig":
        config = config or ConfigManager()
        if not config.RELAY_PROXY_URL:
            raise ConfigurationException("RELAY_PROXY_URL is not set.")
        return cls(
            proxy_url=config.RELAY_PROXY_URL,
            base_url=config.RELAY_BASE_URL,
            api_key=config.RELAY_API_KEY,
            max_retries=config.RELAY_MAX_RETRIES,
            backoff_unit_secs=config.RELAY_BACKOFF_UNIT_SECS,
            timeout_secs=config.RELAY_TIMEOUT_SECS,
        )


def parse_body(response: httpx.Response) -> typing.Any:
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return response.json()
    return response.text


class RelayClient:
    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._http = httpx.AsyncClient(transport=transport, timeout=config.timeout_secs)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    def target_url(self, path: str, params: typing.Mapping[str, typing.Any] | None = None) -> str:
        """Upstream URL for ``path``, with the API key appended first."""
        query = {}
        if self.config.api_key:
            query["api_key"] = self.config.api_key
        query.update(params or {})
        url = f"{self.config.base_url}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{urlencode(query)}"
        return url

    def relay_url(self, target: str) -> str:
        return f"{self.config.proxy_url}/?{TARGET_QUERY_PARAM}={quote(target, safe='')}"

    async def fetch_with_retry(
        self,
        url: str,
        options: RequestOptions | None = None,
        max_retries: int | None = None,
    ) -> typing.Any:
        options = options or {}
        if max_retries is None:
            max_retries = self.config.max_retries
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        attempt = 0
        while attempt < max_retries:
            try:
                response = await self._http.request(
                    options.get("method", "GET"),
                    url,
                    headers=options.get("headers"),
                    content=options.get("body"),
                )
                if not response.is_success:
                    raise UpstreamStatusException(response.status_code, response.text)
                return parse_body(response)
            except (httpx.HTTPError, UpstreamStatusException, ValueError) as e:
                attempt += 1
                if attempt >= max_retries:
                    logger.error(
                        f"Giving up after {attempt} attempts",
                        extra={"url": url, "exception": str(e)},
                    )
                    raise
                delay = self.config.backoff_unit_secs * attempt
                logger.warning(
                    f"Attempt {attempt}/{max_retries} failed, retrying in {delay:.2f}s",
                    extra={"url": url, "exception": str(e)},
                )
                await asyncio.sleep(delay)

    async def get(self, path: str, params: typing.Mapping[str, typing.Any] | None = None) -> typing.Any:
        return await self.fetch_with_retry(self.relay_url(self.target_url(path, params)))

    async def fetch_popular_movies(self) -> typing.Any:
        return await self.get("/movie/popular")

    async def fetch_tv_show_details(self, show_id: int | str) -> typing.Any:
        return await self.get(f"/tv/{show_id}")
