from dataclasses import dataclass
from starlette.datastructures import MutableHeaders


@dataclass
class ProxyRequest:
    method: str
    url: str
    headers: MutableHeaders
    content: bytes | None
