from corsrelay.proxy import Relay
from corsrelay.client import ClientConfig, RelayClient

__all__ = ["Relay", "RelayClient", "ClientConfig"]
