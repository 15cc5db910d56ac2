"""Header handling for relayed requests and responses.

Both directions go through :func:`merge_headers`, which keeps every
upstream header (repeated ones included) in order and then forces the
overrides, so an override always wins over whatever came before it.
"""
import typing

from starlette.datastructures import MutableHeaders

from corsrelay.constants import ALLOW_ANY_ORIGIN, ALLOW_ORIGIN_HEADER

# Hop-by-hop headers only describe a single connection.
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}

STRIP_REQUEST_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length"}

STRIP_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS

CORS_OVERRIDES: typing.Dict[str, str] = {ALLOW_ORIGIN_HEADER: ALLOW_ANY_ORIGIN}


RawHeaders = typing.Iterable[typing.Tuple[bytes, bytes]]


def merge_headers(
    base: RawHeaders,
    overrides: typing.Mapping[str, str],
    *,
    strip: typing.Collection[str] = (),
) -> MutableHeaders:
    """Build a header set from raw ``base`` pairs, then force ``overrides``.

    Base values are kept as the exact bytes received. Pairs whose name
    is in ``strip`` (lower-case) are dropped. Any base value for an
    overridden name is replaced, not merged.
    """
    raw = [
        (k.lower(), v)
        for k, v in base
        if k.lower().decode("latin-1") not in strip
    ]
    headers = MutableHeaders(raw=raw)
    for key, value in overrides.items():
        headers[key] = value
    return headers


def outbound_request_headers(inbound: RawHeaders) -> MutableHeaders:
    return merge_headers(inbound, CORS_OVERRIDES, strip=STRIP_REQUEST_HEADERS)


def relayed_response_headers(upstream: RawHeaders) -> MutableHeaders:
    return merge_headers(upstream, CORS_OVERRIDES, strip=STRIP_RESPONSE_HEADERS)
