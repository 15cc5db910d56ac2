TARGET_QUERY_PARAM = "url"

ALLOW_ORIGIN_HEADER = "Access-Control-Allow-Origin"
ALLOW_ANY_ORIGIN = "*"

PROXY_ERROR_HEADER = "X-Relay-Error"

MISSING_TARGET_MESSAGE = "Missing URL parameter"
INVALID_TARGET_MESSAGE = "Invalid URL parameter"
