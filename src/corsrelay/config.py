import os


def _env_bool(key: str, default: str) -> bool:
    return os.environ.get(key, default).strip().lower() in ("1", "true", "yes", "on")


class ConfigManager:
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    PROXY_CLIENT_TIMEOUT_SECS: float = float(os.environ.get("PROXY_CLIENT_TIMEOUT_SECS", 60))
    PROXY_FOLLOW_REDIRECTS: bool = _env_bool("PROXY_FOLLOW_REDIRECTS", "true")

    RELAY_PROXY_URL: str = os.environ.get("RELAY_PROXY_URL", "")
    RELAY_BASE_URL: str = os.environ.get("RELAY_BASE_URL", "https://api.themoviedb.org/3")
    RELAY_API_KEY: str = os.environ.get("RELAY_API_KEY", "")
    RELAY_MAX_RETRIES: int = int(os.environ.get("RELAY_MAX_RETRIES", 3))
    RELAY_BACKOFF_UNIT_SECS: float = float(os.environ.get("RELAY_BACKOFF_UNIT_SECS", 1))
    RELAY_TIMEOUT_SECS: float = float(os.environ.get("RELAY_TIMEOUT_SECS", 30))
