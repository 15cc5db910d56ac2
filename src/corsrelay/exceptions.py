class RelayException(Exception):
    status_code = 500


class ConfigurationException(RelayException):
    pass


class UpstreamTransportException(RelayException):
    status_code = 502


class UpstreamTimeoutException(UpstreamTransportException):
    status_code = 504


class UpstreamStatusException(RelayException):
    def __init__(self, status_code: int, text: str = ""):
        super().__init__(f"Upstream responded with status {status_code}")
        self.status_code = status_code
        self.text = text
