"""Custom exception hierarchy for the frame relay."""


class RelayError(Exception):
    """Base exception for all relay errors.

    Attributes:
        message: Plain-text body sent back to the caller
        kind: Error kind name (e.g., 'MissingParameter', 'UpstreamUnreachable')
        status_code: HTTP status code returned to the caller
    """

    kind = "RelayError"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(RelayError):
    """Raised when configuration is missing or invalid."""

    kind = "Configuration"


class MissingParameterError(RelayError):
    """The ?url= query parameter is absent or empty."""

    kind = "MissingParameter"
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Missing ?url= parameter")


class InvalidURLError(RelayError):
    """The ?url= value is not an absolute http(s) URL."""

    kind = "InvalidURL"
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Invalid URL")


class UpstreamUnreachableError(RelayError):
    """Raised when the upstream page cannot be fetched.

    Attributes:
        reason: Description of the underlying failure
    """

    kind = "UpstreamUnreachable"
    status_code = 502

    def __init__(self, reason: str) -> None:
        super().__init__(f"Proxy error: {reason}")
        self.reason = reason
