"""Inbound ?url= validation."""

import httpx

from core.exceptions import InvalidURLError, MissingParameterError

NETWORK_SCHEMES = ("http", "https")


def parse_target_url(raw_url: str | None) -> httpx.URL:
    """Parse the ?url= value into an absolute http(s) URL."""
    if not raw_url:
        raise MissingParameterError()

    try:
        target = httpx.URL(raw_url.strip())
    except (httpx.InvalidURL, TypeError, ValueError):
        raise InvalidURLError() from None

    if target.scheme not in NETWORK_SCHEMES or not target.host:
        raise InvalidURLError()
    # httpx percent-encodes illegal host characters instead of rejecting them
    if "%" in target.host or any(char.isspace() for char in target.host):
        raise InvalidURLError()
    # httpx accepts any integer port
    if target.port is not None and target.port > 65535:
        raise InvalidURLError()
    return target
