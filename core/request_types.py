"""Shared request data types."""

from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class RelayRequest:
    """Validated inbound relay request."""

    target: httpx.URL
    relay_base_url: str
    route_path: str


@dataclass(frozen=True)
class UpstreamResponse:
    """Fully buffered upstream response."""

    status_code: int
    headers: list[tuple[str, str]]
    content_type: str
    url: str
    content: bytes
    text: str

    @property
    def is_html(self) -> bool:
        return "text/html" in self.content_type.lower()


@dataclass(frozen=True)
class RewriteContext:
    """Per-call inputs of the HTML rewriter."""

    upstream_origin: str
    upstream_path: str
    relay_base_url: str
    route_path: str
    rewrite_links: bool = True

    @property
    def relay_endpoint(self) -> str:
        return f"{self.relay_base_url}{self.route_path}"


@dataclass(frozen=True)
class RelayResponse:
    """Transport-neutral response emitted by the relay."""

    status_code: int
    headers: list[tuple[str, str]]
    body: bytes

    @classmethod
    def plain_text(cls, status_code: int, message: str) -> "RelayResponse":
        body = message.encode("utf-8")
        return cls(
            status_code=status_code,
            headers=[
                ("content-type", "text/plain; charset=utf-8"),
                ("content-length", str(len(body))),
            ],
            body=body,
        )
