"""Header construction for upstream requests and relayed responses."""

from dataclasses import dataclass

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class HeaderFilterPolicy:
    """Response headers that are never forwarded, and those always set."""

    blocked: frozenset[str]
    forced: tuple[tuple[str, str], ...]

    def is_blocked(self, name: str) -> bool:
        name_lower = name.lower()
        return name_lower in self.blocked or any(
            name_lower == forced for forced, _ in self.forced
        )


DEFAULT_POLICY = HeaderFilterPolicy(
    blocked=frozenset(
        {
            # Frame/embedding restrictions
            "x-frame-options",
            "content-security-policy",
            "content-security-policy-report-only",
            "cross-origin-opener-policy",
            "cross-origin-embedder-policy",
            # Framing of the upstream byte stream, re-done by our HTTP layer
            "content-encoding",
            "transfer-encoding",
            # Hop-by-hop (RFC 7230)
            "connection",
            "keep-alive",
            "proxy-authenticate",
            "proxy-authorization",
            "te",
            "trailer",
            "upgrade",
        }
    ),
    forced=(
        ("x-frame-options", "ALLOWALL"),
        ("access-control-allow-origin", "*"),
    ),
)


class HeaderBuilder:
    """Build upstream request headers and filter relayed response headers."""

    def __init__(self, policy: HeaderFilterPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def build_upstream_headers(self) -> dict[str, str]:
        """Fixed desktop-browser request profile.

        Accept-Encoding is pinned to identity so the upstream never sends a
        compressed body that the client library would silently decode.
        """
        return {
            "User-Agent": BROWSER_USER_AGENT,
            "Accept": (
                "text/html,application/xhtml+xml,application/xml;q=0.9,"
                "image/avif,image/webp,*/*;q=0.8"
            ),
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "identity",
        }

    def filter_response_headers(
        self,
        headers: list[tuple[str, str]],
        *,
        rewritten: bool = False,
    ) -> list[tuple[str, str]]:
        """Drop blocked headers, then append the forced framing and CORS headers."""
        filtered = [
            (key, value)
            for key, value in headers
            if not self.policy.is_blocked(key)
            and not (rewritten and key.lower() == "content-length")
        ]
        filtered.extend(self.policy.forced)
        return filtered

    @staticmethod
    def replace_header(
        headers: list[tuple[str, str]],
        name: str,
        value: str,
    ) -> list[tuple[str, str]]:
        """Return headers with every `name` entry replaced by a single value."""
        name_lower = name.lower()
        result = [(key, val) for key, val in headers if key.lower() != name_lower]
        result.append((name_lower, value))
        return result
