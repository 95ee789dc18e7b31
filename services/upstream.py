"""Upstream page fetching."""

import httpx

from core.exceptions import UpstreamUnreachableError
from core.headers import HeaderBuilder
from core.request_types import UpstreamResponse


class UpstreamFetcher:
    """Fetch a target page in full with the browser request profile."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        header_builder: HeaderBuilder,
    ) -> None:
        self._client = client
        self._headers = header_builder

    async def fetch(self, target: httpx.URL) -> UpstreamResponse:
        """GET the target, following redirects, and buffer the whole body."""
        try:
            response = await self._client.get(
                target,
                headers=self._headers.build_upstream_headers(),
                follow_redirects=True,
            )
            text = response.text if _is_html(response) else ""
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamUnreachableError(_describe(e)) from e

        return UpstreamResponse(
            status_code=response.status_code,
            headers=[
                (key.decode("latin-1"), value.decode("latin-1"))
                for key, value in response.headers.raw
            ],
            content_type=response.headers.get("content-type", ""),
            url=str(response.url),
            content=response.content,
            text=text,
        )


def _is_html(response: httpx.Response) -> bool:
    return "text/html" in response.headers.get("content-type", "").lower()


def _describe(error: Exception) -> str:
    """Human-readable failure; some httpx errors carry an empty message."""
    return str(error) or type(error).__name__
