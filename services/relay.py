"""Relay orchestration: validate, fetch, filter, rewrite, respond."""

from urllib.parse import urlsplit

from core.exceptions import RelayError, UpstreamUnreachableError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.request_types import RelayRequest, RelayResponse, RewriteContext, UpstreamResponse
from core.rewrite import HtmlRewriter, RewriteResult, origin_of
from core.validation import parse_target_url
from services.upstream import UpstreamFetcher

HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class Relay:
    """Stateless relay shared by every route binding."""

    def __init__(
        self,
        fetcher: UpstreamFetcher,
        logger: RequestLogger,
        header_builder: HeaderBuilder,
        rewriter: HtmlRewriter,
    ) -> None:
        self._fetcher = fetcher
        self._logger = logger
        self._headers = header_builder
        self._rewriter = rewriter

    async def handle(
        self,
        raw_url: str | None,
        *,
        relay_base_url: str,
        route_path: str,
        rewrite_links: bool = True,
    ) -> RelayResponse:
        """Serve one ?url= request; failures become plain-text error responses."""
        try:
            request = RelayRequest(
                target=parse_target_url(raw_url),
                relay_base_url=relay_base_url.rstrip("/"),
                route_path=route_path,
            )
            upstream = await self._fetcher.fetch(request.target)
            response, result = self._transform(request, upstream, rewrite_links)
        except RelayError as e:
            self._report_error(route_path, e)
            return RelayResponse.plain_text(e.status_code, e.message)
        except Exception as e:
            error = UpstreamUnreachableError(str(e) or type(e).__name__)
            self._report_error(route_path, error)
            return RelayResponse.plain_text(error.status_code, error.message)

        self._report_relay(request, upstream, result)
        return response

    def _transform(
        self,
        request: RelayRequest,
        upstream: UpstreamResponse,
        rewrite_links: bool,
    ) -> tuple[RelayResponse, RewriteResult | None]:
        if not upstream.is_html:
            headers = self._headers.filter_response_headers(upstream.headers)
            headers = self._headers.replace_header(
                headers, "content-length", str(len(upstream.content))
            )
            return RelayResponse(upstream.status_code, headers, upstream.content), None

        # Links resolve against where redirects actually landed
        context = RewriteContext(
            upstream_origin=origin_of(upstream.url),
            upstream_path=urlsplit(upstream.url).path,
            relay_base_url=request.relay_base_url,
            route_path=request.route_path,
            rewrite_links=rewrite_links,
        )
        result = self._rewriter.rewrite(upstream.text, context)
        body = result.html.encode("utf-8")

        headers = self._headers.filter_response_headers(upstream.headers, rewritten=True)
        headers = self._headers.replace_header(headers, "content-type", HTML_CONTENT_TYPE)
        headers = self._headers.replace_header(headers, "content-length", str(len(body)))
        return RelayResponse(upstream.status_code, headers, body), result

    def _report_relay(
        self,
        request: RelayRequest,
        upstream: UpstreamResponse,
        result: RewriteResult | None,
    ) -> None:
        # A failed log write must not replace an already built response
        try:
            self._logger.log_relay(
                request.route_path,
                str(request.target),
                upstream.status_code,
                upstream.content_type,
                rewritten=result is not None,
                base_injected=result.base_injected if result else False,
                links_rewritten=result.links_rewritten if result else 0,
            )
        except OSError:
            pass

    def _report_error(self, route_path: str, error: RelayError) -> None:
        try:
            self._logger.log_error(route_path, error.status_code, error.message, kind=error.kind)
        except OSError:
            pass
