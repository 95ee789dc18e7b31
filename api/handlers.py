"""FastAPI route handlers."""

from fastapi import Request, Response

from core.config import Config, RouteSettings


def relay_base_url(request: Request, config: Config) -> str:
    """Externally visible scheme://host of this relay."""
    if config.relay.public_base_url:
        return config.relay.public_base_url.rstrip("/")

    scheme = request.headers.get("x-forwarded-proto", request.url.scheme)
    scheme = scheme.split(",")[0].strip()
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"


async def handle_fetch_site(
    request: Request,
    config: Config,
    route: RouteSettings,
) -> Response:
    """Handle GET {route}?url=... by relaying the target page."""
    urls = request.query_params.getlist("url")
    relay = request.app.state.relay

    result = await relay.handle(
        urls[0] if urls else None,
        relay_base_url=relay_base_url(request, config),
        route_path=route.path,
        rewrite_links=route.rewrite_links,
    )

    response = Response(content=result.body, status_code=result.status_code)
    # Raw headers keep duplicates such as set-cookie intact
    response.raw_headers = [
        (key.lower().encode("latin-1"), value.encode("latin-1"))
        for key, value in result.headers
    ]
    return response
