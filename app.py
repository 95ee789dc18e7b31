"""FastAPI application factory."""

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request

from api.handlers import handle_fetch_site
from core.config import Config, RouteSettings
from core.exceptions import ConfigurationError
from core.headers import HeaderBuilder
from core.protocols import RequestLogger
from core.rewrite import HtmlRewriter
from services.relay import Relay
from services.upstream import UpstreamFetcher


def create_app(
    config: Config,
    logger: RequestLogger,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    _check_routes(config.relay.routes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        limits = httpx.Limits(
            max_connections=config.upstream.max_connections,
            max_keepalive_connections=config.upstream.max_keepalive_connections,
        )
        # httpx's default timeout applies; the relay sets none of its own
        client = httpx.AsyncClient(limits=limits, transport=transport)
        header_builder = HeaderBuilder()
        app.state.relay = Relay(
            fetcher=UpstreamFetcher(client, header_builder),
            logger=logger,
            header_builder=header_builder,
            rewriter=HtmlRewriter(),
        )
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="Frame Relay", version="0.1.0", lifespan=lifespan)

    for route in config.relay.routes:
        _register_route(app, config, route)

    return app


def _register_route(app: FastAPI, config: Config, route: RouteSettings) -> None:
    async def fetch_site(request: Request):
        return await handle_fetch_site(request, config, route)

    app.add_api_route(
        route.path,
        fetch_site,
        methods=["GET"],
        name=f"fetch_site:{route.path}",
    )


def _check_routes(routes: list[RouteSettings]) -> None:
    if not routes:
        raise ConfigurationError("No relay routes configured")
    paths = [route.path for route in routes]
    duplicates = sorted({path for path in paths if paths.count(path) > 1})
    if duplicates:
        raise ConfigurationError(f"Duplicate relay routes: {', '.join(duplicates)}")
