"""End-to-end tests through the FastAPI routes."""

import httpx
import pytest

from app import create_app
from core.config import Config, RelaySettings, RouteSettings
from core.exceptions import ConfigurationError

PAGE = b'<html><head><title>T</title></head><body><a href="/about">About</a></body></html>'


def html_page(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        headers=[
            ("content-type", "text/html"),
            ("content-security-policy", "frame-ancestors 'none'"),
            ("content-encoding", "identity"),
            ("set-cookie", "a=1"),
            ("set-cookie", "b=2"),
        ],
        content=PAGE,
    )


def test_end_to_end_example(make_client):
    client = make_client(html_page)

    response = client.get("/api/fetch-site", params={"url": "https://example.com/page"})

    assert response.status_code == 200
    assert response.text == (
        '<html><head>\n<base href="https://example.com/" /><title>T</title></head>'
        '<body><a href="http://relay.test/api/fetch-site?url=https%3A%2F%2Fexample.com%2Fabout">'
        "About</a></body></html>"
    )
    assert response.headers["content-type"] == "text/html; charset=utf-8"
    assert response.headers["x-frame-options"] == "ALLOWALL"
    assert response.headers["access-control-allow-origin"] == "*"
    assert "content-security-policy" not in response.headers
    assert "content-encoding" not in response.headers
    assert response.headers.get_list("set-cookie") == ["a=1", "b=2"]


def test_links_point_at_the_route_used(make_client):
    client = make_client(html_page)

    response = client.get("/fetch-site", params={"url": "https://example.com/page"})

    assert 'href="http://relay.test/fetch-site?url=https%3A%2F%2Fexample.com%2Fabout"' in response.text


def test_forwarded_proto_used_for_relay_links(make_client):
    client = make_client(html_page)

    response = client.get(
        "/api/fetch-site",
        params={"url": "https://example.com/page"},
        headers={"x-forwarded-proto": "https"},
    )

    assert 'href="https://relay.test/api/fetch-site?url=' in response.text


def test_public_base_url_and_base_only_mode(make_client):
    config = Config(
        relay=RelaySettings(
            public_base_url="https://frames.example.net/",
            routes=[RouteSettings(path="/embed", rewrite_links=False)],
        )
    )
    client = make_client(html_page, config)

    response = client.get("/embed", params={"url": "https://example.com/page"})

    assert '<base href="https://example.com/" />' in response.text
    assert '<a href="/about">' in response.text
    assert client.get("/api/fetch-site").status_code == 404


def test_first_url_parameter_wins(make_client):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, headers={"content-type": "text/plain"}, content=b"ok")

    client = make_client(handler)
    client.get("/api/fetch-site?url=https://first.example/&url=https://second.example/")

    assert seen == ["https://first.example/"]


@pytest.mark.parametrize(
    ("query", "body"),
    [
        ("", "Missing ?url= parameter"),
        ("?url=", "Missing ?url= parameter"),
        ("?url=example.com", "Invalid URL"),
        ("?url=file:///etc/passwd", "Invalid URL"),
    ],
)
def test_bad_input_is_400(make_client, query, body):
    client = make_client(html_page)

    response = client.get(f"/api/fetch-site{query}")

    assert response.status_code == 400
    assert response.text == body
    assert response.headers["content-type"].startswith("text/plain")


def test_upstream_failure_is_502(make_client, logger):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    client = make_client(handler)

    response = client.get("/api/fetch-site", params={"url": "http://127.0.0.1:9/"})

    assert response.status_code == 502
    assert response.text.startswith("Proxy error: ")
    assert logger.errors[0][1] == 502


def test_binary_passthrough(make_client):
    payload = b"\x89PNG\r\n\x1a\n" + bytes(100)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"content-type": "image/png", "x-frame-options": "SAMEORIGIN"},
            content=payload,
        )

    client = make_client(handler)

    response = client.get("/api/fetch-site", params={"url": "https://example.com/logo.png"})

    assert response.content == payload
    assert response.headers["content-type"] == "image/png"
    assert response.headers["x-frame-options"] == "ALLOWALL"


def test_only_get_is_routed(make_client):
    client = make_client(html_page)

    assert client.post("/api/fetch-site?url=https://example.com/").status_code == 405


@pytest.mark.parametrize(
    "routes",
    [
        [],
        [RouteSettings(path="/a"), RouteSettings(path="/a/")],
    ],
)
def test_bad_route_configuration(logger, routes):
    config = Config(relay=RelaySettings(routes=routes))

    with pytest.raises(ConfigurationError):
        create_app(config, logger)
