import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import Config


class RecordingLogger:
    """RequestLogger that keeps calls in memory instead of writing files."""

    def __init__(self):
        self.relayed = []
        self.errors = []

    def log_relay(
        self,
        route,
        target,
        status,
        content_type,
        *,
        rewritten,
        base_injected=False,
        links_rewritten=0,
    ):
        self.relayed.append(
            {
                "route": route,
                "target": target,
                "status": status,
                "content_type": content_type,
                "rewritten": rewritten,
                "base_injected": base_injected,
                "links_rewritten": links_rewritten,
            }
        )

    def log_error(self, route, status, message, *, kind):
        self.errors.append((route, status, message, kind))


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def make_client(logger):
    """Build a TestClient whose upstream traffic is served by `handler`."""
    clients = []

    def _make(handler, config=None):
        app = create_app(config or Config(), logger, transport=httpx.MockTransport(handler))
        client = TestClient(app, base_url="http://relay.test")
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
