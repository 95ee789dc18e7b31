"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_relay(
        self,
        route: str,
        target: str,
        status: int,
        content_type: str,
        *,
        rewritten: bool,
        base_injected: bool = False,
        links_rewritten: int = 0,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str, *, kind: str) -> None: ...
