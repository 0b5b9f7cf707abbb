"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_relay(
        self,
        route: str,
        target: str,
        status: int,
        *,
        used_fallback: bool = False,
    ) -> None: ...
    def log_error(self, route: str, status: int, message: str) -> None: ...
