"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard)."""

    def log_forward(self, method: str, endpoint: str, status: int, *, retried: bool = False) -> None: ...
    def log_refresh(self, success: bool, detail: str = "") -> None: ...
    def log_error(self, endpoint: str, status: int, message: str) -> None: ...
