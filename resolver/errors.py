"""Error kinds raised by the OG image pipeline."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INPUT = "input"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    RENDER = "render"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INPUT: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.RENDER: 500,
}


class OgImageError(RuntimeError):
    """Pipeline failure with a closed kind and an optional underlying cause."""

    def __init__(self, kind: ErrorKind, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def status(self) -> int:
        return HTTP_STATUS_BY_KIND.get(self.kind, 500)

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {type(self.cause).__name__}: {self.cause}"


class ChainRPCError(RuntimeError):
    """Raised when a blockchain RPC operation fails."""
