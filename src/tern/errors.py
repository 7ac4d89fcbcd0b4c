"""Tern exception hierarchy.

Shared across Router, Composer, App, dispatcher, and middleware so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class TernError(Exception):
    """Base for all tern-specific errors."""


class ConfigurationError(TernError):
    """Raised when app configuration or a route pattern is invalid.

    Surfaces at registration time or during ``App._freeze()``, never
    mid-request.
    """


class MultipleNextError(TernError):
    """A middleware awaited ``next()`` more than once.

    Raised by the composed pipeline instead of re-running the downstream
    chain. Propagates like any other middleware fault.
    """

    def __init__(self, message: str = "next() called multiple times") -> None:
        super().__init__(message)


@dataclass(frozen=True, slots=True)
class HTTPError(TernError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware or handlers (usually via ``ctx.throw()``). The
    dispatcher copies ``status``, ``detail`` and ``headers`` onto the context.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)
