"""Route, RouteMatch, and PathSegment frozen dataclasses."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:  ``users``  (is_param=False)
    Param:    ``:id``    (is_param=True, param_name="id")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    ``method`` is uppercase, or empty to match any method. ``segments``
    is derived from ``path`` at construction time.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    template: str | None = None
    segments: tuple[PathSegment, ...] = field(default=(), compare=False, repr=False)

    def __post_init__(self) -> None:
        from tern.routing.router import parse_path

        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "segments", parse_path(self.path))

    @property
    def param_names(self) -> tuple[str, ...]:
        """Names bound by this route's parameter segments, in order."""
        return tuple(s.param_name for s in self.segments if s.param_name)

    def accepts(self, method: str) -> bool:
        """True if this route matches requests with *method*."""
        return not self.method or self.method == method.upper()


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route resolution."""

    route: Route
    params: dict[str, str]

    @property
    def handler(self) -> Callable[..., Any]:
        return self.route.handler
