"""Ordered route table.

Routes are tried in registration order and the first full match wins,
so overlapping patterns resolve deterministically::

    router.add(Route("GET", "/users/me", me))
    router.add(Route("GET", "/users/:id", show))
    router.resolve("GET", "/users/me").handler is me

Patterns are split on ``/``. A literal segment must equal the request
segment; a ``:name`` segment matches any single non-empty segment and
binds it under ``name``. Pattern and path must have the same number of
segments; there is no prefix matching.
"""

from tern.errors import ConfigurationError
from tern.routing.route import PathSegment, Route, RouteMatch

PARAM_MARKER = ":"


def split_path(path: str) -> list[str]:
    """Split a request path into segments.

    Leading and trailing slashes are ignored, so ``/`` has no segments
    and ``/users/`` is the same as ``/users``.
    """
    stripped = path.strip("/")
    if not stripped:
        return []
    return stripped.split("/")


def parse_path(path: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Examples::

        "/"           -> ()
        "/users"      -> (PathSegment("users"),)
        "/users/:id"  -> (PathSegment("users"), PathSegment(":id", is_param=True, param_name="id"))

    Raises ``ConfigurationError`` for ``{param}`` / ``<param>`` syntax,
    empty parameter names, and parameter names used twice.
    """
    segments: list[PathSegment] = []
    seen: set[str] = set()
    for part in split_path(path):
        if (part.startswith("{") and part.endswith("}")) or (
            part.startswith("<") and part.endswith(">")
        ):
            msg = (
                f"Route path {path!r} uses {part!r}; tern marks parameters "
                f"with a leading colon, e.g. ':id'."
            )
            raise ConfigurationError(msg)

        if part.startswith(PARAM_MARKER):
            name = part[len(PARAM_MARKER) :]
            if not name:
                msg = f"Route path {path!r} has a parameter without a name."
                raise ConfigurationError(msg)
            if name in seen:
                msg = f"Route path {path!r} binds parameter {name!r} more than once."
                raise ConfigurationError(msg)
            seen.add(name)
            segments.append(PathSegment(value=part, is_param=True, param_name=name))
        else:
            segments.append(PathSegment(value=part))
    return tuple(segments)


def match_segments(
    segments: tuple[PathSegment, ...],
    parts: list[str],
) -> dict[str, str] | None:
    """Match pattern *segments* against request path *parts*.

    Returns the bound parameters, or ``None`` if the path does not match.
    """
    if len(segments) != len(parts):
        return None

    params: dict[str, str] = {}
    for seg, part in zip(segments, parts, strict=True):
        if seg.is_param:
            if not part:
                return None
            params[seg.param_name or ""] = part
        elif seg.value != part:
            return None
    return params


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.add(Route("GET", "/users/:id", show_user))
        router.compile()
        match = router.resolve("GET", "/users/42")
        # match.params == {"id": "42"}
    """

    __slots__ = ("_compiled", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Append a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        self._routes.append(route)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def resolve(self, method: str, path: str) -> RouteMatch | None:
        """Return the first route matching *method* and *path*, or ``None``."""
        parts = split_path(path)
        for route in self._routes:
            if not route.accepts(method):
                continue
            params = match_segments(route.segments, parts)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None
