"""Static file serving middleware.

Serves files from a directory for request paths under a URL prefix.
Other prefixes, other methods and missing files fall through to the
next middleware, so application routes still get a chance to answer.
"""

import logging
import mimetypes
from pathlib import Path

from tern.context import Context
from tern.middleware.protocol import Next

logger = logging.getLogger("tern.server")


class StaticFiles:
    """Middleware that serves static files from a directory.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        app.use(StaticFiles(directory="./static", prefix="/static"))

        # or the shortcut
        app.serve("/static", directory="./static")
    """

    __slots__ = ("_cache_control", "_directory", "_index", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/static",
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

        # Normalize prefix: leading slash, no trailing slash, "/" -> "".
        stripped = "/" + prefix.strip("/")
        self._prefix = stripped if stripped != "/" else ""

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def prefix(self) -> str:
        return self._prefix or "/"

    async def __call__(self, ctx: Context, next: Next) -> None:
        """Serve a static file or fall through."""
        if ctx.method not in ("GET", "HEAD"):
            await next()
            return

        relative = self._relative_path(ctx.path)
        if relative is None:
            await next()
            return

        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            logger.debug("403 %s %s — outside %s", ctx.method, ctx.path, self._directory)
            ctx.status = 403
            ctx.body = "Forbidden"
            return

        if file_path.is_dir():
            file_path = file_path / self._index

        if not file_path.is_file():
            await next()
            return

        self._serve_file(ctx, file_path)

    def _relative_path(self, path: str) -> str | None:
        """Path below the prefix, or ``None`` if *path* is not under it."""
        if not self._prefix:
            return path.lstrip("/")
        if path != self._prefix and not path.startswith(self._prefix + "/"):
            return None
        return path[len(self._prefix) :].lstrip("/")

    def _serve_file(self, ctx: Context, file_path: Path) -> None:
        content_type, _ = mimetypes.guess_type(str(file_path))
        ctx.content_type = content_type or "application/octet-stream"
        ctx.set_header("Cache-Control", self._cache_control)
        ctx.status = 200
        ctx.body = file_path.read_bytes()
