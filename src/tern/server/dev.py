"""Development server.

Starts a pounce ASGI server with the live tern App object, single
worker, optional reload.
"""

import logging
import platform

from tern.errors import ConfigurationError

logger = logging.getLogger("tern.app")


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    reload_include: tuple[str, ...] = (),
    reload_dirs: tuple[str, ...] = (),
) -> None:
    """Start a pounce server bound to *host*:*port* serving *app*.

    Pounce's ``run()`` takes an import string, but tern has a live
    ``App`` object, so ``pounce.Server`` is used directly with the ASGI
    callable.

    Args:
        app: ASGI callable (tern App instance).
        host: Bind host address.
        port: Bind port number.
        reload: Enable auto-reload on file changes.
        reload_include: Extra file extensions to watch when reloading.
        reload_dirs: Extra directories to watch alongside cwd.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError:
        msg = (
            "App.run() requires the 'pounce' ASGI server. "
            "Install it with: pip install tern[server]"
        )
        raise ConfigurationError(msg) from None

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_include=reload_include,
        reload_dirs=reload_dirs,
    )

    logger.info("Python version: %s", platform.python_version())
    logger.info("Server is running at http://%s:%d", host, port)
    Server(config, app).run()
