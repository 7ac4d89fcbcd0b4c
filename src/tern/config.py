"""Application configuration.

AppConfig is a frozen dataclass, immutable after creation. Settings are
attributes, not string keys.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=8080)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    # Reload (development mode, requires debug=True)
    reload_include: tuple[str, ...] = ()  # Extra extensions to watch (e.g. ".html")
    reload_dirs: tuple[str, ...] = ()  # Extra directories to watch alongside cwd

    # Templates
    template_dir: str | Path = "templates"
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Static files
    static_dir: str | Path = "static"
    static_url: str = "/static"

    # Logging
    log_level: str = "info"
