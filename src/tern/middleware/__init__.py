"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(ctx: Context, next: Next) -> None

Composition:
    compose -- Build an onion-ordered Pipeline from a middleware sequence

Built-in middleware:
    StaticFiles -- Serve static files from a directory
    TemplateEngine -- kida template rendering (requires tern[templates])
"""

from tern.middleware.compose import Pipeline, compose
from tern.middleware.engine import TemplateEngine, TemplateOptions
from tern.middleware.protocol import Middleware, Next
from tern.middleware.static import StaticFiles

__all__ = [
    "Middleware",
    "Next",
    "Pipeline",
    "StaticFiles",
    "TemplateEngine",
    "TemplateOptions",
    "compose",
]
