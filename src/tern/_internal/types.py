"""Shared type aliases used across tern modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: same shape as middleware: (ctx, next)
Handler: TypeAlias = Callable[..., Any]

# Error listener: receives (exc, ctx), sync or async
ErrorListener: TypeAlias = Callable[..., Any]

# Lifecycle hook: no arguments, sync or async
Hook: TypeAlias = Callable[[], Any]
