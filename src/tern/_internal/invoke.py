"""Invoke helpers — call sync or async callables uniformly.

Middleware, route handlers, lifecycle hooks, and error listeners can all
be ``def`` or ``async def``. The sync/async check lives here and nowhere
else.

Usage::

    from tern._internal.invoke import invoke

    result = await invoke(middleware, ctx, next)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it is awaitable.

    Exceptions raised synchronously by *func* surface from the ``await``
    exactly like exceptions raised inside a coroutine, so callers handle
    both the same way.
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
