"""Call sync or async callables uniformly.

Models, lifecycle hooks and permission lookups may be written as plain
``def`` or ``async def``. Every call site goes through ``invoke()`` so
the awaitable check lives in one place.
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result when it is awaitable."""
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
