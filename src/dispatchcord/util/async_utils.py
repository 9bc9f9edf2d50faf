import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged.

    Handlers, hooks and extension functions may be plain functions or coroutine
    functions; callers invoke them and pass the result through here.
    """
    if inspect.isawaitable(value):
        return await value
    return value
