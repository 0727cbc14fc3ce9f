"""
Releasable resources and adapters.
"""
from typing import Any, Callable, ContextManager, Protocol, runtime_checkable


@runtime_checkable
class Releasable(Protocol):
    """Anything with a ``close()`` that either returns or raises."""

    def close(self) -> None:
        ...


class CallbackResource:
    """Releases by calling ``func(*args, **kwargs)``."""

    def __init__(self, func: Callable[..., Any], *args: Any, **kwargs: Any):
        self.func = func
        self.args = args
        self.kwargs = kwargs

    def close(self) -> None:
        self.func(*self.args, **self.kwargs)

    def __repr__(self) -> str:
        name = getattr(self.func, '__qualname__', repr(self.func))
        return f"{self.__class__.__name__}({name})"


class ContextResource:
    """
    Releases an already-entered context manager.

    ``close()`` calls ``__exit__(None, None, None)``; a truthy return value
    has no meaning here and is ignored.
    """

    def __init__(self, context_manager: ContextManager[Any]):
        self.context_manager = context_manager
        self._exit = type(context_manager).__exit__

    def close(self) -> None:
        self._exit(self.context_manager, None, None, None)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.context_manager!r})"


def describe(resource: Any) -> str:
    """Short label for log lines."""
    try:
        return repr(resource)
    except Exception:
        return f"<{type(resource).__name__} at {id(resource):#x}>"
