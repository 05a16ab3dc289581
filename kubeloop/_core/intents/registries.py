"""
A registry of the startup callbacks of the operators.

The startup callbacks are the operator's "init" routines: they are called
once per operator start, with the operator itself as the only argument,
and are expected to register the resource definitions and the watches.

They are usually declared in the operator's files with the decorators
(see :func:`kubeloop.on.startup`), and the files are loaded by the CLI
before the operator is started, so the default registry is used implicitly.
"""
import dataclasses
import functools
from collections.abc import Awaitable, Callable
from types import FunctionType, MethodType
from typing import Any

# The operator is not typed here to avoid the circular imports with the reactor.
StartupFn = Callable[[Any], Awaitable[None] | None]


@dataclasses.dataclass(frozen=True)
class StartupHandler:
    fn: StartupFn
    id: str


class OperatorRegistry:
    """
    A global registry is used for handling of multiple resources & activities.

    It is usually populated by the ``@kubeloop.on...`` decorators,
    but can also be explicitly created and used in the embedded operators.
    """

    def __init__(self) -> None:
        super().__init__()
        self._startups: list[StartupHandler] = []

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {len(self._startups)} startup handler(s)>'

    def register_startup(self, fn: StartupFn, *, id: str | None = None) -> StartupFn:
        real_id = id if id is not None else get_callable_id(fn)
        if any(handler.id == real_id for handler in self._startups):
            raise ValueError(f"A startup handler {real_id!r} is already registered.")
        self._startups.append(StartupHandler(fn=fn, id=real_id))
        return fn

    def get_startup_handlers(self) -> list[StartupHandler]:
        return list(self._startups)


def get_callable_id(c: Callable[..., Any]) -> str:
    """ Get an reasonably good id of any commonly used callable. """
    if c is None:
        raise ValueError("Cannot build a persistent id of None.")
    elif isinstance(c, functools.partial):
        return get_callable_id(c.func)
    elif hasattr(c, '__wrapped__'):  # @functools.wraps()
        return get_callable_id(getattr(c, '__wrapped__'))
    elif isinstance(c, FunctionType) and c.__name__ == '<lambda>':
        line = c.__code__.co_firstlineno
        path = c.__code__.co_filename
        return f'lambda:{path}:{line}'
    elif isinstance(c, (FunctionType, MethodType)):
        return str(getattr(c, '__qualname__', getattr(c, '__name__', repr(c))))
    else:
        raise ValueError(f"Cannot get id of {c!r}.")


_default_registry: OperatorRegistry | None = None


def get_default_registry() -> OperatorRegistry:
    """
    Get the default registry to be used by the decorators and the operators
    unless the explicit registry is provided to them.
    """
    global _default_registry
    if _default_registry is None:
        _default_registry = OperatorRegistry()
    return _default_registry


def set_default_registry(registry: OperatorRegistry) -> None:
    """
    Set the default registry to be used by the decorators and the operators
    unless the explicit registry is provided to them.
    """
    global _default_registry
    _default_registry = registry
