"""
The decorators for the operator's startup routines.

Usually, the operator's file is loaded by the CLI (``kubeloop run file.py``),
and the decorated functions are called once the operator starts::

    import kubeloop

    @kubeloop.on.startup()
    async def init(operator):
        info = await operator.register_definition('crd.yaml')
        operator.watch_resource(*info.resource(), handler=reconcile)

This module is a part of the framework's public interface.
"""

from collections.abc import Callable

from kubeloop._core.intents import registries

StartupDecorator = Callable[[registries.StartupFn], registries.StartupFn]


def startup(
        *,
        id: str | None = None,
        registry: registries.OperatorRegistry | None = None,
) -> StartupDecorator:
    def decorator(fn: registries.StartupFn) -> registries.StartupFn:
        real_registry = registry if registry is not None else registries.get_default_registry()
        return real_registry.register_startup(fn, id=id)
    return decorator
