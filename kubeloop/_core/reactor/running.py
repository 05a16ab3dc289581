"""
The operator: the composition of the watchers, the sequencer, and the writers.

An operator is created with an optional "init" callback, which registers
the definitions and the watches once the operator is started::

    async def init(operator: kubeloop.Operator) -> None:
        info = await operator.register_definition('crd.yaml')
        operator.watch_resource(*info.resource(), handler=reconcile)

    kubeloop.run(init)

The watchers run in the background tasks; all their notifications go
to the one single sequencer, which calls the handlers one at a time.
The handlers then use the operator's writers for the statuses and finalizers.
"""
import asyncio
import inspect
import logging
import os
import signal
import threading
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from kubeloop._cogs.aiokits import aiotasks
from kubeloop._cogs.clients import auth
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import typedefs
from kubeloop._cogs.structs import definitions, identities, references
from kubeloop._core.actions import application, finalization
from kubeloop._core.actions import definitions as registering
from kubeloop._core.intents import piggybacking, registries
from kubeloop._core.reactor import inventory, queueing

logger = logging.getLogger(__name__)

InitFn = Callable[['Operator'], Awaitable[None] | None]


class Operator:
    """
    A single operator with its watches, its sequencer, and its API context.

    The API context is either provided, or is created from the environment
    at the start (see :func:`kubeloop.login`). Only the self-created context
    is closed when the operator is closed; the provided one is left open.
    """

    def __init__(
            self,
            init: InitFn | None = None,
            *,
            context: auth.APIContext | None = None,
            settings: configuration.OperatorSettings | None = None,
            registry: registries.OperatorRegistry | None = None,
            logger: typedefs.Logger | None = None,
    ) -> None:
        super().__init__()
        self.settings = settings if settings is not None else configuration.OperatorSettings()
        self.logger: typedefs.Logger = logger if logger is not None else logging.getLogger(__name__)
        self.watches = inventory.WatchRegistry()
        self.sequencer = queueing.EventSequencer(settings=self.settings, logger=self.logger)
        self._init = init
        self._registry = registry
        self._context = context
        self._owns_context = False
        self._sequencer_task: aiotasks.Task | None = None
        self._started = False
        self._closed = False
        self._stopped = asyncio.Event()
        self._error: BaseException | None = None

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {len(self.watches)} watch(es)>'

    @property
    def context(self) -> auth.APIContext:
        if self._context is None:
            raise RuntimeError("The operator is not started: there is no API context yet.")
        return self._context

    async def start(self) -> None:
        """
        Connect to the API, start the sequencer, and run the init callbacks.

        The failures of the init callbacks (e.g. of the definitions' registration)
        are escalated, and the operator remains unusable.
        """
        if self._started:
            raise RuntimeError("The operator is already started.")
        self._started = True

        if self._context is None:
            self._context = auth.APIContext(piggybacking.login())
            self._owns_context = True

        self._sequencer_task = aiotasks.create_guarded_task(
            coro=self.sequencer.run(),
            name='event sequencer',
            logger=self.logger,
        )
        self._sequencer_task.add_done_callback(self._task_done)

        startup_fns: list[InitFn] = []
        if self._registry is not None:
            startup_fns.extend(handler.fn for handler in self._registry.get_startup_handlers())
        if self._init is not None:
            startup_fns.append(self._init)
        for fn in startup_fns:
            result = fn(self)
            if inspect.isawaitable(result):
                await result

        # The watches registered before the start are spawned now.
        for registration in self.watches:
            if registration.task is None:
                self._spawn(registration)
        self.logger.info(f"The operator is started with {len(self.watches)} watch(es).")

    async def stop(self) -> None:
        """
        Stop watching all the resources.

        The notifications that are already queued, and the handler that is
        running at the moment, are not cancelled: they can still be executed
        for some short time after the stop. Use :meth:`close` to stop them.
        """
        self._stopped.set()
        await aiotasks.stop(self.watches.tasks, title="watcher", logger=self.logger)

    async def close(self) -> None:
        """
        Stop everything and release the resources. The operator cannot be restarted.
        """
        if self._closed:
            return
        self._closed = True
        await self.stop()
        if self._sequencer_task is not None:
            await aiotasks.stop([self._sequencer_task], title="sequencer", logger=self.logger)
        if self._context is not None and self._owns_context:
            await self._context.close()

    async def run(self, *, stop_flag: aiotasks.Future | None = None) -> None:
        """
        Start the operator and serve until it is stopped or fails.

        The operator fails if the watch-streams are rejected by the API server
        (:class:`WatchingFatalError`), or if the handlers fail while the
        sequencing is configured to halt (:class:`HandlerFailedError`).
        The errors are re-raised here after the operator is closed.
        """
        try:
            if not self._started:
                await self.start()

            stop_waiter = asyncio.create_task(self._stopped.wait(), name='stop waiter')
            waiters: list[aiotasks.Future] = [stop_waiter]
            if stop_flag is not None:
                waiters.append(stop_flag)
            try:
                done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                stop_waiter.cancel()

            if stop_flag is not None and stop_flag in done:
                result = stop_flag.result()
                if isinstance(result, signal.Signals):
                    self.logger.info(f"Signal {result.name} is received. Operator is stopping.")
                else:
                    self.logger.info("Stop-flag is raised. Operator is stopping.")
        finally:
            await self.close()

        if self._error is not None:
            raise self._error

    def watch_resource(
            self,
            group: str,
            version: str,
            plural: str,
            handler: queueing.NotificationFn,
            namespace: str | None = None,
    ) -> inventory.WatchRegistration:
        """
        Watch a collection and call the handler for every notification from it.

        If the operator is already started, the watching starts immediately.
        Otherwise, it starts when the operator is started.
        """
        resource = references.Resource(group=group, version=version, plural=plural)
        registration = inventory.WatchRegistration(
            resource=resource,
            handler=handler,
            namespace=namespace,
        )
        self.watches.register(registration)
        if self._started and not self._stopped.is_set():
            self._spawn(registration)
        return registration

    def get_resource_url(
            self,
            group: str,
            version: str,
            plural: str,
            namespace: str | None = None,
    ) -> str:
        """
        The absolute URL of a collection (if started), or its path (if not yet).
        """
        resource = references.Resource(group=group, version=version, plural=plural)
        server = self._context.server if self._context is not None else None
        return resource.get_url(server=server, namespace=namespace)

    async def register_definition(
            self,
            source: str | os.PathLike[str] | Mapping[str, Any],
    ) -> definitions.DefinitionInfo:
        return await registering.register_definition(
            source,
            settings=self.settings,
            context=self.context,
            logger=self.logger,
        )

    async def set_status(
            self,
            identity: identities.ResourceIdentity,
            status: Mapping[str, Any],
    ) -> identities.ResourceIdentity | None:
        return await application.set_status(
            settings=self.settings,
            context=self.context,
            registry=self.watches,
            identity=identity,
            status=status,
            logger=self.logger,
        )

    async def patch_status(
            self,
            identity: identities.ResourceIdentity,
            status: Mapping[str, Any],
    ) -> identities.ResourceIdentity | None:
        return await application.patch_status(
            settings=self.settings,
            context=self.context,
            registry=self.watches,
            identity=identity,
            status=status,
            logger=self.logger,
        )

    async def set_finalizers(
            self,
            identity: identities.ResourceIdentity,
            finalizers: Sequence[str],
    ) -> identities.ResourceIdentity | None:
        return await application.set_finalizers(
            settings=self.settings,
            context=self.context,
            registry=self.watches,
            identity=identity,
            finalizers=finalizers,
            logger=self.logger,
        )

    async def handle_resource_finalizer(
            self,
            notification: identities.Notification,
            finalizer: str,
            delete_action: finalization.DeleteFn,
    ) -> bool:
        return await finalization.handle_finalizer(
            notification,
            finalizer=finalizer,
            delete_action=delete_action,
            writer=self.set_finalizers,
        )

    def _spawn(self, registration: inventory.WatchRegistration) -> None:
        name = f'watcher for {registration.collection_id}'
        registration.task = aiotasks.create_guarded_task(
            name=name,
            logger=self.logger,
            coro=queueing.watcher(
                settings=self.settings,
                context=self.context,
                resource=registration.resource,
                namespace=registration.namespace,
                handler=registration.handler,
                sequencer=self.sequencer,
            ),
        )
        registration.task.add_done_callback(self._task_done)

    def _task_done(self, task: aiotasks.Task) -> None:
        # The first failure of the background tasks fails the whole operator.
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None and self._error is None:
            self._error = exc
            self._stopped.set()


def run(
        init: InitFn | None = None,
        *,
        context: auth.APIContext | None = None,
        settings: configuration.OperatorSettings | None = None,
        registry: registries.OperatorRegistry | None = None,
        logger: typedefs.Logger | None = None,
) -> None:
    """
    Run the whole operator synchronously.

    This function should be used to run an operator in normal sync mode.
    """
    try:
        asyncio.run(operator(
            init,
            context=context,
            settings=settings,
            registry=registry,
            logger=logger,
        ))
    except asyncio.CancelledError:
        pass


async def operator(
        init: InitFn | None = None,
        *,
        context: auth.APIContext | None = None,
        settings: configuration.OperatorSettings | None = None,
        registry: registries.OperatorRegistry | None = None,
        logger: typedefs.Logger | None = None,
        stop_flag: aiotasks.Future | None = None,
) -> None:
    """
    Run the whole operator asynchronously, until stopped by a signal or a flag.

    This function should be used to run an operator in an asyncio event-loop
    if the operator is orchestrated explicitly and manually.
    The startup callbacks of the default registry are used unless
    a registry is explicitly provided.
    """
    loop = asyncio.get_running_loop()
    registry = registry if registry is not None else registries.get_default_registry()
    signal_flag: aiotasks.Future = stop_flag if stop_flag is not None else loop.create_future()
    op = Operator(init, context=context, settings=settings, registry=registry, logger=logger)

    # On Ctrl+C or pod termination, stop the operator gracefully.
    signals_installed = False
    if stop_flag is None and threading.current_thread() is threading.main_thread():
        try:
            loop.add_signal_handler(signal.SIGINT, _set_once, signal_flag, signal.SIGINT)
            loop.add_signal_handler(signal.SIGTERM, _set_once, signal_flag, signal.SIGTERM)
            signals_installed = True
        except NotImplementedError:
            op.logger.warning("OS signals are ignored: can't add signal handler in Windows.")
    elif stop_flag is None:
        op.logger.warning("OS signals are ignored: running not in the main thread.")

    try:
        await op.run(stop_flag=signal_flag)
    finally:
        if signals_installed:
            loop.remove_signal_handler(signal.SIGINT)
            loop.remove_signal_handler(signal.SIGTERM)


def _set_once(flag: aiotasks.Future, value: object) -> None:
    if not flag.done():
        flag.set_result(value)
