"""
Kubernetes watching/streaming and the global sequencing of the notifications.

The framework can handle multiple resources at once.
Every resource type is "watched" (as in ``kubectl get --watch``)
in a separate asyncio task in the never-ending loop.

The notifications for all resource types (of all their objects) are then
pushed to one single global queue, and are handled strictly sequentially:
one notification at a time, in the order of their arrival.
The handler of a notification is invoked only when the previous one
has finished, so the handlers never overlap, even across the resources.

This is simple and safe, but slow: one slow handler delays all others.
The queue is unbounded by default, so a fast stream with slow handlers
accumulates a backlog in memory (see ``settings.queueing.max_size``).
"""
import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, NamedTuple

from kubeloop._cogs.clients import auth, watching
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import typedefs
from kubeloop._cogs.structs import identities, references
from kubeloop._core.engines import loggers

logger = logging.getLogger(__name__)

NotificationFn = Callable[[identities.Notification], Awaitable[object]]


class HandlerFailedError(Exception):
    """
    Raised when a notification handler fails and the sequencing is halted.
    """


class Delivery(NamedTuple):
    """ A single notification with the handler to be called for it. """
    notification: identities.Notification
    handler: NotificationFn


if TYPE_CHECKING:
    DeliveryQueue = asyncio.Queue[Delivery]
else:
    DeliveryQueue = asyncio.Queue


class EventSequencer:
    """
    A single global FIFO queue of notifications with one single consumer.

    The producers (the watchers) push the notifications with their handlers.
    The consumer (:meth:`run`, usually in a dedicated task) takes them
    one by one and awaits for each handler before taking the next one.
    """

    def __init__(
            self,
            *,
            settings: configuration.OperatorSettings,
            logger: typedefs.Logger | None = None,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._queue: DeliveryQueue = asyncio.Queue(maxsize=settings.queueing.max_size)
        self._processing = False

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}: {self.size()} queued>'

    @property
    def processing(self) -> bool:
        """ Whether a handler is being executed at the moment. """
        return self._processing

    def size(self) -> int:
        """ How many notifications are waiting, excluding the one being handled. """
        return self._queue.qsize()

    async def push(self, notification: identities.Notification, handler: NotificationFn) -> None:
        """
        Queue a notification; wait only if the queue is bounded and full.
        """
        await self._queue.put(Delivery(notification=notification, handler=handler))

    def push_nowait(self, notification: identities.Notification, handler: NotificationFn) -> None:
        """ Queue a notification; fail with :class:`asyncio.QueueFull` if the queue is full. """
        self._queue.put_nowait(Delivery(notification=notification, handler=handler))

    async def join(self) -> None:
        """ Wait until all the queued notifications are handled. """
        await self._queue.join()

    async def run(self) -> None:
        """
        Consume the queue forever, handling one notification at a time.

        With the "continue" policy, the failed handlers are logged and skipped.
        With the "halt" policy, the first failed handler stops the consumption
        with :class:`HandlerFailedError`. The cancellations are never suppressed.
        """
        while True:
            delivery = await self._queue.get()
            notification = delivery.notification
            object_logger = loggers.ObjectLogger(identity=notification.identity, logger=self._logger)
            self._processing = True
            try:
                await delivery.handler(notification)
            except Exception as e:
                if self._settings.queueing.error_policy is configuration.ErrorPolicy.HALT:
                    raise HandlerFailedError(
                        f"Handler failed for {notification.type.value} "
                        f"of {notification.identity.collection_id}: {e!r}") from e
                object_logger.exception(
                    f"Handler failed for {notification.type.value} "
                    f"of {notification.identity.collection_id}; continuing.")
            finally:
                self._processing = False
                self._queue.task_done()


async def watcher(
        *,
        settings: configuration.OperatorSettings,
        context: auth.APIContext,
        resource: references.Resource,
        namespace: str | None,
        handler: NotificationFn,
        sequencer: EventSequencer,
        _iterations: int | None = None,  # used in tests/mocks/fixtures
) -> None:
    """
    The watcher watches for the resource events via the API and feeds the sequencer.

    Every raw event is converted to a notification before queueing.
    The malformed events (those without an identity) are logged and dropped,
    the stream itself goes on.

    The watcher is generally a never-ending task (unless a fatal error happens
    or it is cancelled). It is cancelled when the operator is stopped.
    """
    stream = watching.infinite_watch(
        settings=settings,
        context=context,
        resource=resource,
        namespace=namespace,
        _iterations=_iterations,
    )
    async with contextlib.aclosing(stream):
        async for raw_event in stream:
            try:
                notification = identities.Notification.from_raw_event(raw_event, plural=resource.plural)
            except identities.MalformedEventError as e:
                logger.warning(f"Dropping a malformed event of {resource}: {e}")
                continue

            await sequencer.push(notification, handler)
