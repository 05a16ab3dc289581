"""
Background tasks of the operator: the watchers and the event sequencer.

Both kinds of tasks run until the operator stops them by cancellation.
A cancelled task is a normal stop and is not reported. A task that fails
is reported at once, when it fails, not later when the operator collects
its result. A task that exits on its own is reported as a misbehaviour.
"""
import asyncio
from collections.abc import Collection, Coroutine
from typing import TYPE_CHECKING, Any

from kubeloop._cogs.helpers import typedefs

# The generic aliases are not subscriptable at runtime on all supported versions.
if TYPE_CHECKING:
    Future = asyncio.Future[Any]
    Task = asyncio.Task[Any]
else:
    Future = asyncio.Future
    Task = asyncio.Task


async def guard(
        coro: Coroutine[Any, Any, Any],
        name: str,
        *,
        logger: typedefs.Logger | None = None,
) -> None:
    capname = name.capitalize()
    try:
        await coro
    except Exception as e:
        if logger is not None:
            logger.exception(f"{capname} has failed: {e}")
        raise
    else:
        if logger is not None:
            logger.warning(f"{capname} has exited while the operator is running.")


def create_guarded_task(
        coro: Coroutine[Any, Any, Any],
        name: str,
        *,
        logger: typedefs.Logger | None = None,
) -> Task:
    """ Start a named background task with its failures reported by :func:`guard`. """
    return asyncio.create_task(guard(coro, name, logger=logger), name=name)


async def stop(
        tasks: Collection[Task],
        *,
        title: str,
        logger: typedefs.Logger | None = None,
) -> set[Task]:
    """
    Cancel the tasks and wait until all of them exit.

    Returns the tasks that were still running and had to be cancelled.
    There is no timeout: a task that ignores the cancellation holds
    the stopping until it exits, or until the stopping itself is cancelled.
    """
    running = {task for task in tasks if not task.done()}
    if not running:
        return set()

    for task in running:
        task.cancel()
    await asyncio.wait(running)

    if logger is not None:
        logger.debug(f"{title.capitalize()} tasks are stopped: {len(running)} cancelled.")
    return running
