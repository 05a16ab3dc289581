"""
The safe deletion of objects with a finalizer of the operator.

While the object exists and is not being deleted, our finalizer is added to it,
so that the object's deletion is blocked until the operator releases it.
When the object is marked for deletion (``deletionTimestamp`` is set),
the operator's delete-action is executed, and the finalizer is removed,
so that the server can finally delete the object.

The delete-action can be executed more than once for the same object:
e.g. if the operator is restarted after the action but before the finalizer
is removed, or if the removal fails. So, the delete-actions must be idempotent.
"""
from collections.abc import Awaitable, Callable, Sequence

from kubeloop._cogs.structs import bodies, finalizers, identities

DeleteFn = Callable[[identities.Notification], Awaitable[object]]
FinalizersWriterFn = Callable[
    [identities.ResourceIdentity, Sequence[str]],
    Awaitable[identities.ResourceIdentity | None],
]


async def handle_finalizer(
        notification: identities.Notification,
        *,
        finalizer: str,
        delete_action: DeleteFn,
        writer: FinalizersWriterFn,
) -> bool:
    """
    Add or remove the finalizer depending on the state of the object.

    Returns ``True`` if the handling of this notification should end here:
    either a finalizer was just added (a new notification will follow),
    or the object is being deleted. Returns ``False`` if the object
    is alive and finalized, so the regular reconciliation can proceed.

    If the delete-action fails, the error is escalated and the finalizer
    is kept, so the deletion remains blocked until the next attempt.
    """
    if notification.type is bodies.EventType.DELETED:
        return False

    current = notification.finalizers
    if not finalizers.is_deletion_ongoing(notification.object):
        if finalizers.is_deletion_blocked(notification.object, finalizer):
            return False
        await writer(notification.identity, finalizers.with_finalizer(current, finalizer))
        return True

    if finalizers.is_deletion_blocked(notification.object, finalizer):
        await delete_action(notification)
        await writer(notification.identity, finalizers.without_finalizer(current, finalizer))
    return True
