"""
A widgets operator: every widget is marked as ready, and cleaned up on deletion.

Run it from the repository's root::

    kubeloop register examples/crd.yaml
    kubeloop run examples/01-widgets/example.py --verbose
    kubectl apply -f examples/obj.yaml
    kubectl delete -f examples/obj.yaml
"""
import os.path

import kubeloop

FINALIZER = 'kubeloop.dev/widget-cleanup'
CRD_PATH = os.path.join(os.path.dirname(__file__), '..', 'crd.yaml')


async def cleanup(notification: kubeloop.Notification) -> None:
    print(f"Cleaning up after {notification.identity}")


@kubeloop.on.startup()
async def init(operator: kubeloop.Operator) -> None:
    info = await operator.register_definition(CRD_PATH)

    async def reconcile(notification: kubeloop.Notification) -> None:
        if await operator.handle_resource_finalizer(notification, FINALIZER, cleanup):
            return
        if notification.type is kubeloop.EventType.DELETED:
            return
        size = notification.object.get('spec', {}).get('size')
        await operator.patch_status(notification.identity, {'phase': 'Ready', 'size': size})

    operator.watch_resource(*info.resource(), handler=reconcile)
