import pytest

from kubeloop._cogs.structs.identities import Notification


@pytest.fixture()
def make_notification():
    def factory(name, type='ADDED', *, apiVersion='example.com/v1', plural='widgets', **meta):
        body = {
            'apiVersion': apiVersion,
            'kind': 'Widget',
            'metadata': dict(dict(name=name, resourceVersion='1'), **meta),
        }
        return Notification.from_raw_event({'type': type, 'object': body}, plural=plural)
    return factory
