import pytest

from kubeloop._cogs.structs.identities import ResourceIdentity
from kubeloop._cogs.structs.references import Resource
from kubeloop._core.reactor.inventory import WatchRegistration, WatchRegistry


@pytest.fixture()
def watches(resource):
    async def handler(notification):
        pass

    watches = WatchRegistry()
    watches.register(WatchRegistration(resource=resource, handler=handler))
    return watches


@pytest.fixture()
def identity(resource, namespace):
    return ResourceIdentity(
        collection_id=resource.collection_id,
        name='w1',
        namespace=namespace,
        resource_version='100',
        api_version=resource.api_version,
        kind='Widget',
    )


@pytest.fixture()
def object_url(resource, namespace):
    def make_url(subresource=None):
        return resource.get_url(namespace=namespace, name='w1', subresource=subresource)
    return make_url


@pytest.fixture()
def unwatched_identity():
    resource = Resource('example.com', 'v1', 'gadgets')
    return ResourceIdentity(
        collection_id=resource.collection_id,
        name='g1',
        namespace=None,
        resource_version='1',
        api_version=resource.api_version,
        kind='Gadget',
    )
