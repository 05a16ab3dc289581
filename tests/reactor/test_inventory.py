import pytest

from kubeloop._cogs.structs.identities import ResourceIdentity
from kubeloop._cogs.structs.references import Resource
from kubeloop._core.reactor.inventory import WatchRegistration, WatchRegistry


async def handler(notification):
    pass


def make_identity(namespace='ns1', collection_id='widgets.example.com/v1'):
    return ResourceIdentity(
        collection_id=collection_id,
        name='w1',
        namespace=namespace,
        resource_version='1',
        api_version='example.com/v1',
        kind='Widget',
    )


def test_registration_is_keyed_by_collection_id():
    registry = WatchRegistry()
    resource = Resource('example.com', 'v1', 'widgets')
    registration = registry.register(WatchRegistration(resource=resource, handler=handler))

    assert len(registry) == 1
    assert 'widgets.example.com/v1' in registry
    assert registry.get('widgets.example.com/v1') is registration
    assert list(registry) == [registration]


def test_duplicate_registration_is_an_error():
    registry = WatchRegistry()
    resource = Resource('example.com', 'v1', 'widgets')
    registry.register(WatchRegistration(resource=resource, handler=handler))
    with pytest.raises(ValueError):
        registry.register(WatchRegistration(resource=resource, handler=handler, namespace='ns1'))


def test_unknown_collection_is_a_lookup_error():
    registry = WatchRegistry()
    with pytest.raises(LookupError):
        registry.build_url(make_identity())


@pytest.mark.parametrize('namespace, subresource, expected', [
    (None, None, '/apis/example.com/v1/widgets/w1'),
    ('ns1', None, '/apis/example.com/v1/namespaces/ns1/widgets/w1'),
    ('ns1', 'status', '/apis/example.com/v1/namespaces/ns1/widgets/w1/status'),
])
def test_urls_use_the_object_namespace(namespace, subresource, expected):
    registry = WatchRegistry()
    resource = Resource('example.com', 'v1', 'widgets')
    registry.register(WatchRegistration(resource=resource, handler=handler, namespace='other'))
    url = registry.build_url(make_identity(namespace=namespace), subresource=subresource)
    assert url == expected


def test_tasks_are_only_those_started():
    registry = WatchRegistry()
    registry.register(WatchRegistration(resource=Resource('example.com', 'v1', 'widgets'),
                                        handler=handler))
    assert registry.tasks == []
