import pytest

from kubeloop._cogs.structs.definitions import DefinitionError, DefinitionInfo, \
                                              definition_url, parse_definition
from kubeloop._cogs.structs.references import Resource

CRD_V1 = {
    'apiVersion': 'apiextensions.k8s.io/v1',
    'kind': 'CustomResourceDefinition',
    'metadata': {'name': 'widgets.example.com'},
    'spec': {
        'group': 'example.com',
        'scope': 'Namespaced',
        'names': {'plural': 'widgets', 'singular': 'widget', 'kind': 'Widget'},
        'versions': [
            {'name': 'v1alpha1', 'served': False, 'storage': False},
            {'name': 'v1', 'served': True, 'storage': True},
        ],
    },
}

CRD_V1BETA1 = {
    'apiVersion': 'apiextensions.k8s.io/v1beta1',
    'kind': 'CustomResourceDefinition',
    'metadata': {'name': 'widgets.example.com'},
    'spec': {
        'group': 'example.com',
        'version': 'v1',
        'names': {'plural': 'widgets', 'kind': 'Widget'},
    },
}


def test_v1_definition_is_parsed():
    info = parse_definition(CRD_V1)
    assert isinstance(info, DefinitionInfo)
    assert info.name == 'widgets.example.com'
    assert info.group == 'example.com'
    assert info.plural == 'widgets'
    assert info.kind == 'Widget'
    assert info.scope == 'Namespaced'
    assert info.version_names == ['v1alpha1', 'v1']


def test_legacy_single_version_is_parsed():
    info = parse_definition(CRD_V1BETA1)
    assert info.version_names == ['v1']
    assert info.resource() == Resource('example.com', 'v1', 'widgets')


def test_resource_of_first_served_version():
    info = parse_definition(CRD_V1)
    assert info.resource() == Resource('example.com', 'v1', 'widgets')


def test_resource_of_explicit_version():
    info = parse_definition(CRD_V1)
    assert info.resource('v1alpha1') == Resource('example.com', 'v1alpha1', 'widgets')


def test_resource_of_unknown_version():
    info = parse_definition(CRD_V1)
    with pytest.raises(DefinitionError):
        info.resource('v2')


@pytest.mark.parametrize('spec', [
    pytest.param({'names': {'plural': 'widgets'}, 'versions': [{'name': 'v1'}]}, id='no-group'),
    pytest.param({'group': 'example.com', 'versions': [{'name': 'v1'}]}, id='no-plural'),
    pytest.param({'group': 'example.com', 'names': {'plural': 'widgets'}}, id='no-versions'),
])
def test_incomplete_definitions_are_rejected(spec):
    with pytest.raises(DefinitionError):
        parse_definition({'metadata': {'name': 'x'}, 'spec': spec})


def test_non_mapping_is_rejected():
    with pytest.raises(DefinitionError):
        parse_definition(['not', 'a', 'mapping'])


@pytest.mark.parametrize('api_version, expected', [
    ('apiextensions.k8s.io/v1', '/apis/apiextensions.k8s.io/v1/customresourcedefinitions'),
    ('apiextensions.k8s.io/v1beta1', '/apis/apiextensions.k8s.io/v1beta1/customresourcedefinitions'),
    ('v1', '/default'),
    ('', '/default'),
    (None, '/default'),
])
def test_definition_url_follows_the_api_version(api_version, expected):
    url = definition_url({'apiVersion': api_version}, default='/default')
    assert url == expected


def test_definition_url_without_api_version():
    url = definition_url({}, default='/default')
    assert url == '/default'
