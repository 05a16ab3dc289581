import pytest

from kubeloop._cogs.clients.errors import APIConflictError, APIForbiddenError
from kubeloop._cogs.structs.credentials import ConnectionInfo, LoginError


@pytest.fixture()
def login(mocker, hostname):
    return mocker.patch('kubeloop._core.intents.piggybacking.login',
                        return_value=ConnectionInfo(server=f'https://{hostname}'))


@pytest.fixture()
def create_obj(mocker):
    return mocker.patch('kubeloop._cogs.clients.creating.create_obj', new_callable=mocker.AsyncMock)


def test_definitions_are_registered(invoke, login, create_obj):
    result = invoke(['register', 'crd.yaml'])

    assert result.exit_code == 0, result.output
    assert create_obj.await_count == 1
    assert create_obj.call_args[1]['url'] == '/apis/apiextensions.k8s.io/v1/customresourcedefinitions'
    assert create_obj.call_args[1]['body']['metadata']['name'] == 'widgets.example.com'
    assert result.stdout.splitlines() == ['example.com/v1/widgets', 'example.com/v2/widgets']


def test_existing_definitions_are_fine(invoke, login, create_obj):
    create_obj.side_effect = APIConflictError({'message': 'exists'}, status=409)

    result = invoke(['register', 'crd.yaml'])

    assert result.exit_code == 0, result.output
    assert create_obj.await_count == 1
    assert result.stdout.splitlines() == ['example.com/v1/widgets', 'example.com/v2/widgets']


def test_rejected_definitions_fail(invoke, login, create_obj):
    create_obj.side_effect = APIForbiddenError({'message': 'forbidden'}, status=403)

    result = invoke(['register', 'crd.yaml'])

    assert result.exit_code == 1
    assert 'forbidden' in result.output


def test_broken_definitions_fail(invoke, login, create_obj, srcdir):
    srcdir.join('broken.yaml').write('kind: CustomResourceDefinition\nspec: {}\n')

    result = invoke(['register', 'broken.yaml'])

    assert result.exit_code == 1
    assert 'spec.group' in result.output
    assert not create_obj.called


def test_no_credentials_fail(invoke, mocker, create_obj):
    mocker.patch('kubeloop._core.intents.piggybacking.login', side_effect=LoginError('no creds'))

    result = invoke(['register', 'crd.yaml'])

    assert result.exit_code == 1
    assert 'no creds' in result.output
    assert not create_obj.called


def test_paths_are_required(invoke):
    result = invoke(['register'])
    assert result.exit_code != 0
