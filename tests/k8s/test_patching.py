import aiohttp.web
import pytest

from kubeloop._cogs.clients.errors import APIConflictError
from kubeloop._cogs.clients.patching import patch_obj, replace_obj


async def test_patch_is_a_merge_patch(
        context, settings, logger, resp_mocker, aresponses, hostname, resource, namespace):

    url = resource.get_url(namespace=namespace, name='w1', subresource='status')
    patch_mock = resp_mocker(return_value=aiohttp.web.json_response({'status': {'x': 'y'}}))
    aresponses.add(hostname, url, 'patch', patch_mock)

    patch = {'status': {'x': 'y'}}
    result = await patch_obj(settings=settings, context=context, url=url, patch=patch, logger=logger)

    assert result == {'status': {'x': 'y'}}
    assert patch_mock.called
    request = patch_mock.call_args_list[0][0][0]
    assert request.headers['Content-Type'] == 'application/merge-patch+json'
    assert request['data'] == {'status': {'x': 'y'}}


async def test_replace_is_a_put(
        context, settings, logger, resp_mocker, aresponses, hostname, resource, namespace):

    url = resource.get_url(namespace=namespace, name='w1', subresource='status')
    put_mock = resp_mocker(return_value=aiohttp.web.json_response({'status': {'x': 'y'}}))
    aresponses.add(hostname, url, 'put', put_mock)

    body = {'metadata': {'name': 'w1', 'resourceVersion': '1'}, 'status': {'x': 'y'}}
    result = await replace_obj(settings=settings, context=context, url=url, body=body, logger=logger)

    assert result == {'status': {'x': 'y'}}
    assert put_mock.called
    request = put_mock.call_args_list[0][0][0]
    assert request['data'] == body


async def test_conflicts_are_escalated(
        context, settings, logger, resp_mocker, aresponses, hostname, resource, namespace):

    url = resource.get_url(namespace=namespace, name='w1')
    patch_mock = resp_mocker(return_value=aresponses.Response(status=409))
    aresponses.add(hostname, url, 'patch', patch_mock)

    with pytest.raises(APIConflictError):
        await patch_obj(settings=settings, context=context, url=url, patch={}, logger=logger)
