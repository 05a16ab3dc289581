import json
import logging
import re
import time

import pytest

import kubeloop
from kubeloop._cogs.clients.auth import APIContext
from kubeloop._cogs.configs.configuration import OperatorSettings
from kubeloop._cogs.structs.credentials import ConnectionInfo
from kubeloop._cogs.structs.references import Resource
from kubeloop._core.intents.registries import OperatorRegistry


@pytest.fixture()
def resource():
    """ The resource used in the tests. Usually mocked, so it does not matter. """
    return Resource('example.com', 'v1', 'widgets')


@pytest.fixture(params=[
    pytest.param(None, id='cluster'),
    pytest.param('ns1', id='namespaced'),
])
def namespace(request):
    return request.param


@pytest.fixture()
def settings():
    settings = OperatorSettings()
    settings.networking.error_backoffs = []  # no retries unless explicitly enabled in a test
    return settings


@pytest.fixture(autouse=True)
def registry():
    """
    Ensure that the tests have a fresh new global (not re-used) registry.
    """
    old_registry = kubeloop.get_default_registry()
    new_registry = OperatorRegistry()
    kubeloop.set_default_registry(new_registry)
    try:
        yield new_registry
    finally:
        kubeloop.set_default_registry(old_registry)


#
# Mocks for Kubernetes API clients (any of them). Reasons:
# 1. We do not test the clients, we test the layers on top of them,
#    so everything low-level should be mocked and assumed to be functional.
# 2. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
#

@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
def info(hostname):
    return ConnectionInfo(server=f'https://{hostname}')


@pytest.fixture()
async def context(info):
    """
    A fresh API context for every test, closed after the test.

    It must be created inside of the event loop, as the aiohttp sessions are.
    """
    async with APIContext(info) as context:
        yield context


@pytest.fixture()
def resp_mocker(mocker, context, aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered.

    The request's payload is stored as ``request['data']`` for assertions.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
    """
    def resp_maker(*args, **kwargs):
        actual_response = mocker.MagicMock(*args, **kwargs)
        async def resp_mock_effect(request):
            nonlocal actual_response

            # The request's content can be read inside of the handler only. We preserve
            # the data into the request's storage, so that they could be asserted later.
            text = await request.text()
            try:
                request['data'] = json.loads(text) if text else None
            except json.JSONDecodeError:
                request['data'] = text

            # Get a response/error as it was intended (via return_value/side_effect).
            response = actual_response()
            return response

        return mocker.AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


#
# Helpers for the timing checks.
#

@pytest.fixture()
def timer():
    return Timer()


class Timer:
    """
    A helper context manager to measure the time of the code-blocks.
    Also, supports direct comparison with the numbers of seconds.

    Usage:

        with Timer() as timer:
            do_something()

        print(f"Executed in {timer.seconds}s.")
        assert timer.seconds < 5.0
    """

    def __init__(self):
        super().__init__()
        self._ts = None
        self._te = None

    @property
    def seconds(self):
        if self._ts is None:
            return None
        elif self._te is None:
            return time.perf_counter() - self._ts
        else:
            return self._te - self._ts

    def __repr__(self):
        status = 'new' if self._ts is None else 'running' if self._te is None else 'finished'
        return f'<Timer: {self.seconds}s ({status})>'

    def __enter__(self):
        self._ts = time.perf_counter()
        self._te = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._te = time.perf_counter()

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)


#
# Helpers for the logging checks.
#

@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns, prohibited=[], strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn


@pytest.fixture()
def logger():
    return logging.getLogger('tests')
