import functools
import logging
import sys

import click.testing
import pytest

from kubeloop._core.engines.loggers import ObjectFormatter
from kubeloop.cli import main

SCRIPT1 = """
import kubeloop

@kubeloop.on.startup()
def init_widgets(operator):
    print('Hello from init_widgets!')
"""

SCRIPT2 = """
import kubeloop

@kubeloop.on.startup()
def init_gadgets(operator):
    print('Hello from init_gadgets!')
"""

CRD = """
apiVersion: apiextensions.k8s.io/v1
kind: CustomResourceDefinition
metadata:
  name: widgets.example.com
spec:
  group: example.com
  scope: Namespaced
  names:
    plural: widgets
    kind: Widget
  versions:
    - name: v1
      served: true
      storage: true
    - name: v2
      served: true
      storage: false
"""


@pytest.fixture(autouse=True)
def srcdir(tmpdir):
    tmpdir.join('handler1.py').write(SCRIPT1)
    tmpdir.join('handler2.py').write(SCRIPT2)
    tmpdir.join('crd.yaml').write(CRD)
    pkgdir = tmpdir.mkdir('package')
    pkgdir.join('__init__.py').write('')
    pkgdir.join('module_1.py').write(SCRIPT1)
    pkgdir.join('module_2.py').write(SCRIPT2)

    sys.path.insert(0, str(tmpdir))
    try:
        with tmpdir.as_cwd():
            yield tmpdir
    finally:
        sys.path.remove(str(tmpdir))


@pytest.fixture(autouse=True)
def clean_modules_cache():
    # Otherwise, the first loaded test-modules remain there forever,
    # preventing 2nd and further tests from passing.
    for key in list(sys.modules.keys()):
        if key.startswith('package'):
            del sys.modules[key]


@pytest.fixture(autouse=True)
def clean_logging():
    """ The CLI configures the root logger; restore it for other tests. """
    root = logging.getLogger()
    asyncio_logger = logging.getLogger('asyncio')
    level = root.level
    asyncio_handlers, asyncio_propagate = asyncio_logger.handlers[:], asyncio_logger.propagate
    try:
        yield
    finally:
        for handler in root.handlers[:]:
            if isinstance(handler.formatter, ObjectFormatter):
                root.removeHandler(handler)
        root.setLevel(level)
        asyncio_logger.handlers[:] = asyncio_handlers
        asyncio_logger.propagate = asyncio_propagate


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def preload(mocker):
    return mocker.patch('kubeloop._cogs.helpers.loaders.preload')


@pytest.fixture()
def real_run(mocker):
    return mocker.patch('kubeloop._core.reactor.running.run')
