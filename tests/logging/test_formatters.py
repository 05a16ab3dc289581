import json
import logging

import pytest

from kubeloop._cogs.structs.identities import ResourceIdentity
from kubeloop._core.engines.loggers import (
    LogFormat, ObjectJsonFormatter, ObjectLogger, ObjectPrefixingJsonFormatter,
    ObjectPrefixingTextFormatter, ObjectTextFormatter, make_formatter,
)


@pytest.fixture()
def identity():
    return ResourceIdentity(
        collection_id='widgets.example.com/v1',
        name='w1',
        namespace='ns1',
        resource_version='1',
        api_version='example.com/v1',
        kind='Widget',
    )


@pytest.fixture()
def records(identity):
    """ Capture the records of an object logger without emitting them. """
    captured = []

    class Handler(logging.Handler):
        def emit(self, record):
            captured.append(record)

    logger = logging.getLogger('tests.formatters')
    handler = Handler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        yield captured, ObjectLogger(identity=identity, logger=logger)
    finally:
        logger.removeHandler(handler)


def test_object_logger_carries_the_reference(records):
    captured, object_logger = records
    object_logger.info("hello", extra={'more': 'data'})
    assert len(captured) == 1
    assert captured[0].k8s_ref == {
        'apiVersion': 'example.com/v1',
        'kind': 'Widget',
        'name': 'w1',
        'namespace': 'ns1',
    }
    assert captured[0].more == 'data'


def test_text_prefixing(records):
    captured, object_logger = records
    object_logger.info("hello")
    formatter = ObjectPrefixingTextFormatter(LogFormat.PLAIN.value)
    assert formatter.format(captured[0]) == "[ns1/w1] hello"


def test_text_prefixing_of_cluster_objects(records, identity):
    captured, _ = records
    logger = logging.getLogger('tests.formatters')
    cluster_identity = ResourceIdentity(**dict(vars(identity), namespace=None))
    ObjectLogger(identity=cluster_identity, logger=logger).info("hello")
    formatter = ObjectPrefixingTextFormatter(LogFormat.PLAIN.value)
    assert formatter.format(captured[0]) == "[w1] hello"


def test_text_without_prefixing(records):
    captured, object_logger = records
    object_logger.info("hello")
    formatter = ObjectTextFormatter(LogFormat.PLAIN.value)
    assert formatter.format(captured[0]) == "hello"


@pytest.mark.parametrize('method, severity', [
    ('debug', 'debug'),
    ('info', 'info'),
    ('warning', 'warn'),
    ('error', 'error'),
    ('critical', 'fatal'),
])
def test_json_severity_and_reference(records, method, severity):
    captured, object_logger = records
    getattr(object_logger, method)("hello")
    data = json.loads(ObjectJsonFormatter().format(captured[0]))
    assert data['message'] == "hello"
    assert data['severity'] == severity
    assert data['object'] == {
        'apiVersion': 'example.com/v1',
        'kind': 'Widget',
        'name': 'w1',
        'namespace': 'ns1',
    }
    assert 'k8s_ref' not in data


def test_json_custom_refkey_and_prefix(records):
    captured, object_logger = records
    object_logger.info("hello")
    data = json.loads(ObjectPrefixingJsonFormatter(refkey='k8s').format(captured[0]))
    assert data['message'] == "[ns1/w1] hello"
    assert data['k8s']['name'] == 'w1'


@pytest.mark.parametrize('log_format, log_prefix, cls', [
    (LogFormat.JSON, None, ObjectJsonFormatter),
    (LogFormat.JSON, True, ObjectPrefixingJsonFormatter),
    (LogFormat.FULL, None, ObjectPrefixingTextFormatter),
    (LogFormat.PLAIN, False, ObjectTextFormatter),
    ('%(message)s', True, ObjectPrefixingTextFormatter),
])
def test_formatter_choice(log_format, log_prefix, cls):
    formatter = make_formatter(log_format=log_format, log_prefix=log_prefix)
    assert type(formatter) is cls


def test_unsupported_format():
    with pytest.raises(ValueError):
        make_formatter(log_format=123)
