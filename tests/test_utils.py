"""
Tests for mockhttp common utilities and failure reporting
"""

import threading

import pytest

from mockhttp.common import (
    AtomicCounter,
    FailureReporter,
    endpoint_name,
    group_pairs,
    normalize_multi_values,
    safe_json_parse,
    to_json_bytes,
)


class TestAtomicCounter:
    """Test AtomicCounter."""

    def test_increment_returns_previous(self):
        counter = AtomicCounter()

        assert counter.increment() == 0
        assert counter.increment() == 1
        assert counter.value == 2

    def test_indices_unique_under_threads(self):
        counter = AtomicCounter()
        issued = []
        lock = threading.Lock()

        def worker():
            for _ in range(500):
                index = counter.increment()
                with lock:
                    issued.append(index)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert sorted(issued) == list(range(4000))


class TestFailureReporter:
    """Test FailureReporter."""

    def test_collects_in_order(self):
        reporter = FailureReporter()
        reporter.error('first')
        reporter.error('second')

        assert reporter.failed
        assert reporter.failures == ['first', 'second']
        assert reporter.count == 2

    def test_assert_ok_lists_everything(self):
        reporter = FailureReporter(name='test_books')
        reporter.error('first')
        reporter.error('second')

        with pytest.raises(AssertionError) as exc_info:
            reporter.assert_ok()

        message = str(exc_info.value)
        assert 'test_books: 2 failure(s)' in message
        assert '- first' in message
        assert '- second' in message

    def test_assert_ok_passes_when_clean(self):
        FailureReporter().assert_ok()

    def test_clear(self):
        reporter = FailureReporter()
        reporter.error('oops')
        reporter.clear()

        assert not reporter.failed


class TestHelpers:
    """Test small helpers."""

    def test_endpoint_name(self):
        assert endpoint_name('get', '/users') == 'GET /users'

    def test_normalize_multi_values(self):
        assert normalize_multi_values({'X-App': 'foo', 'X-Ids': ['1', '2']}, lower_keys=True) == {
            'x-app': ['foo'],
            'x-ids': ['1', '2'],
        }

    def test_group_pairs(self):
        assert group_pairs([('a', '1'), ('b', '2'), ('a', '3')]) == {'a': ['1', '3'], 'b': ['2']}

    def test_to_json_bytes(self):
        assert to_json_bytes('{"a": 1}') == b'{"a": 1}'
        assert to_json_bytes({'a': 1}) == b'{"a": 1}'
        assert to_json_bytes(b'[]') == b'[]'

    def test_safe_json_parse(self):
        assert safe_json_parse('{"a": 1}') == {'a': 1}
        assert safe_json_parse('invalid', default={}) == {}
        assert safe_json_parse(None, default=[]) == []
