"""
Tests for mockhttp Responders
"""

import json

import pytest

from mockhttp.mock.recorder import ResponseRecorder
from mockhttp.mock.responder import (
    apply_responders,
    headers,
    json_body,
    json_file_body,
    status_code,
    string_body,
)


def render(*responders):
    return apply_responders(responders, ResponseRecorder())


class TestResponders:
    """Test concrete responders."""

    def test_status_code(self):
        assert render(status_code(418)).status_code == 418

    def test_headers_accept_strings_and_lists(self):
        """Test header values given as str or list."""
        recorder = render(headers({'X-One': 'a', 'X-Many': ['b', 'c']}))

        assert recorder.headers.getlist('x-one') == ['a']
        assert recorder.headers.getlist('x-many') == ['b', 'c']

    def test_json_body_from_string(self):
        recorder = render(json_body('{"id": 1}'))

        assert recorder.body == b'{"id": 1}'
        assert recorder.headers['content-type'] == 'application/json'

    def test_json_body_from_object(self):
        """Test python values are serialized."""
        recorder = render(json_body({'items': [1, 2]}))

        assert json.loads(recorder.body) == {'items': [1, 2]}

    def test_json_file_body(self, tmp_path):
        """Test file-backed JSON body."""
        fixture = tmp_path / 'book.json'
        fixture.write_text('{"title": "Dune"}')

        recorder = render(json_file_body(fixture))

        assert json.loads(recorder.body) == {'title': 'Dune'}
        assert recorder.headers['content-type'] == 'application/json'

    def test_json_file_body_missing_file(self, tmp_path):
        """Test a missing fixture fails at declaration time."""
        with pytest.raises(FileNotFoundError):
            json_file_body(tmp_path / 'missing.json')

    def test_string_body(self):
        recorder = render(string_body('plain text'))

        assert recorder.body == b'plain text'
        assert 'content-type' not in recorder.headers

    def test_later_body_wins(self):
        """Test the last body responder replaces earlier ones."""
        recorder = render(string_body('first'), json_body('{"second": true}'))

        assert recorder.body == b'{"second": true}'
