"""Tests for mapping document coordinates back to text ranges."""

import re

import pytest

from oaslint.parser.locator import Fallback, PositionLocator, ScanCursor, TextRange

RAW = """openapi: 3.0.1
servers:
  - url: http://example.com/v1/pets
paths:
  /v1/pets:
    get:
      parameters:
        - name: limit
          in: query
      responses:
        '200':
          description: ok
    post:
      responses:
        '201':
          description: created
  /v1/pets/{pet_id}:
    get:
      responses:
        '200':
          description: ok
"""


@pytest.fixture
def locator():
    return PositionLocator(RAW)


def _text(text_range: TextRange) -> str:
    return RAW[text_range.start:text_range.end]


class TestFallbacks:
    """Tests for fallback ranges."""

    def test_fallback_policies(self, locator):
        """Test both fallback policies."""
        assert locator.fallback(Fallback.DOCUMENT_START) == TextRange(0, 0)
        assert locator.fallback(Fallback.WHOLE_DOCUMENT) == TextRange(0, len(RAW))

    def test_missing_path_uses_declared_fallback(self, locator):
        """Test path lookups fall back without raising."""
        assert locator.path_key_range("/v2/missing") == TextRange(0, 0)
        assert locator.path_key_range("/v2/missing", Fallback.WHOLE_DOCUMENT) == TextRange(0, len(RAW))

    def test_missing_method_highlights_whole_document(self, locator):
        """Test an absent operation falls back to the whole document."""
        assert locator.method_range("/v1/pets", "delete") == TextRange(0, len(RAW))

    def test_empty_text(self):
        """Test lookups over empty text."""
        locator = PositionLocator("")

        assert locator.method_range("/a", "get") == TextRange(0, 0)
        assert locator.paths_keyword_range() == TextRange(0, 0)
        assert locator.text_range("x") == TextRange(0, 0)


class TestPathLookups:
    """Tests for paths-block-anchored lookups."""

    def test_path_key_range_skips_server_url(self, locator):
        """Test the path key inside paths is found, not the server URL text."""
        found = locator.path_key_range("/v1/pets")

        assert _text(found) == "/v1/pets"
        assert found.start == RAW.index("  /v1/pets:") + 2

    def test_path_key_range_with_parameter(self, locator):
        """Test templated paths are matched literally."""
        found = locator.path_key_range("/v1/pets/{pet_id}")

        assert _text(found) == "/v1/pets/{pet_id}"

    def test_paths_keyword_range(self, locator):
        """Test the top-level paths key."""
        found = locator.paths_keyword_range()

        assert _text(found) == "paths"
        assert found.start == RAW.index("paths:")


class TestOperationLookups:
    """Tests for operation-anchored lookups."""

    def test_method_range_selects_operation_under_path(self, locator):
        """Test the get under the second path, not the first."""
        found = locator.method_range("/v1/pets/{pet_id}", "get")

        assert _text(found) == "get"
        assert found.start == RAW.index("get:", RAW.index("/v1/pets/{pet_id}:"))

    def test_parameter_range(self, locator):
        """Test a parameter name value."""
        found = locator.parameter_range("/v1/pets", "get", "limit")

        assert _text(found) == "limit"
        assert found.start == RAW.index("limit")

    def test_parameter_range_falls_back_to_method(self, locator):
        """Test a missing parameter falls back to the method key."""
        found = locator.parameter_range("/v1/pets/{pet_id}", "get", "offset")

        assert found == locator.method_range("/v1/pets/{pet_id}", "get")

    def test_parameters_block_range(self, locator):
        """Test the parameters key of an operation."""
        found = locator.parameters_block_range("/v1/pets", "get")

        assert _text(found) == "parameters"

    def test_response_code_range(self, locator):
        """Test a quoted status code key inside the right operation."""
        found = locator.response_code_range("/v1/pets", "post", "201")

        assert _text(found) == "201"
        assert found.start > RAW.index("post:")

    def test_response_code_range_falls_back_to_responses(self, locator):
        """Test a missing code points at the operation's responses key."""
        found = locator.response_code_range("/v1/pets", "post", "404")

        assert _text(found) == "responses"
        assert found.start > RAW.index("post:")

    def test_key_range_from_anchor(self, locator):
        """Test key lookup prefers occurrences after the anchor."""
        anchor = locator.operation_anchor("/v1/pets", "post")
        found = locator.key_range("responses", anchor)

        assert _text(found) == "responses"
        assert found.start > anchor

    def test_ref_usage_range(self):
        """Test a $ref string used inside an operation."""
        raw = "paths:\n  /a:\n    get:\n      responses:\n        '200':\n          $ref: '#/components/responses/Ok'\n"
        locator = PositionLocator(raw)

        found = locator.ref_usage_range("/a", "get", "#/components/responses/Ok")

        assert raw[found.start:found.end] == "#/components/responses/Ok"


class TestSequentialLookups:
    """Tests for cursor-threaded scans."""

    def test_next_text_advances_through_repeats(self):
        """Test repeated needles map to successive occurrences."""
        raw = "servers:\n  - url: http://a\n  - url: http://a\n"
        locator = PositionLocator(raw)

        first, cursor = locator.next_text("http://a", ScanCursor())
        second, cursor = locator.next_text("http://a", cursor)

        assert first.start == raw.index("http://a")
        assert second.start == raw.index("http://a", first.end)
        assert cursor.offset == second.end

    def test_next_text_miss_keeps_cursor(self):
        """Test a miss returns the fallback and the same cursor."""
        locator = PositionLocator("abc")
        cursor = ScanCursor(1)

        found, after = locator.next_text("zzz", cursor, fallback=Fallback.WHOLE_DOCUMENT)

        assert found == TextRange(0, 3)
        assert after == cursor

    def test_cursor_is_monotonic(self):
        """Test cursors never move backwards."""
        assert ScanCursor(10).advance_to(5).offset == 10
        assert ScanCursor(10).advance_to(15).offset == 15

    def test_next_status_code(self, locator):
        """Test successive status code keys."""
        first, cursor = locator.next_status_code("200", ScanCursor())
        second, cursor = locator.next_status_code("200", cursor)

        assert _text(first) == "200"
        assert _text(second) == "200"
        assert second.start > first.start
        assert second.start > RAW.index("/v1/pets/{pet_id}")

    def test_next_key(self):
        """Test next_key covers the key and colon."""
        raw = "headers:\n  X-Trace:\n    schema: {}\n"
        found, _cursor = PositionLocator(raw).next_key("X-Trace", ScanCursor())

        assert raw[found.start:found.end] == "X-Trace:"


class TestHelpers:
    """Tests for leaf helpers."""

    def test_idempotent_lookups(self, locator):
        """Test identical input always yields the identical range."""
        calls = [
            lambda: locator.method_range("/v1/pets", "post"),
            lambda: locator.path_key_range("/v1/pets/{pet_id}"),
            lambda: locator.parameter_range("/v1/pets", "get", "limit"),
            lambda: locator.next_status_code("201", ScanCursor(3)),
        ]
        for call in calls:
            assert call() == call()

    def test_top_level_key_range_json(self):
        """Test quoted keys in single-line JSON."""
        raw = '{"openapi": "3.0.1", "info": {"title": "T"}}'
        found = PositionLocator(raw).top_level_key_range("info")

        assert raw[found.start:found.end] == "info"

    def test_violation_range_narrows_to_match(self):
        """Test the offending characters inside a value."""
        raw = "info:\n  title: Pet \u5ba0\u7269 Store\n"
        found = PositionLocator(raw).violation_range("Pet \u5ba0\u7269 Store", re.compile("[\u4e00-\u9fff]+"))

        assert raw[found.start:found.end] == "\u5ba0\u7269"

    def test_line_number_and_range(self, locator):
        """Test line helpers."""
        offset = RAW.index("paths:")

        assert locator.line_number(0) == 1
        assert locator.line_number(offset) == 4
        assert _text(locator.line_range(offset)) == "paths:"
