"""Tests for parsing raw text into a SpecDocument."""

import pytest

from oaslint.errors import ParseError
from oaslint.parser.document import SpecDocument, parse


class TestParse:
    """Tests for parse()."""

    def test_parse_yaml_document(self, petstore_raw):
        """Test parsing a YAML document keeps key order."""
        document = parse(petstore_raw)

        assert isinstance(document, SpecDocument)
        assert document.raw == petstore_raw
        assert list(document.paths) == ["/v1/pets", "/v1/pets/{pet_id}"]
        assert list(document.paths["/v1/pets"]) == ["get", "post"]

    def test_parse_json_document(self):
        """Test JSON input parses to the same shape."""
        raw = '{"openapi": "3.0.1", "info": {"title": "T"}, "paths": {"/a": {"get": {}}}}'
        document = parse(raw)

        assert document.get("info", "title") == "T"
        assert document.paths == {"/a": {"get": {}}}

    def test_status_code_keys_are_strings(self):
        """Test unquoted and quoted numeric keys both produce strings."""
        raw = "paths:\n  /a:\n    get:\n      responses:\n        200:\n          description: ok\n        '404':\n          description: missing\n"
        document = parse(raw)

        responses = document.paths["/a"]["get"]["responses"]
        assert list(responses) == ["200", "404"]

    def test_version_literal_is_kept(self):
        """Test the literal source text of a float-looking version."""
        document = parse("openapi: 3.10\ninfo:\n  title: T\n")

        assert document.root["openapi"] == 3.1
        assert document.literal("openapi") == "3.10"
        assert document.literal("missing") is None

    def test_timestamps_stay_strings(self):
        """Test date-like scalars are not converted."""
        document = parse("info:\n  x-released: 2024-01-31\n")

        assert document.get("info", "x-released") == "2024-01-31"

    def test_duplicate_keys_last_wins(self):
        """Test duplicate mapping keys resolve to the last value."""
        document = parse("info:\n  title: First\n  title: Second\n")

        assert document.title == "Second"

    def test_invalid_yaml_raises_parse_error(self):
        """Test malformed text raises ParseError carrying the syntax error."""
        with pytest.raises(ParseError) as exc_info:
            parse("openapi: 3.0.0\npaths: [unclosed\n")

        error = exc_info.value
        assert error.error is not None
        assert error.__cause__ is error.error
        assert error.line is not None
        assert "line" in str(error)

    @pytest.mark.parametrize("raw", ["openapi: 3.0.0\x00\n", "info:\n  title: \x07bell\n"])
    def test_control_characters_raise_parse_error(self, raw):
        """Test characters YAML refuses to read raise ParseError."""
        with pytest.raises(ParseError, match="unacceptable character") as exc_info:
            parse(raw)

        assert exc_info.value.error is not None

    def test_empty_document_raises_parse_error(self):
        """Test empty text is not a document."""
        with pytest.raises(ParseError, match="Document is empty"):
            parse("")

    def test_non_mapping_root_raises_parse_error(self):
        """Test a sequence root is rejected."""
        with pytest.raises(ParseError, match="must be a mapping"):
            parse("- a\n- b\n")


class TestSpecDocument:
    """Tests for SpecDocument accessors."""

    def test_get_walks_nested_keys(self, petstore):
        """Test nested lookups and defaults."""
        assert petstore.get("info", "version") == "1.0.0"
        assert petstore.get("info", "missing") is None
        assert petstore.get("info", "title", "deeper", default="x") == "x"

    def test_metadata_contains_title(self, petstore):
        """Test exporter metadata."""
        assert petstore.metadata() == {"title": "Pet Store"}

    def test_metadata_empty_without_title(self):
        """Test metadata without an info title."""
        assert parse("openapi: 3.0.0\n").metadata() == {}

    def test_paths_empty_when_not_mapping(self):
        """Test a malformed paths section reads as empty."""
        assert parse("paths: nothing\n").paths == {}

    def test_resolve_uses_document_resolver(self, petstore):
        """Test resolve() follows local references."""
        node = {"$ref": "#/components/schemas/Pet"}

        assert petstore.resolve(node) is petstore.root["components"]["schemas"]["Pet"]
