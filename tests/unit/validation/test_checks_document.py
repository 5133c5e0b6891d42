"""Tests for server and top-level document checks."""

from oaslint.parser.document import parse
from oaslint.validation.checks.document import check_oas_spec, check_oas_version
from oaslint.validation.checks.servers import check_https_servers


def _run(check_fn, raw, rule):
    return check_fn(parse(raw), raw, rule)


class TestHttpsServers:
    """Tests for checkHttpsServers."""

    def test_http_server_is_reported(self, make_rule):
        """Test a plain http URL is covered by the finding."""
        raw = "openapi: 3.0.0\nservers:\n  - url: http://a\n  - url: https://b\npaths: {}\n"
        rule = make_rule("checkHttpsServers", "1.1", severity="high", message="Use HTTPS.")

        findings = _run(check_https_servers, raw, rule)

        assert len(findings) == 1
        assert raw[findings[0].start:findings[0].end] == "http://a"
        assert findings[0].message == "Use HTTPS."
        assert findings[0].source == "1.1"

    def test_repeated_urls_map_to_successive_occurrences(self, make_rule):
        """Test duplicate URLs point at distinct ranges."""
        raw = "servers:\n  - url: http://a\n  - url: http://a\n"

        findings = _run(check_https_servers, raw, make_rule("checkHttpsServers"))

        assert len(findings) == 2
        assert findings[0].start < findings[1].start
        assert raw[findings[1].start:findings[1].end] == "http://a"

    def test_no_servers(self, make_rule, petstore, petstore_raw):
        """Test documents without insecure servers pass."""
        assert check_https_servers(petstore, petstore_raw, make_rule("checkHttpsServers")) == []
        assert _run(check_https_servers, "openapi: 3.0.0\n", make_rule("checkHttpsServers")) == []


class TestOASSpec:
    """Tests for checkOASSpec."""

    def test_missing_and_disallowed_fields(self, make_rule):
        """Test missing required and unexpected top-level fields."""
        raw = "openapi: 3.0.0\ninfo:\n  title: T\nx-extra: 1\n"
        rule = make_rule("checkOASSpec", message="Bad layout.", params={
            "requiredValues": ["openapi", "info", "paths"],
            "optionalValues": ["components"],
        })

        findings = _run(check_oas_spec, raw, rule)

        assert [f.message for f in findings] == [
            "'Bad layout.' Missing required top-level field: 'paths'",
            "'Bad layout.' Disallowed top-level field: 'x-extra'",
        ]
        assert (findings[0].start, findings[0].end) == (0, len(raw))
        assert raw[findings[1].start:findings[1].end] == "x-extra"

    def test_conforming_document(self, make_rule, petstore, petstore_raw):
        """Test the pet store layout passes."""
        rule = make_rule("checkOASSpec", params={
            "requiredValues": ["openapi", "info", "paths"],
            "optionalValues": ["servers", "components"],
        })

        assert check_oas_spec(petstore, petstore_raw, rule) == []


class TestOASVersion:
    """Tests for checkOASVersion."""

    def test_allowed_version(self, make_rule, petstore, petstore_raw):
        """Test 3.0.1 is allowed by 3.0."""
        rule = make_rule("checkOASVersion", params={"allowedVersions": ["3.0"]})

        assert check_oas_version(petstore, petstore_raw, rule) == []

    def test_version_uses_source_literal(self, make_rule):
        """Test 3.10 is not mistaken for 3.1."""
        raw = "openapi: 3.10\ninfo:\n  title: T\n"
        rule = make_rule("checkOASVersion", message="Unsupported.", params={"allowedVersions": ["3.1"]})

        findings = _run(check_oas_version, raw, rule)

        assert len(findings) == 1
        assert findings[0].message == "'Unsupported.' 'openapi' version '3.10' is not allowed."
        assert raw[findings[0].start:findings[0].end] == "3.10"

    def test_missing_version(self, make_rule):
        """Test a document without openapi."""
        raw = "info:\n  title: T\n"
        rule = make_rule("checkOASVersion", message="Unsupported.", params={"allowedVersions": ["3.0"]})

        findings = _run(check_oas_version, raw, rule)

        assert findings[0].message == "'Unsupported.' Missing 'openapi' field."
        assert (findings[0].start, findings[0].end) == (0, len(raw))
