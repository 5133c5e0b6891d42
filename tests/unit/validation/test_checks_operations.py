"""Tests for operation-level checks."""

from oaslint.parser.document import parse
from oaslint.validation.checks.operations import (
    check_allowed_methods,
    check_crud,
    check_get_idempotency,
    check_get_return_object,
    check_quota_api_presence,
    check_success_response,
)


def _run(check_fn, raw, rule):
    return check_fn(parse(raw), raw, rule)


def _text(raw, finding):
    return raw[finding.start:finding.end]


class TestAllowedMethods:
    """Tests for checkAllowedMethods."""

    def test_disallowed_method_reported(self, make_rule):
        """Test operations outside the allowed list, ignoring path item fields."""
        raw = (
            "paths:\n"
            "  /v1/pets:\n"
            "    summary: Pets\n"
            "    parameters: []\n"
            "    get:\n"
            "      responses: {}\n"
            "    trace:\n"
            "      responses: {}\n"
        )
        rule = make_rule("checkAllowedMethods", params={"methods": ["get", "post"]})

        findings = _run(check_allowed_methods, raw, rule)

        assert len(findings) == 1
        assert _text(raw, findings[0]) == "trace"

    def test_no_methods_configured(self, make_rule, petstore, petstore_raw):
        """Test the check is inert without a method list."""
        assert check_allowed_methods(petstore, petstore_raw, make_rule("checkAllowedMethods")) == []


class TestCRUD:
    """Tests for checkCRUD."""

    def test_missing_companion_methods(self, make_rule):
        """Test a create-only path lists the missing methods upper-cased."""
        raw = "paths:\n  /v1/pets:\n    post:\n      responses: {}\n"
        rule = make_rule("checkCRUD", message="Incomplete CRUD.")

        findings = _run(check_crud, raw, rule)

        assert len(findings) == 1
        assert findings[0].message == "Incomplete CRUD. Missing: GET, PUT, DELETE"
        assert _text(raw, findings[0]) == "/v1/pets"

    def test_optional_and_exception_paths(self, make_rule):
        """Test optional methods and wildcard exception paths."""
        raw = (
            "paths:\n"
            "  /v1/pets:\n"
            "    post: {}\n"
            "    get: {}\n"
            "    delete: {}\n"
            "  /v1/actions/run:\n"
            "    post: {}\n"
        )
        rule = make_rule("checkCRUD", params={
            "optionalMethods": ["put"],
            "exceptionPaths": ["/v1/actions*"],
        })

        assert _run(check_crud, raw, rule) == []

    def test_paths_without_create_are_ignored(self, make_rule):
        """Test read-only paths are not checked."""
        raw = "paths:\n  /v1/pets:\n    get: {}\n"

        assert _run(check_crud, raw, make_rule("checkCRUD")) == []


class TestSuccessResponse:
    """Tests for checkSuccessResponse."""

    def test_missing_status_codes(self, make_rule):
        """Test a GET without 200."""
        raw = "paths:\n  /v1/pets:\n    get:\n      responses:\n        '404':\n          description: x\n"
        rule = make_rule("checkSuccessResponse", message="Need success.",
                         params={"method": ["get"], "requiredStatusCode": ["200"]})

        findings = _run(check_success_response, raw, rule)

        assert findings[0].message == "Need success. Missing: 200"
        assert _text(raw, findings[0]) == "get"

    def test_present_status_code(self, make_rule, petstore, petstore_raw):
        """Test the pet store GETs declare 200."""
        rule = make_rule("checkSuccessResponse", params={"method": "get", "requiredStatusCode": "200"})

        assert check_success_response(petstore, petstore_raw, rule) == []


class TestGetIdempotency:
    """Tests for checkGetIdempotency."""

    def test_keyword_and_body(self, make_rule):
        """Test action keywords and request bodies on GET."""
        raw = (
            "paths:\n"
            "  /v1/pets/delete:\n"
            "    get: {}\n"
            "  /v1/search:\n"
            "    get:\n"
            "      requestBody: {}\n"
            "  /v1/pets:\n"
            "    get: {}\n"
        )
        rule = make_rule("checkGetIdempotency", params={
            "disallowedPathKeywords": ["delete"],
            "disallowRequestBody": True,
        })

        findings = _run(check_get_idempotency, raw, rule)

        assert len(findings) == 2
        assert findings[0].start < raw.index("/v1/search")
        assert findings[1].start > raw.index("/v1/search")


class TestGetReturnObject:
    """Tests for checkGetReturnObject."""

    RAW = (
        "paths:\n"
        "  /v1/pets/{pet_id}:\n"
        "    get:\n"
        "      responses:\n"
        "        '200':\n"
        "          content:\n"
        "            application/json:\n"
        "              schema:\n"
        "                type: array\n"
        "  /v1/owners/{owner_id}:\n"
        "    get:\n"
        "      responses:\n"
        "        '200':\n"
        "          content:\n"
        "            application/json:\n"
        "              schema:\n"
        "                type: object\n"
        "                required: [pets]\n"
        "                properties:\n"
        "                  pets:\n"
        "                    type: array\n"
    )

    def test_wrong_type_reported(self, make_rule):
        """Test an array detail response."""
        rule = make_rule("checkGetReturnObject", params={
            "requiredResponseType": "object",
            "requiredPathRegexp": ["/\\{[^}/]+\\}$"],
        })

        findings = _run(check_get_return_object, self.RAW, rule)

        assert len(findings) == 1
        assert findings[0].start < self.RAW.index("/v1/owners")

    def test_exception_paths_skipped(self, make_rule):
        """Test exception patterns win over required patterns."""
        rule = make_rule("checkGetReturnObject", params={
            "requiredResponseType": "object",
            "requiredPathRegexp": ["\\{[^}]+\\}$"],
            "exceptionPathRegexp": ["^/v1/pets"],
        })

        assert _run(check_get_return_object, self.RAW, rule) == []

    def test_plural_field_option(self, make_rule):
        """Test object schemas requiring a plural field pass only when allowed."""
        base = {"requiredResponseType": "list", "requiredPathRegexp": ["owners"]}

        strict = _run(check_get_return_object, self.RAW, make_rule("checkGetReturnObject", params=base))
        lenient = _run(check_get_return_object, self.RAW, make_rule(
            "checkGetReturnObject", params={**base, "allowObjectWithPluralField": True},
        ))

        assert len(strict) == 1
        assert lenient == []


class TestQuotaApiPresence:
    """Tests for checkQuotaApiPresence."""

    def test_missing_quota_api(self, make_rule, petstore, petstore_raw):
        """Test the finding points at the paths keyword."""
        findings = check_quota_api_presence(petstore, petstore_raw, make_rule("checkQuotaApiPresence"))

        assert len(findings) == 1
        assert _text(petstore_raw, findings[0]) == "paths"

    def test_suffix_and_regex_patterns(self, make_rule):
        """Test both pattern forms."""
        raw = "paths:\n  /v1/{project_id}/quotas/:\n    get:\n      summary: Quotas\n"

        assert _run(check_quota_api_presence, raw, make_rule("checkQuotaApiPresence")) == []
        assert _run(check_quota_api_presence, raw, make_rule(
            "checkQuotaApiPresence", params={"pathPattern": "/quota[s]?/$/"},
        )) == []
        assert len(_run(check_quota_api_presence, raw, make_rule(
            "checkQuotaApiPresence", params={"method": "post"},
        ))) == 1

    def test_document_without_paths(self, make_rule):
        """Test documents without paths are not checked."""
        assert _run(check_quota_api_presence, "openapi: 3.0.0\n", make_rule("checkQuotaApiPresence")) == []
