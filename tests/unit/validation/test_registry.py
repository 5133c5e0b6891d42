"""Tests for the closed check registry."""

import pytest

from oaslint.validation.registry import CheckRegistry, get_default_registry

BUNDLED_CHECKS = {
    "checkAllowedMethods",
    "checkCRUD",
    "checkCommonParameters",
    "checkCompatibility",
    "checkCustomHeaders",
    "checkDefaultLimitValue",
    "checkElementSensitiveData",
    "checkGetIdempotency",
    "checkGetReturnObject",
    "checkHttpsServers",
    "checkInternationalization",
    "checkOASSpec",
    "checkOASVersion",
    "checkParamElementPresence",
    "checkQuotaApiPresence",
    "checkRequestEncapsulation",
    "checkResponseEncapsulation",
    "checkResponseHeader",
    "checkResponseIncludesCount",
    "checkSuccessResponse",
    "checkTimeFieldNaming",
    "checkTimeFieldsInDetailQuery",
    "checkURIContentComplexity",
    "checkURIContentDictionary",
    "checkURIContentSpecial",
    "checkURIContentSyntax",
    "checkURIContentUnicode",
    "checkURIFormat",
    "checkURILength",
    "checkURIResourceFormat",
}


def _noop(document, raw, rule):
    return []


async def _async_noop(document, raw, rule, comparison=None):
    return []


class TestCheckRegistry:
    """Tests for registering and looking up checks."""

    def test_register_with_decorator(self):
        """Test the decorator registers and returns the function."""
        registry = CheckRegistry()

        decorated = registry.check("checkThing")(_noop)

        assert decorated is _noop
        assert "checkThing" in registry
        assert registry.get("checkThing").func is _noop
        assert registry.get("checkThing").is_async is False
        assert len(registry) == 1

    def test_duplicate_name_rejected(self):
        """Test a name can be bound only once."""
        registry = CheckRegistry()
        registry.register("checkThing", _noop)

        with pytest.raises(ValueError, match="already registered"):
            registry.register("checkThing", _noop)

    def test_closed_registry_rejects_registration(self):
        """Test no names can be added after closing."""
        registry = CheckRegistry()
        registry.close()

        with pytest.raises(RuntimeError, match="closed"):
            registry.register("checkThing", _noop)

    def test_external_check_must_be_coroutine(self):
        """Test external checks are async."""
        registry = CheckRegistry()

        with pytest.raises(ValueError, match="coroutine"):
            registry.register("checkRemote", _noop, external=True)

        entry = registry.register("checkRemote", _async_noop, external=True)
        assert entry.external is True
        assert entry.is_async is True

    def test_partition_keeps_catalog_order(self, make_rule):
        """Test runnable and skipped rules keep their relative order."""
        registry = CheckRegistry()
        registry.register("a", _noop)
        registry.register("b", _noop)
        rules = [make_rule("b", "1"), make_rule("unknown", "2"), make_rule("a", "3"), make_rule("b", "4")]

        runnable, skipped = registry.partition(rules)

        assert [rule.id for rule, _entry in runnable] == ["1", "3", "4"]
        assert [entry.name for _rule, entry in runnable] == ["b", "a", "b"]
        assert [rule.id for rule in skipped] == ["2"]

    def test_lookup_of_unknown_name(self):
        """Test unknown names are simply absent."""
        registry = CheckRegistry()

        assert registry.get("nope") is None
        assert "nope" not in registry


class TestDefaultRegistry:
    """Tests for the bundled check catalog."""

    def test_default_registry_is_closed(self):
        """Test the default registry is closed once loaded."""
        registry = get_default_registry()

        assert registry.closed
        assert get_default_registry() is registry

    def test_default_registry_contains_bundled_checks(self):
        """Test every bundled check name is registered."""
        assert set(get_default_registry().names()) == BUNDLED_CHECKS

    def test_only_compatibility_is_external(self):
        """Test external checks in the bundled catalog."""
        registry = get_default_registry()
        external = {name for name in registry.names() if registry.get(name).external}

        assert external == {"checkCompatibility"}
