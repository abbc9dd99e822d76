"""Unit tests for the kind catalog and compliance tags (omnigen.catalog).

Tests cover:
- parse_tag / normalize_tag / tag_level / level_index
- Built-in kinds
- KindCatalog registration and freezing
"""

from __future__ import annotations

import pytest

from omnigen.catalog import (
    BUILTIN_KINDS,
    SIZE_CHOICES,
    SIZE_HEIGHTS,
    KindCatalog,
    default_catalog,
    level_index,
    normalize_tag,
    parse_tag,
    tag_level,
)
from omnigen.errors import InvalidTag, RegistryFrozenError
from omnigen.models import KindDefinition


# ---------------------------------------------------------------------------
# Compliance tags
# ---------------------------------------------------------------------------


class TestTags:
    @pytest.mark.unit
    def test_parse_tag(self):
        assert parse_tag("security:restricted") == ("security", "restricted")

    @pytest.mark.unit
    def test_normalize_tag_lowercases(self):
        assert normalize_tag(" A11Y:AAA ") == "a11y:aaa"

    @pytest.mark.unit
    @pytest.mark.parametrize("tag", ["a11y", "colour:red", "a11y:aaaa", "security:public"])
    def test_invalid_tags_rejected(self, tag: str):
        with pytest.raises(InvalidTag) as exc_info:
            parse_tag(tag)
        assert exc_info.value.tag == tag
        assert exc_info.value.code == "InvalidTag"

    @pytest.mark.unit
    def test_tag_level_picks_strongest(self):
        tags = ["a11y:a", "a11y:aaa", "security:open"]
        assert tag_level(tags, "a11y") == 2
        assert tag_level(tags, "security") == 0

    @pytest.mark.unit
    def test_tag_level_absent_axis(self):
        assert tag_level(["a11y:aa"], "security") == -1

    @pytest.mark.unit
    def test_level_index_ordering(self):
        assert level_index("security", "open") < level_index("security", "restricted")
        assert level_index("security", "restricted") < level_index("security", "secret")


# ---------------------------------------------------------------------------
# Built-in kinds
# ---------------------------------------------------------------------------


class TestBuiltinKinds:
    @pytest.mark.unit
    def test_default_catalog_kinds(self):
        catalog = default_catalog()
        assert catalog.kinds() == ["button", "input", "card", "payment-form"]

    @pytest.mark.unit
    def test_every_size_has_a_height(self):
        assert set(SIZE_CHOICES) == set(SIZE_HEIGHTS)
        assert SIZE_HEIGHTS["tiny"] < 44 <= SIZE_HEIGHTS["sm"]

    @pytest.mark.unit
    def test_payment_form_requires_currency(self):
        definition = default_catalog().get("payment-form")
        assert definition is not None
        currency = definition.prop("currency")
        assert currency is not None
        assert currency.required is True
        assert currency.default is None
        assert "security:restricted" in definition.implied_tags

    @pytest.mark.unit
    def test_interactive_flags(self):
        catalog = default_catalog()
        assert catalog.get("button").interactive is True
        assert catalog.get("card").interactive is False

    @pytest.mark.unit
    def test_builtin_implied_tags_are_valid(self):
        for definition in BUILTIN_KINDS:
            for tag in definition.implied_tags:
                parse_tag(tag)


# ---------------------------------------------------------------------------
# KindCatalog
# ---------------------------------------------------------------------------


class TestKindCatalog:
    @pytest.mark.unit
    def test_register_and_lookup(self):
        catalog = KindCatalog()
        catalog.register(KindDefinition(kind="badge"))
        assert "badge" in catalog
        assert catalog.get("badge").kind == "badge"
        assert catalog.get("missing") is None

    @pytest.mark.unit
    def test_register_rejects_bad_implied_tag(self):
        catalog = KindCatalog()
        with pytest.raises(InvalidTag):
            catalog.register(KindDefinition(kind="badge", implied_tags=["a11y:best"]))

    @pytest.mark.unit
    def test_frozen_catalog_rejects_registration(self):
        catalog = default_catalog()
        catalog.freeze()
        assert catalog.frozen is True
        with pytest.raises(RegistryFrozenError):
            catalog.register(KindDefinition(kind="badge"))

    @pytest.mark.unit
    def test_iteration_follows_registration_order(self):
        catalog = KindCatalog([KindDefinition(kind="b"), KindDefinition(kind="a")])
        assert [d.kind for d in catalog] == ["b", "a"]
