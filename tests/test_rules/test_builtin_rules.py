"""Unit tests for the built-in compliance rule pack (omnigen.rules.builtin).

Tests cover:
- Rule order and severities
- Each predicate on passing and failing variants
- Raw-HTML sink detection across platform idioms
- Hardcoded colour detection
- Inline style and 8pt spacing scans
- Localized text and RTL checks behind i18n tags
"""

from __future__ import annotations

import pytest

from omnigen.catalog import KindCatalog
from omnigen.models import Severity
from omnigen.rules import RuleSet, builtin_rules, register_builtin_rules
from omnigen.rules.builtin import (
    enhanced_contrast_ok,
    hardcoded_colors_ok,
    inline_style_properties,
    inline_styles_ok,
    is_hardcoded_text,
    localized_text_ok,
    off_grid_spacing,
    has_raw_html_sink,
    make_accessible_name_predicate,
    professional_sizing_ok,
    raw_html_ok,
    raw_html_restricted_ok,
    rendered_height,
    rtl_support_ok,
    spacing_grid_ok,
    touch_target_ok,
)


# ---------------------------------------------------------------------------
# Pack layout
# ---------------------------------------------------------------------------


class TestRulePack:
    @pytest.mark.unit
    def test_order_and_severity(self, catalog: KindCatalog):
        rules = builtin_rules(catalog)
        assert [(r.rule_id, r.severity) for r in rules] == [
            ("touch-target-minimum", Severity.BLOCKING),
            ("accessible-name", Severity.BLOCKING),
            ("raw-html-restricted", Severity.BLOCKING),
            ("professional-sizing", Severity.ADVISORY),
            ("enhanced-contrast", Severity.ADVISORY),
            ("raw-html", Severity.ADVISORY),
            ("hardcoded-colors", Severity.ADVISORY),
            ("no-inline-styles", Severity.ADVISORY),
            ("no-hardcoded-spacing", Severity.ADVISORY),
            ("no-hardcoded-text", Severity.ADVISORY),
            ("rtl-support-required", Severity.ADVISORY),
        ]

    @pytest.mark.unit
    def test_register_builtin_rules(self, catalog: KindCatalog):
        rule_set = RuleSet()
        assert register_builtin_rules(rule_set, catalog) == 11
        with pytest.raises(ValueError):
            register_builtin_rules(rule_set, catalog)

    @pytest.mark.unit
    def test_default_catalog_used(self):
        assert len(builtin_rules()) == 11


# ---------------------------------------------------------------------------
# Sizing
# ---------------------------------------------------------------------------


class TestSizingRules:
    @pytest.mark.unit
    def test_rendered_height(self, make_variant):
        assert rendered_height(make_variant()) == 48
        assert rendered_height(make_variant(applied_props={"label": "x"})) is None

    @pytest.mark.unit
    @pytest.mark.parametrize("size,ok", [("tiny", False), ("sm", True), ("md", True)])
    def test_touch_target(self, make_variant, size: str, ok: bool):
        variant = make_variant(applied_props={"label": "Go", "size": size})
        assert touch_target_ok(variant) is ok

    @pytest.mark.unit
    def test_touch_target_without_size(self, make_variant):
        assert touch_target_ok(make_variant(kind="card", applied_props={})) is True

    @pytest.mark.unit
    def test_professional_sizing_button(self, make_variant):
        assert professional_sizing_ok(make_variant(applied_props={"size": "sm"})) is False
        assert professional_sizing_ok(make_variant(applied_props={"size": "md"})) is True

    @pytest.mark.unit
    def test_professional_sizing_input(self, make_variant):
        assert professional_sizing_ok(make_variant(kind="input", applied_props={"size": "md"})) is False
        assert professional_sizing_ok(make_variant(kind="input", applied_props={"size": "lg"})) is True

    @pytest.mark.unit
    def test_professional_sizing_other_kinds(self, make_variant):
        assert professional_sizing_ok(
            make_variant(kind="payment-form", applied_props={"size": "sm"})
        ) is True


# ---------------------------------------------------------------------------
# Accessibility
# ---------------------------------------------------------------------------


class TestAccessibilityRules:
    @pytest.mark.unit
    def test_accessible_name(self, make_variant):
        predicate = make_accessible_name_predicate(frozenset({"button"}))
        assert predicate(make_variant()) is True
        assert predicate(make_variant(applied_props={"label": "   "})) is False
        assert predicate(make_variant(applied_props={"size": "md"})) is True

    @pytest.mark.unit
    def test_accessible_name_ignores_non_interactive(self, make_variant):
        predicate = make_accessible_name_predicate(frozenset({"button"}))
        assert predicate(make_variant(kind="card", applied_props={"label": ""})) is True

    @pytest.mark.unit
    def test_enhanced_contrast_only_at_aaa(self, make_variant):
        ghost = {"label": "Go", "variant": "ghost"}
        assert enhanced_contrast_ok(make_variant(applied_props=ghost)) is True
        assert enhanced_contrast_ok(
            make_variant(applied_props=ghost, compliance_tags=frozenset({"a11y:aa"}))
        ) is True
        assert enhanced_contrast_ok(
            make_variant(applied_props=ghost, compliance_tags=frozenset({"a11y:aaa"}))
        ) is False

    @pytest.mark.unit
    def test_enhanced_contrast_solid_variant(self, make_variant):
        variant = make_variant(compliance_tags=frozenset({"a11y:aaa"}))
        assert enhanced_contrast_ok(variant) is True

    @pytest.mark.unit
    def test_enhanced_contrast_native_platform(self, make_variant):
        variant = make_variant(
            applied_props={"variant": "outline"},
            compliance_tags=frozenset({"a11y:aaa"}),
            native_tags=frozenset({"a11y:aaa"}),
        )
        assert enhanced_contrast_ok(variant) is True


# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------


class TestRawHtmlRules:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        [
            "<div dangerouslySetInnerHTML={ { __html: body } } />",
            '<div v-html="body" />',
            '<div [innerHTML]="body"></div>',
            "<div>{@html body}</div>",
            "el.innerHTML = body;",
        ],
    )
    def test_sinks_detected(self, source: str):
        assert has_raw_html_sink(source) is True

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        [
            "el.textContent = body;",
            "if (el.innerHTML === '') {}",
            "<p>{body}</p>",
            "",
            None,
        ],
    )
    def test_non_sinks(self, source):
        assert has_raw_html_sink(source) is False

    @pytest.mark.unit
    def test_restricted_rule_needs_security_tag(self, make_variant):
        source = "el.innerHTML = body;"
        open_variant = make_variant(source_artifact=source)
        restricted = make_variant(
            source_artifact=source, compliance_tags=frozenset({"security:restricted"})
        )
        secret = make_variant(source_artifact=source, compliance_tags=frozenset({"security:secret"}))
        assert raw_html_restricted_ok(open_variant) is True
        assert raw_html_restricted_ok(restricted) is False
        assert raw_html_restricted_ok(secret) is False

    @pytest.mark.unit
    def test_advisory_rule_fires_on_any_sink(self, make_variant):
        assert raw_html_ok(make_variant(source_artifact="el.innerHTML = x")) is False
        assert raw_html_ok(make_variant()) is True


# ---------------------------------------------------------------------------
# Design tokens
# ---------------------------------------------------------------------------


class TestHardcodedColors:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        ["color: #ff0000;", "color: #FFF;", "background: rgb(0, 0, 0)", "rgba(0,0,0,.5)"],
    )
    def test_literals_detected(self, make_variant, source: str):
        assert hardcoded_colors_ok(make_variant(source_artifact=source)) is False

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        ["color: var(--color-brand);", "#cc-number", "border-color: currentColor"],
    )
    def test_tokens_pass(self, make_variant, source: str):
        assert hardcoded_colors_ok(make_variant(source_artifact=source)) is True

    @pytest.mark.unit
    def test_no_artifact(self, make_variant):
        assert hardcoded_colors_ok(make_variant(source_artifact=None)) is True


class TestInlineStyles:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source,expected",
        [
            ("<button style={ { minHeight: 44, borderColor: x } }>", ["min-height", "border-color"]),
            ("<button :style=\"{ minHeight: '44px' }\">", ["min-height"]),
            ('<div style="min-height: 44px; color: red">', ["min-height", "color"]),
            ('<button [style.min-height.px]="44" [style.border-color]="c">', ["min-height", "border-color"]),
            ("el.style.minHeight = '44px';", ["min-height"]),
        ],
    )
    def test_properties_per_platform_idiom(self, source: str, expected: list[str]):
        assert inline_style_properties(source) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        [
            '<button :style="fieldStyle">',
            "<View style={[styles.base, theme.button.primary]}>",
            "if (el.style.display === 'none') {}",
            "<style>.card { padding: 8px }</style>",
        ],
    )
    def test_no_inline_declarations(self, source: str):
        assert inline_style_properties(source) == []

    @pytest.mark.unit
    def test_sizing_may_stay_inline(self, make_variant):
        sized = make_variant(source_artifact="<button style={ { minHeight: 48, minWidth: 48 } }>")
        styled = make_variant(source_artifact='<div style="color: var(--color-brand)">')
        assert inline_styles_ok(sized) is True
        assert inline_styles_ok(styled) is False


class TestSpacingGrid:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        ["padding: 16px", "margin-left: 0", "gap: 1.5rem", "paddingHorizontal: 24,", "gap-2"],
    )
    def test_on_grid(self, make_variant, source: str):
        assert spacing_grid_ok(make_variant(source_artifact=source)) is True

    @pytest.mark.unit
    def test_off_grid_values(self):
        source = "padding: 13px; margin-top: 10px; gap: 0.3rem; paddingLeft: 20"
        assert off_grid_spacing(source) == [13.0, 10.0, pytest.approx(4.8)]

    @pytest.mark.unit
    def test_rule_fails_off_grid(self, make_variant):
        assert spacing_grid_ok(make_variant(source_artifact="padding: 13px")) is False


# ---------------------------------------------------------------------------
# Localization
# ---------------------------------------------------------------------------


class TestLocalizationRules:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,hardcoded",
        [
            ("Pay now", True),
            ("Button", True),
            ("checkout.pay", False),
            ("t('checkout.pay')", False),
            ("$t('form.email')", False),
            ("https://example.com", False),
            ("API_KEY", False),
            ("42 %", False),
            ("", False),
        ],
    )
    def test_is_hardcoded_text(self, value: str, hardcoded: bool):
        assert is_hardcoded_text(value) is hardcoded

    @pytest.mark.unit
    def test_text_rule_needs_i18n_tag(self, make_variant):
        assert localized_text_ok(make_variant()) is True
        localized = make_variant(compliance_tags=frozenset({"i18n:localized"}))
        assert localized_text_ok(localized) is False

    @pytest.mark.unit
    def test_translation_keys_pass(self, make_variant):
        variant = make_variant(
            applied_props={"label": "checkout.pay", "size": "md", "variant": "primary"},
            compliance_tags=frozenset({"i18n:rtl"}),
        )
        assert localized_text_ok(variant) is True

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "source",
        [
            '<div className="ml-4">',
            "style={ { marginLeft: 8 } }",
            "text-align: right;",
            "textAlign: 'left'",
            '<div class="border-l-4 text-right">',
        ],
    )
    def test_directional_styles_flagged_at_rtl(self, make_variant, source: str):
        variant = make_variant(source_artifact=source, compliance_tags=frozenset({"i18n:rtl"}))
        assert rtl_support_ok(variant) is False

    @pytest.mark.unit
    def test_rtl_rule_levels(self, make_variant):
        source = '<div className="ml-4">'
        assert rtl_support_ok(make_variant(source_artifact=source)) is True
        assert rtl_support_ok(
            make_variant(source_artifact=source, compliance_tags=frozenset({"i18n:localized"}))
        ) is True
        logical = make_variant(
            source_artifact='<div className="ms-4 text-start">',
            compliance_tags=frozenset({"i18n:rtl"}),
        )
        assert rtl_support_ok(logical) is True
