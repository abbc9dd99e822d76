"""Built-in compliance rule pack.

Prop-based rules read the variant's applied props; the others scan the
generated source with compiled regex patterns.
The two i18n rules only apply to variants tagged ``i18n:localized`` or
``i18n:rtl``.
"""

from __future__ import annotations

import re
from typing import Optional

from omnigen.catalog import SIZE_HEIGHTS, KindCatalog, default_catalog, level_index, tag_level
from omnigen.models import PlatformVariant, Severity
from omnigen.rules.base import ConstraintRule, RuleSet
from omnigen.utils import kebab_case


# Minimum touch target (WCAG 2.5.5 / platform HIGs), in CSS pixels.
MIN_TOUCH_TARGET = 44

# Minimum heights for a professional look, per kind.
PROFESSIONAL_HEIGHTS: dict[str, int] = {"button": 48, "input": 56}

# Variants whose foreground sits on a transparent background.
LOW_EMPHASIS_VARIANTS = frozenset({"ghost", "outline", "link"})

_RAW_HTML_PATTERNS = {
    "react": r"dangerouslySetInnerHTML",
    "vue": r"\bv-html\s*=",
    "angular": r"\[innerHTML\]\s*=",
    "svelte": r"\{@html\s",
    "dom": r"\.innerHTML\s*=(?!=)",
}

_RAW_HTML_RE = re.compile("|".join(f"(?:{p})" for p in _RAW_HTML_PATTERNS.values()))

_HARDCODED_COLOR_RE = re.compile(r"#[0-9a-fA-F]{6}\b|#[0-9a-fA-F]{3}\b|\brgba?\(")

# Spacing scale (px) for the 8pt grid, with 4px half-steps.
SPACING_GRID = frozenset(
    [0, 4, 8, 12, 16, 20, 24, 28, 32, 36, 40, 44, 48, 52, 56, 60, 64, 72, 80, 88, 96,
     104, 112, 120, 128, 144, 160, 176, 192, 208, 224, 240, 256]
)

# Inline declarations allowed to stay inline; sizing carries the touch-target rules.
INLINE_SIZING_PROPERTIES = frozenset(
    {"height", "width", "min-height", "min-width", "max-height", "max-width"}
)

# Props that carry user-facing text.
TEXT_PROPS = frozenset({"label", "title", "body", "placeholder"})

_SPACING_RE = re.compile(
    r"\b(?:padding|margin|gap|space)(?:[A-Z][a-zA-Z]*|-[a-z]+(?:-[a-z]+)*)?"
    r"\s*:\s*['\"]?(\d+(?:\.\d+)?)(px|rem|em)?\b"
)

_INLINE_STYLE_RES = [
    # JSX object literal: style={ { minHeight: 44 } }
    re.compile(r"\bstyle=\{\s*\{([^{}]*)\}"),
    # Vue binding: :style="{ minHeight: '44px' }"
    re.compile(r":style=\"\{([^\"]*)\}\""),
    # Plain attribute: style="min-height: 44px"
    re.compile(r"(?<![:\w.\[-])style\s*=\s*[\"']([^\"']*)[\"']"),
]

_INLINE_PROPERTY_RES = [
    # Angular binding: [style.min-height.px]
    re.compile(r"\[style\.([\w-]+)(?:\.\w+)?\]"),
    # DOM assignment: el.style.minHeight = ...
    re.compile(r"\.style\.(\w+)\s*=(?!=)"),
]

_DECLARATION_KEY_RE = re.compile(r"([\w-]+)\s*:")

_DIRECTIONAL_RE = re.compile(
    r"\b(?:margin|padding|border)-(?:left|right)\b"
    r"|\b(?:margin|padding|border)(?:Left|Right)\b"
    r"|\b(?:text-align|float)\s*:\s*(?:left|right)\b"
    r"|\btextAlign\s*:\s*['\"](?:left|right)\b"
    r"|\b(?:[mp][lr]|left|right)-\d"
    r"|\b(?:text|float)-(?:left|right)\b"
    r"|\b(?:border|rounded)-[lr]-"
)

_TRANSLATION_KEY_RE = re.compile(
    r"^(?:[a-z][\w-]*(?:\.[\w-]+)+|(?:t|\$t|i18n\.t|translate)\(.*\))$"
)

_WORDS_RE = re.compile(r"[a-zA-Z]{2,}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def rendered_height(variant: PlatformVariant) -> Optional[int]:
    """Height implied by the variant's ``size`` prop, or ``None``."""
    size = variant.applied_props.get("size")
    if not isinstance(size, str):
        return None
    return SIZE_HEIGHTS.get(size)


def has_raw_html_sink(source: Optional[str]) -> bool:
    return bool(source) and _RAW_HTML_RE.search(source) is not None


def inline_style_properties(source: Optional[str]) -> list[str]:
    """Kebab-case names of every property the source sets inline."""
    if not source:
        return []
    found: list[str] = []
    for pattern in _INLINE_STYLE_RES:
        for match in pattern.finditer(source):
            found.extend(_DECLARATION_KEY_RE.findall(match.group(1)))
    for pattern in _INLINE_PROPERTY_RES:
        found.extend(pattern.findall(source))
    return [kebab_case(name) for name in found]


def off_grid_spacing(source: Optional[str]) -> list[float]:
    """Spacing values in px that are not on the 8pt grid (rem/em count as 16px)."""
    if not source:
        return []
    off: list[float] = []
    for match in _SPACING_RE.finditer(source):
        value = float(match.group(1))
        if match.group(2) in ("rem", "em"):
            value *= 16
        if value not in SPACING_GRID:
            off.append(value)
    return off


def is_hardcoded_text(value: str) -> bool:
    """True for prose that should come from a translation catalog.

    Translation keys (``checkout.pay``, ``t('checkout.pay')``), URLs,
    CONSTANT_NAMES and strings without words are accepted.
    """
    text = value.strip()
    if not text or not _WORDS_RE.search(text):
        return False
    if text.startswith(("http://", "https://")):
        return False
    if re.fullmatch(r"[A-Z][A-Z0-9_]*", text):
        return False
    return _TRANSLATION_KEY_RE.match(text) is None


# ---------------------------------------------------------------------------
# Predicates (True = passes)
# ---------------------------------------------------------------------------


def touch_target_ok(variant: PlatformVariant) -> bool:
    height = rendered_height(variant)
    return height is None or height >= MIN_TOUCH_TARGET


def professional_sizing_ok(variant: PlatformVariant) -> bool:
    minimum = PROFESSIONAL_HEIGHTS.get(variant.kind)
    height = rendered_height(variant)
    if minimum is None or height is None:
        return True
    return height >= minimum


def enhanced_contrast_ok(variant: PlatformVariant) -> bool:
    if tag_level(variant.compliance_tags, "a11y") < level_index("a11y", "aaa"):
        return True
    if "a11y:aaa" in variant.native_tags:
        return True
    return variant.applied_props.get("variant") not in LOW_EMPHASIS_VARIANTS


def raw_html_restricted_ok(variant: PlatformVariant) -> bool:
    if tag_level(variant.compliance_tags, "security") < level_index("security", "restricted"):
        return True
    return not has_raw_html_sink(variant.source_artifact)


def raw_html_ok(variant: PlatformVariant) -> bool:
    return not has_raw_html_sink(variant.source_artifact)


def hardcoded_colors_ok(variant: PlatformVariant) -> bool:
    if not variant.source_artifact:
        return True
    return _HARDCODED_COLOR_RE.search(variant.source_artifact) is None


def inline_styles_ok(variant: PlatformVariant) -> bool:
    return all(
        name in INLINE_SIZING_PROPERTIES
        for name in inline_style_properties(variant.source_artifact)
    )


def spacing_grid_ok(variant: PlatformVariant) -> bool:
    return not off_grid_spacing(variant.source_artifact)


def localized_text_ok(variant: PlatformVariant) -> bool:
    if tag_level(variant.compliance_tags, "i18n") < level_index("i18n", "localized"):
        return True
    return not any(
        isinstance(value, str) and is_hardcoded_text(value)
        for name, value in variant.applied_props.items()
        if name in TEXT_PROPS
    )


def rtl_support_ok(variant: PlatformVariant) -> bool:
    if tag_level(variant.compliance_tags, "i18n") < level_index("i18n", "rtl"):
        return True
    if not variant.source_artifact:
        return True
    return _DIRECTIONAL_RE.search(variant.source_artifact) is None


def make_accessible_name_predicate(interactive_kinds: frozenset[str]):
    def accessible_name_ok(variant: PlatformVariant) -> bool:
        if variant.kind not in interactive_kinds:
            return True
        label = variant.applied_props.get("label")
        if label is None:
            return True
        return bool(str(label).strip())

    return accessible_name_ok


# ---------------------------------------------------------------------------
# Rule pack
# ---------------------------------------------------------------------------


def builtin_rules(catalog: Optional[KindCatalog] = None) -> list[ConstraintRule]:
    """Return the built-in rules in evaluation order."""
    catalog = catalog or default_catalog()
    interactive = frozenset(d.kind for d in catalog if d.interactive)
    return [
        ConstraintRule(
            rule_id="touch-target-minimum",
            severity=Severity.BLOCKING,
            message=f"Interactive controls must be at least {MIN_TOUCH_TARGET}px tall",
            predicate=touch_target_ok,
            category="accessibility",
        ),
        ConstraintRule(
            rule_id="accessible-name",
            severity=Severity.BLOCKING,
            message="Interactive controls need a non-empty accessible name (label)",
            predicate=make_accessible_name_predicate(interactive),
            category="accessibility",
        ),
        ConstraintRule(
            rule_id="raw-html-restricted",
            severity=Severity.BLOCKING,
            message="Raw HTML injection is not allowed at security:restricted or above",
            predicate=raw_html_restricted_ok,
            category="security",
        ),
        ConstraintRule(
            rule_id="professional-sizing",
            severity=Severity.ADVISORY,
            message="Buttons should be at least 48px and inputs at least 56px tall",
            predicate=professional_sizing_ok,
            category="sizing",
        ),
        ConstraintRule(
            rule_id="enhanced-contrast",
            severity=Severity.ADVISORY,
            message="Low-emphasis variants may not reach 7:1 contrast required by a11y:aaa",
            predicate=enhanced_contrast_ok,
            category="accessibility",
        ),
        ConstraintRule(
            rule_id="raw-html",
            severity=Severity.ADVISORY,
            message="Component renders raw HTML; make sure the content is sanitised",
            predicate=raw_html_ok,
            category="security",
        ),
        ConstraintRule(
            rule_id="hardcoded-colors",
            severity=Severity.ADVISORY,
            message="Component uses hardcoded colours instead of design tokens",
            predicate=hardcoded_colors_ok,
            category="design-tokens",
        ),
        ConstraintRule(
            rule_id="no-inline-styles",
            severity=Severity.ADVISORY,
            message="Inline styles should only set sizing; use classes or design tokens",
            predicate=inline_styles_ok,
            category="design-tokens",
        ),
        ConstraintRule(
            rule_id="no-hardcoded-spacing",
            severity=Severity.ADVISORY,
            message="Spacing values should sit on the 8pt grid",
            predicate=spacing_grid_ok,
            category="design-tokens",
        ),
        ConstraintRule(
            rule_id="no-hardcoded-text",
            severity=Severity.ADVISORY,
            message="User-facing text should be a translation key at i18n:localized or above",
            predicate=localized_text_ok,
            category="i18n",
        ),
        ConstraintRule(
            rule_id="rtl-support-required",
            severity=Severity.ADVISORY,
            message="Use logical start/end properties instead of left/right at i18n:rtl",
            predicate=rtl_support_ok,
            category="i18n",
        ),
    ]


def register_builtin_rules(rule_set: RuleSet, catalog: Optional[KindCatalog] = None) -> int:
    rules = builtin_rules(catalog)
    for rule in rules:
        rule_set.add_rule(rule)
    return len(rules)
