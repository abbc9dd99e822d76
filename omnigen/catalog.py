"""Closed catalog of component kinds and the compliance-tag vocabulary.

The catalog is what the intent resolver validates requests against: which
kinds exist, which typed props each kind accepts (with defaults), which
words in a natural-language hint point at a kind, and which compliance tags
a kind always implies.
"""

from __future__ import annotations

from typing import Iterable, Optional

from omnigen.errors import InvalidTag, RegistryFrozenError
from omnigen.models import KindDefinition, PropSpec, PropType


# ---------------------------------------------------------------------------
# Compliance tags
# ---------------------------------------------------------------------------

# Levels are ordered weakest -> strongest.
TAG_LEVELS: dict[str, list[str]] = {
    "security": ["open", "restricted", "confidential", "secret"],
    "a11y": ["a", "aa", "aaa"],
    "i18n": ["localized", "rtl"],
}


def parse_tag(tag: str) -> tuple[str, str]:
    """Split and validate an ``axis:level`` tag.

    Raises:
        InvalidTag: If the tag is malformed or names an unknown axis/level.
    """
    if ":" not in tag:
        raise InvalidTag(tag, "expected '<axis>:<level>'")
    axis, _, level = tag.strip().lower().partition(":")
    if axis not in TAG_LEVELS:
        raise InvalidTag(tag, f"unknown axis, expected one of {sorted(TAG_LEVELS)}")
    if level not in TAG_LEVELS[axis]:
        raise InvalidTag(tag, f"unknown {axis} level, expected one of {TAG_LEVELS[axis]}")
    return axis, level


def normalize_tag(tag: str) -> str:
    axis, level = parse_tag(tag)
    return f"{axis}:{level}"


def tag_level(tags: Iterable[str], axis: str) -> int:
    """Return the strongest level index present for *axis*, or ``-1``."""
    best = -1
    levels = TAG_LEVELS[axis]
    for tag in tags:
        tag_axis, _, level = tag.partition(":")
        if tag_axis == axis and level in levels:
            best = max(best, levels.index(level))
    return best


def level_index(axis: str, level: str) -> int:
    return TAG_LEVELS[axis].index(level)


# ---------------------------------------------------------------------------
# Built-in kinds
# ---------------------------------------------------------------------------

SIZE_CHOICES = ["tiny", "sm", "md", "lg", "xl"]

# Rendered control height in CSS pixels for each size.
SIZE_HEIGHTS: dict[str, int] = {"tiny": 32, "sm": 44, "md": 48, "lg": 56, "xl": 64}


def _size(default: str) -> PropSpec:
    return PropSpec(
        name="size",
        type=PropType.ENUM,
        default=default,
        choices=SIZE_CHOICES,
        description="Control size; maps to a rendered height",
    )


BUILTIN_KINDS: list[KindDefinition] = [
    KindDefinition(
        kind="button",
        description="Clickable action trigger",
        interactive=True,
        props=[
            PropSpec(
                name="variant",
                type=PropType.ENUM,
                default="primary",
                choices=["primary", "secondary", "outline", "ghost", "destructive", "link"],
            ),
            _size("md"),
            PropSpec(name="label", default="Button", description="Visible text"),
            PropSpec(name="disabled", type=PropType.BOOLEAN, default=False),
            PropSpec(name="loading", type=PropType.BOOLEAN, default=False),
            PropSpec(name="href", description="Render as a link to this URL"),
        ],
        aliases=["button", "btn", "cta", "call to action", "action"],
    ),
    KindDefinition(
        kind="input",
        description="Single-line text entry",
        interactive=True,
        props=[
            PropSpec(
                name="input_type",
                type=PropType.ENUM,
                default="text",
                choices=["text", "email", "password", "number", "search", "tel"],
            ),
            _size("lg"),
            PropSpec(name="label", default="Input", description="Accessible label"),
            PropSpec(name="placeholder", default=""),
            PropSpec(name="required", type=PropType.BOOLEAN, default=False),
            PropSpec(name="disabled", type=PropType.BOOLEAN, default=False),
            PropSpec(name="max_length", type=PropType.NUMBER),
        ],
        aliases=["input", "text field", "textbox", "text box", "field", "entry"],
    ),
    KindDefinition(
        kind="card",
        description="Content container with title and body",
        props=[
            PropSpec(
                name="variant",
                type=PropType.ENUM,
                default="default",
                choices=["default", "elevated", "outline"],
            ),
            PropSpec(name="title", default="Card"),
            PropSpec(name="body", default=""),
            PropSpec(name="accent", description="Accent colour token or literal"),
            PropSpec(
                name="allow_html",
                type=PropType.BOOLEAN,
                default=False,
                description="Render body as raw HTML",
            ),
        ],
        aliases=["card", "panel", "tile", "container"],
    ),
    KindDefinition(
        kind="payment-form",
        description="Card payment capture form",
        interactive=True,
        props=[
            PropSpec(
                name="currency",
                required=True,
                description="ISO 4217 code; there is no safe default",
            ),
            PropSpec(name="amount", type=PropType.NUMBER, default=0),
            _size("lg"),
            PropSpec(name="label", default="Pay"),
            PropSpec(name="save_card", type=PropType.BOOLEAN, default=False),
        ],
        aliases=["payment", "checkout", "credit card", "billing", "pay"],
        implied_tags=["security:restricted", "a11y:aa"],
    ),
]


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class KindCatalog:
    """Process-wide set of known kinds; read-only once frozen."""

    def __init__(self, kinds: Iterable[KindDefinition] = ()) -> None:
        self._kinds: dict[str, KindDefinition] = {}
        self._frozen = False
        for definition in kinds:
            self.register(definition)

    def register(self, definition: KindDefinition) -> None:
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register kind {definition.kind!r}: catalog is frozen"
            )
        for tag in definition.implied_tags:
            parse_tag(tag)
        self._kinds[definition.kind] = definition

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, kind: str) -> Optional[KindDefinition]:
        return self._kinds.get(kind)

    def kinds(self) -> list[str]:
        return list(self._kinds)

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def __iter__(self):
        return iter(self._kinds.values())


def default_catalog() -> KindCatalog:
    return KindCatalog(BUILTIN_KINDS)
