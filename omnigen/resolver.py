"""Intent resolution: request -> canonical ``ComponentSpec``.

The resolver validates and normalises. It never guesses: a kind is taken
from the request, or from a deterministic alias lookup over the hint, or
(asynchronously, and only if configured) from an external suggester whose
answer is re-validated like any other input.
"""

from __future__ import annotations

import math
from typing import Any, Awaitable, Optional, Protocol

from omnigen.catalog import KindCatalog, normalize_tag
from omnigen.errors import InvalidProp, UnknownKind
from omnigen.models import (
    ComponentSpec,
    GenerationRequest,
    KindDefinition,
    PropSpec,
    PropType,
    PropValue,
)
from omnigen.suggester import KeywordSuggester, Suggestion
from omnigen.utils import sanitize_name

_TRUE_WORDS = {"true", "yes", "on", "1"}
_FALSE_WORDS = {"false", "no", "off", "0"}


class SuggestionCollaborator(Protocol):
    """Anything that can turn free text into a ``Suggestion``."""

    def suggest(self, hint: str) -> Awaitable[Optional[Suggestion]]: ...


def normalize_kind(kind: str) -> str:
    return sanitize_name(kind)


def coerce_request(request: GenerationRequest | dict[str, Any]) -> GenerationRequest:
    if isinstance(request, GenerationRequest):
        return request
    return GenerationRequest.model_validate(request)


class IntentResolver:
    """Turns a ``GenerationRequest`` into a fully typed ``ComponentSpec``."""

    def __init__(
        self,
        catalog: KindCatalog,
        collaborator: SuggestionCollaborator | None = None,
    ) -> None:
        self.catalog = catalog
        self.keywords = KeywordSuggester(catalog)
        self.collaborator = collaborator

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, request: GenerationRequest | dict[str, Any]) -> ComponentSpec:
        """Resolve a request using only the catalog. Pure and side-effect-free.

        Raises:
            UnknownKind: The kind is not in the catalog, or the hint names none.
            InvalidProp: A prop is unknown, mistyped, or a required one is missing.
            InvalidTag: A requested compliance tag is malformed.
        """
        request = coerce_request(request)
        hint = request.natural_language_hint or ""

        if request.kind:
            kind = normalize_kind(request.kind)
            if kind not in self.catalog:
                raise UnknownKind(request.kind, hint or None)
            hinted = self.keywords.extract_props(kind, hint) if hint else {}
            return self._build(kind, hinted, request)

        if not hint.strip():
            raise UnknownKind(None, None)

        suggestion = self.keywords.suggest_sync(hint)
        if suggestion is None or suggestion.kind is None:
            raise UnknownKind(None, hint)
        return self._build(suggestion.kind, suggestion.props, request)

    async def resolve_async(
        self, request: GenerationRequest | dict[str, Any]
    ) -> ComponentSpec:
        """Like :meth:`resolve`, but falls back to the external collaborator
        when a hint-only request matches no catalog alias."""
        request = coerce_request(request)
        try:
            return self.resolve(request)
        except UnknownKind:
            hint = request.natural_language_hint
            if request.kind or not hint or self.collaborator is None:
                raise

        suggestion = await self.collaborator.suggest(hint)
        if suggestion is None or not suggestion.kind:
            raise UnknownKind(None, hint)
        kind = normalize_kind(suggestion.kind)
        if kind not in self.catalog:
            raise UnknownKind(suggestion.kind, hint)
        return self._build(kind, suggestion.props, request)

    # ------------------------------------------------------------------
    # Normalisation
    # ------------------------------------------------------------------

    def _build(
        self, kind: str, hinted: dict[str, Any], request: GenerationRequest
    ) -> ComponentSpec:
        definition = self.catalog.get(kind)
        if definition is None:
            raise UnknownKind(kind, request.natural_language_hint)
        raw = {**hinted, **request.props}
        props = normalize_props(definition, raw)

        tags = {normalize_tag(tag) for tag in request.compliance_tags}
        tags.update(definition.implied_tags)

        return ComponentSpec(
            kind=kind,
            props=props,
            compliance_tags=frozenset(tags),
            source_hint=request.natural_language_hint,
        )


def normalize_props(definition: KindDefinition, raw: dict[str, Any]) -> dict[str, PropValue]:
    """Type-check, coerce and default *raw* against the kind's prop schema."""
    for name in raw:
        if definition.prop(name) is None:
            raise InvalidProp(definition.kind, name, "not a prop of this kind")

    props: dict[str, PropValue] = {}
    for spec in definition.props:
        value = raw.get(spec.name)
        if value is None:
            if spec.default is not None:
                props[spec.name] = spec.default
            elif spec.required:
                raise InvalidProp(definition.kind, spec.name, "required prop is missing")
            continue
        props[spec.name] = coerce_value(definition.kind, spec, value)
    return props


def coerce_value(kind: str, spec: PropSpec, value: Any) -> PropValue:
    if spec.type == PropType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        raise InvalidProp(kind, spec.name, f"expected a boolean, got {value!r}")

    if spec.type == PropType.NUMBER:
        if isinstance(value, bool):
            raise InvalidProp(kind, spec.name, f"expected a number, got {value!r}")
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                try:
                    value = float(value.strip())
                except ValueError:
                    raise InvalidProp(
                        kind, spec.name, f"expected a number, got {value!r}"
                    ) from None
        if isinstance(value, (int, float)) and not (
            isinstance(value, float) and not math.isfinite(value)
        ):
            return value
        raise InvalidProp(kind, spec.name, f"expected a number, got {value!r}")

    if spec.type == PropType.ENUM:
        if isinstance(value, str) and value.strip().lower() in spec.choices:
            return value.strip().lower()
        raise InvalidProp(
            kind, spec.name, f"expected one of {spec.choices}, got {value!r}"
        )

    if isinstance(value, bool):
        raise InvalidProp(kind, spec.name, f"expected text, got {value!r}")
    if isinstance(value, (str, int, float)):
        return str(value)
    raise InvalidProp(kind, spec.name, f"expected text, got {type(value).__name__}")
