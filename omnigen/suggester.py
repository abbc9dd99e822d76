"""Natural-language suggesters.

A suggester turns free text into a structured ``Suggestion`` (a kind plus
props). Its output is untrusted: the intent resolver validates a suggestion
exactly like a structured request.

``KeywordSuggester`` is the deterministic lookup the resolver always runs.
``OllamaSuggester`` is an optional external collaborator consulted only
when the keyword lookup finds nothing.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from omnigen.catalog import KindCatalog
from omnigen.models import PropType
from omnigen.ollama_client import OllamaClient


class Suggestion(BaseModel):
    """A structured ``{kind, props}`` guess derived from free text."""

    kind: Optional[str] = None
    props: dict[str, Any] = Field(default_factory=dict)


# Colloquial words that map onto enum choices.
_CHOICE_SYNONYMS: dict[str, dict[str, str]] = {
    "size": {
        "small": "sm",
        "medium": "md",
        "large": "lg",
        "big": "lg",
        "huge": "xl",
    },
    "input_type": {
        "mail": "email",
        "phone": "tel",
        "secret": "password",
    },
}


def tokenize(text: str) -> list[str]:
    return re.findall(r"[a-z0-9]+", text.lower())


def _count_phrase(tokens: list[str], phrase: list[str]) -> int:
    if not phrase:
        return 0
    width = len(phrase)
    return sum(
        1 for i in range(len(tokens) - width + 1) if tokens[i:i + width] == phrase
    )


# ---------------------------------------------------------------------------
# Deterministic keyword lookup
# ---------------------------------------------------------------------------


class KeywordSuggester:
    """Maps hints onto catalog kinds via alias phrases. No fuzzy matching."""

    def __init__(self, catalog: KindCatalog) -> None:
        self.catalog = catalog

    def match_kind(self, hint: str) -> Optional[str]:
        """Return the kind with the most alias hits; ties go to catalog order."""
        tokens = tokenize(hint)
        best_kind: Optional[str] = None
        best_hits = 0
        for definition in self.catalog:
            hits = sum(_count_phrase(tokens, tokenize(alias)) for alias in definition.aliases)
            if hits > best_hits:
                best_kind, best_hits = definition.kind, hits
        return best_kind

    def extract_props(self, kind: str, hint: str) -> dict[str, Any]:
        """Pick enum values named in the hint, e.g. "large primary button"."""
        definition = self.catalog.get(kind)
        if definition is None:
            return {}
        tokens = tokenize(hint)
        props: dict[str, Any] = {}
        for prop in definition.props:
            if prop.type != PropType.ENUM:
                continue
            synonyms = _CHOICE_SYNONYMS.get(prop.name, {})
            found = [c for c in prop.choices if c in tokens]
            found += [v for word, v in synonyms.items() if word in tokens and v not in found]
            if len(found) == 1:
                props[prop.name] = found[0]
        return props

    def suggest_sync(self, hint: str) -> Optional[Suggestion]:
        kind = self.match_kind(hint)
        if kind is None:
            return None
        return Suggestion(kind=kind, props=self.extract_props(kind, hint))

    async def suggest(self, hint: str) -> Optional[Suggestion]:
        return self.suggest_sync(hint)


# ---------------------------------------------------------------------------
# Ollama-backed collaborator
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = (
    "You map UI component descriptions to a fixed catalog. "
    "Answer with a single JSON object: {\"kind\": <catalog kind or null>, "
    "\"props\": {<prop name>: <value>}}. Use only kinds and props from the catalog."
)


class OllamaSuggester:
    """Asks a local Ollama model for a ``Suggestion``.

    Returns ``None`` when the server is unreachable or the answer is not a
    usable JSON object; the resolver then reports ``UnknownKind``.
    """

    def __init__(self, catalog: KindCatalog, client: OllamaClient, model: str) -> None:
        self.catalog = catalog
        self.client = client
        self.model = model

    def build_prompt(self, hint: str) -> str:
        lines = ["Catalog:"]
        for definition in self.catalog:
            props = ", ".join(
                f"{p.name} ({'|'.join(p.choices) if p.choices else p.type.value})"
                for p in definition.props
            )
            lines.append(f"- {definition.kind}: {definition.description}. Props: {props}")
        lines.extend(["", f"Description: {hint}"])
        return "\n".join(lines)

    async def suggest(self, hint: str) -> Optional[Suggestion]:
        response = await self.client.generate(
            self.build_prompt(hint),
            model=self.model,
            system=_SYSTEM_PROMPT,
            json_mode=True,
        )
        if not response.success:
            return None
        return parse_suggestion(response.text)


def parse_suggestion(text: str) -> Optional[Suggestion]:
    """Parse model output into a ``Suggestion``, tolerating code fences."""
    cleaned = text.strip()
    fence = re.search(r"```(?:json)?\s*(.*?)```", cleaned, re.DOTALL)
    if fence:
        cleaned = fence.group(1).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    try:
        return Suggestion.model_validate(data)
    except ValidationError:
        return None
