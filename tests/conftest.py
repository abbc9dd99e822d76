"""Shared pytest fixtures for the omnigen test suite.

Provides reusable fixtures for:
- The built-in kind catalog and rule set
- A small template registry with the synthetic platforms "alpha" and "beta"
  ("gamma" is deliberately left without templates)
- Engine factories wired to those registries
- Mocked Ollama responses
"""

from __future__ import annotations

import json
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rich.console import Console

from omnigen.catalog import KindCatalog, default_catalog
from omnigen.config import EngineConfig
from omnigen.expander import VariantExpander
from omnigen.models import ComponentSpec, PlatformVariant, PropValue
from omnigen.orchestrator import GenerationOrchestrator
from omnigen.resolver import IntentResolver
from omnigen.rules import RuleSet, register_builtin_rules
from omnigen.templates import TemplateDefinition, TemplateRegistry
from omnigen.validator import ComplianceValidator


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

TEST_PLATFORMS = ["alpha", "beta"]

# Props each synthetic platform cannot express.
TEST_UNSUPPORTED: dict[str, set[str]] = {
    "alpha": set(),
    "beta": {"href"},
}


def simple_render(platform: str) -> Callable[[dict[str, PropValue], ComponentSpec], str]:
    """Render fn producing a plain, rule-neutral one-liner."""

    def render(props: dict[str, PropValue], spec: ComponentSpec) -> str:
        body = " ".join(f"{k}={props[k]}" for k in sorted(props))
        return f"<{platform}-{spec.kind} {body}>"

    return render


def make_registry(catalog: KindCatalog, platforms: list[str] | None = None) -> TemplateRegistry:
    registry = TemplateRegistry()
    for platform in platforms or TEST_PLATFORMS:
        unsupported = TEST_UNSUPPORTED.get(platform, set())
        for definition in catalog:
            registry.register(
                TemplateDefinition(
                    kind=definition.kind,
                    platform=platform,
                    render=simple_render(platform),
                    supported_props=frozenset(
                        p.name for p in definition.props if p.name not in unsupported
                    ),
                    file_extension=f".{platform}",
                )
            )
    return registry


@pytest.fixture
def catalog() -> KindCatalog:
    """Fresh built-in catalog (not frozen)."""
    return default_catalog()


@pytest.fixture
def registry(catalog: KindCatalog) -> TemplateRegistry:
    """Registry with templates for "alpha" and "beta" only."""
    return make_registry(catalog)


@pytest.fixture
def rules(catalog: KindCatalog) -> RuleSet:
    """Built-in rule set."""
    rule_set = RuleSet()
    register_builtin_rules(rule_set, catalog)
    return rule_set


@pytest.fixture
def make_engine(
    catalog: KindCatalog, registry: TemplateRegistry, rules: RuleSet
) -> Callable[..., GenerationOrchestrator]:
    """Factory for an orchestrator over the test registries.

    Usage:
        def test_something(make_engine):
            engine = make_engine(max_parallel_platforms=1)
    """

    def factory(
        collaborator: Any = None,
        rule_set: RuleSet | None = None,
        template_registry: TemplateRegistry | None = None,
        **config: Any,
    ) -> GenerationOrchestrator:
        return GenerationOrchestrator(
            resolver=IntentResolver(catalog, collaborator),
            expander=VariantExpander(template_registry or registry),
            validator=ComplianceValidator(rule_set or rules),
            config=EngineConfig(**config),
            out=Console(quiet=True),
        )

    return factory


@pytest.fixture
def engine(make_engine: Callable[..., GenerationOrchestrator]) -> GenerationOrchestrator:
    return make_engine()


@pytest.fixture
def make_variant() -> Callable[..., PlatformVariant]:
    """Factory for hand-built variants used by rule and validator tests."""

    def factory(**overrides: Any) -> PlatformVariant:
        fields: dict[str, Any] = {
            "platform": "alpha",
            "kind": "button",
            "source_artifact": "<alpha-button label=Button size=md>",
            "applied_props": {"label": "Button", "size": "md", "variant": "primary"},
        }
        fields.update(overrides)
        return PlatformVariant(**fields)

    return factory


# ---------------------------------------------------------------------------
# Mock Ollama
# ---------------------------------------------------------------------------

def _make_ollama_generate_response(model: str, text: str) -> dict[str, Any]:
    """Build a realistic Ollama /api/generate response."""
    return {
        "model": model,
        "created_at": "2026-01-15T10:30:00.000Z",
        "response": text,
        "done": True,
        "total_duration": 1234567890,
        "load_duration": 123456789,
        "prompt_eval_count": 42,
        "eval_count": 128,
    }


@pytest.fixture
def mock_ollama():
    """Mocked Ollama API returning a payment-form suggestion.

    Patches httpx.AsyncClient so calls to /api/generate receive a JSON
    ``{kind, props}`` answer.

    Usage:
        def test_something(mock_ollama):
            with mock_ollama:
                ...
    """
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = _make_ollama_generate_response(
        "llama3.1:8b",
        json.dumps({"kind": "payment-form", "props": {"currency": "EUR"}}),
    )
    mock_response.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    mock_client.post = AsyncMock(return_value=mock_response)
    mock_client.get = AsyncMock(return_value=mock_response)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)

    return patch("httpx.AsyncClient", return_value=mock_client)
