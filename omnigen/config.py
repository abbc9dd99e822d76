"""omnigen configuration.

Centralised, typed configuration for the generation engine. All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


DuplicatePolicy = Literal["coalesce", "reject", "new"]


class OllamaConfig(BaseModel):
    """Configuration for the optional Ollama natural-language suggester."""

    enabled: bool = Field(default=False, description="Consult Ollama for unmatched hints")
    url: str = Field(default="http://localhost:11434")
    model: str = Field(default="llama3.1:8b")
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")


class EngineConfig(BaseModel):
    """Global engine configuration.

    Instances are typically created once by the CLI entry point (or by the
    embedding application) and handed to ``create_engine``.
    """

    max_parallel_platforms: int = Field(
        default=4, ge=1, description="Maximum platform units running at once per job"
    )
    duplicate_policy: DuplicatePolicy = Field(
        default="coalesce",
        description="What to do with a request identical to one already running",
    )
    retention_seconds: float = Field(
        default=3600.0, ge=0, description="How long finished jobs stay queryable"
    )
    event_buffer: int = Field(
        default=256, ge=1, description="Per-job replay log size"
    )
    verbose: bool = Field(default=False, description="Print job lifecycle to the console")
    default_platforms: list[str] = Field(
        default=["react", "vue", "angular", "svelte", "react-native", "vanilla", "radix"],
        description="Platforms used by the CLI when none are given",
    )
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "EngineConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build an ``EngineConfig`` from environment variables.

        Recognised variables (all optional):
            OMNIGEN_MAX_PARALLEL, OMNIGEN_DUPLICATE_POLICY, OMNIGEN_RETENTION,
            OMNIGEN_EVENT_BUFFER, OMNIGEN_VERBOSE, OMNIGEN_PLATFORMS,
            OMNIGEN_OLLAMA_ENABLED, OMNIGEN_OLLAMA_URL, OMNIGEN_OLLAMA_MODEL,
            OMNIGEN_OLLAMA_TIMEOUT.
        """
        ollama_kwargs: dict[str, Any] = {}
        if os.environ.get("OMNIGEN_OLLAMA_ENABLED"):
            ollama_kwargs["enabled"] = _truthy(os.environ["OMNIGEN_OLLAMA_ENABLED"])
        if os.environ.get("OMNIGEN_OLLAMA_URL"):
            ollama_kwargs["url"] = os.environ["OMNIGEN_OLLAMA_URL"]
        if os.environ.get("OMNIGEN_OLLAMA_MODEL"):
            ollama_kwargs["model"] = os.environ["OMNIGEN_OLLAMA_MODEL"]
        if os.environ.get("OMNIGEN_OLLAMA_TIMEOUT"):
            ollama_kwargs["timeout"] = int(os.environ["OMNIGEN_OLLAMA_TIMEOUT"])

        kwargs: dict[str, Any] = {"ollama": OllamaConfig(**ollama_kwargs)}
        if os.environ.get("OMNIGEN_MAX_PARALLEL"):
            kwargs["max_parallel_platforms"] = int(os.environ["OMNIGEN_MAX_PARALLEL"])
        if os.environ.get("OMNIGEN_DUPLICATE_POLICY"):
            kwargs["duplicate_policy"] = os.environ["OMNIGEN_DUPLICATE_POLICY"]
        if os.environ.get("OMNIGEN_RETENTION"):
            kwargs["retention_seconds"] = float(os.environ["OMNIGEN_RETENTION"])
        if os.environ.get("OMNIGEN_EVENT_BUFFER"):
            kwargs["event_buffer"] = int(os.environ["OMNIGEN_EVENT_BUFFER"])
        if os.environ.get("OMNIGEN_VERBOSE"):
            kwargs["verbose"] = _truthy(os.environ["OMNIGEN_VERBOSE"])
        if os.environ.get("OMNIGEN_PLATFORMS"):
            kwargs["default_platforms"] = [
                p.strip() for p in os.environ["OMNIGEN_PLATFORMS"].split(",") if p.strip()
            ]

        return cls(**kwargs)


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")
