"""Template registry: ``(kind, platform) -> TemplateDefinition``.

The registry is populated at process start-up and frozen before the first
request is handled. After that it is a read-only lookup table shared by
every platform unit without locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from omnigen.errors import RegistryFrozenError, TemplateNotFound
from omnigen.models import ComponentSpec, PropValue

# Signature: (supported props, spec) -> generated source text
RenderFn = Callable[[dict[str, PropValue], ComponentSpec], str]


@dataclass(frozen=True)
class TemplateDefinition:
    """How one kind is emitted for one platform."""

    kind: str
    platform: str
    render: RenderFn
    supported_props: frozenset[str] = field(default_factory=frozenset)
    native_tags: frozenset[str] = field(default_factory=frozenset)
    file_extension: str = ".txt"
    version: int = 1
    description: str = ""

    def file_name(self, component_name: str) -> str:
        return f"{component_name}{self.file_extension}"


class TemplateRegistry:
    """Versioned store of template definitions."""

    def __init__(self) -> None:
        self._versions: dict[tuple[str, str], dict[int, TemplateDefinition]] = {}
        self._latest: dict[tuple[str, str], TemplateDefinition] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Authoring (initialisation only)
    # ------------------------------------------------------------------

    def register(self, definition: TemplateDefinition) -> None:
        """Add a template definition.

        Raises:
            RegistryFrozenError: If called after :meth:`freeze`.
            ValueError: If this exact (kind, platform, version) already exists.
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register template {definition.kind}/{definition.platform}: "
                "registry is frozen"
            )
        key = (definition.kind, definition.platform)
        versions = self._versions.setdefault(key, {})
        if definition.version in versions:
            raise ValueError(
                f"Template {definition.kind}/{definition.platform} "
                f"version {definition.version} is already registered"
            )
        versions[definition.version] = definition
        current = self._latest.get(key)
        if current is None or definition.version > current.version:
            self._latest[key] = definition

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(
        self, kind: str, platform: str, version: Optional[int] = None
    ) -> TemplateDefinition:
        """Return the latest (or the requested) definition for a pair.

        Raises:
            TemplateNotFound: If nothing is registered for the pair/version.
        """
        key = (kind, platform)
        if version is None:
            definition = self._latest.get(key)
        else:
            definition = self._versions.get(key, {}).get(version)
        if definition is None:
            raise TemplateNotFound(kind, platform, version)
        return definition

    def supports(self, kind: str, platform: str) -> bool:
        return (kind, platform) in self._latest

    def versions(self, kind: str, platform: str) -> list[int]:
        return sorted(self._versions.get((kind, platform), {}))

    def platforms(self) -> list[str]:
        seen: list[str] = []
        for _, platform in self._latest:
            if platform not in seen:
                seen.append(platform)
        return seen

    def kinds(self, platform: Optional[str] = None) -> list[str]:
        seen: list[str] = []
        for kind, plat in self._latest:
            if (platform is None or plat == platform) and kind not in seen:
                seen.append(kind)
        return seen

    def __len__(self) -> int:
        return len(self._latest)
