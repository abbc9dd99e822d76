"""Variant expander: turns one ComponentSpec into one platform's draft variant.

Expansion never raises for a platform gap. A missing template becomes a
rejected variant carrying a blocking ``UnsupportedPlatform`` violation; a
prop the template cannot express becomes an advisory ``UnsupportedProp``
violation and is left out of the render.
"""

from __future__ import annotations

from omnigen.errors import TemplateNotFound
from omnigen.models import (
    UNSUPPORTED_PLATFORM,
    UNSUPPORTED_PROP,
    ComponentSpec,
    PlatformVariant,
    Severity,
    VariantStatus,
    Violation,
    ViolationStage,
)
from omnigen.templates.registry import TemplateRegistry
from omnigen.utils import pascal_case


class VariantExpander:
    """Renders a spec through the registry's template for a platform."""

    def __init__(self, registry: TemplateRegistry) -> None:
        self.registry = registry

    def expand(self, spec: ComponentSpec, platform: str) -> PlatformVariant:
        """Return a ``draft`` variant, or a ``rejected`` one if no template exists.

        Exceptions raised by a template's render function propagate; the
        orchestrator contains them per platform.
        """
        try:
            definition = self.registry.lookup(spec.kind, platform)
        except TemplateNotFound as exc:
            return PlatformVariant(
                platform=platform,
                kind=spec.kind,
                compliance_tags=spec.compliance_tags,
                violations=[
                    Violation(
                        code=UNSUPPORTED_PLATFORM,
                        severity=Severity.BLOCKING,
                        message=str(exc),
                        stage=ViolationStage.EXPANSION,
                    )
                ],
                status=VariantStatus.REJECTED,
            )

        applied = {}
        violations: list[Violation] = []
        for name, value in spec.props.items():
            if name in definition.supported_props:
                applied[name] = value
            else:
                violations.append(
                    Violation(
                        code=UNSUPPORTED_PROP,
                        severity=Severity.ADVISORY,
                        message=f"Prop {name!r} is not supported on {platform}; it was dropped",
                        stage=ViolationStage.EXPANSION,
                    )
                )

        artifact = definition.render(dict(applied), spec)
        return PlatformVariant(
            platform=platform,
            kind=spec.kind,
            compliance_tags=spec.compliance_tags,
            source_artifact=artifact,
            file_name=definition.file_name(pascal_case(spec.kind)),
            template_version=definition.version,
            applied_props=applied,
            native_tags=definition.native_tags,
            violations=violations,
            status=VariantStatus.DRAFT,
        )
