"""Pydantic v2 models for the omnigen component generation engine.

Defines the platform-neutral component description, the per-platform
variants produced from it, the job aggregate that owns those variants, and
the progress events emitted while a job runs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
)


PropValue = Union[str, bool, int, float]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    """Severity of a constraint violation."""
    BLOCKING = "blocking"
    ADVISORY = "advisory"


class VariantStatus(str, Enum):
    """Lifecycle of a single platform variant."""
    DRAFT = "draft"
    VALIDATED = "validated"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (VariantStatus.ACCEPTED, VariantStatus.REJECTED)


class JobStatus(str, Enum):
    """Lifecycle of a generation job."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


class EventPhase(str, Enum):
    """Progress event phases, in the order a platform unit emits them."""
    RESOLVED = "resolved"
    VARIANT_STARTED = "variant-started"
    VARIANT_VALIDATED = "variant-validated"
    VARIANT_DONE = "variant-done"
    JOB_DONE = "job-done"


class PropType(str, Enum):
    """Declared type of a component prop."""
    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    ENUM = "enum"


class ViolationStage(str, Enum):
    """Pipeline stage that recorded a violation."""
    EXPANSION = "expansion"
    COMPLIANCE = "compliance"
    ORCHESTRATION = "orchestration"


# Violation codes that are not rule ids.
UNSUPPORTED_PLATFORM = "UnsupportedPlatform"
UNSUPPORTED_PROP = "UnsupportedProp"
CANCELLED = "Cancelled"
RULE_ERROR = "RuleError"
RENDER_ERROR = "RenderError"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Kind catalog models
# ---------------------------------------------------------------------------

class PropSpec(BaseModel):
    """Typed declaration of one prop a component kind accepts."""
    name: str = Field(..., description="Prop name, e.g. 'variant'")
    type: PropType = Field(default=PropType.STRING, description="Declared value type")
    required: bool = Field(default=False, description="Whether a value must be present")
    default: Optional[PropValue] = Field(default=None, description="Value used when omitted")
    choices: list[str] = Field(
        default_factory=list, description="Allowed values for enum props"
    )
    description: str = Field(default="", description="What this prop controls")


class KindDefinition(BaseModel):
    """A component kind known to the engine."""
    kind: str = Field(..., description="Canonical kind id, e.g. 'button'")
    description: str = Field(default="")
    interactive: bool = Field(
        default=False, description="Whether the component receives user input"
    )
    props: list[PropSpec] = Field(default_factory=list)
    aliases: list[str] = Field(
        default_factory=list,
        description="Words or phrases that map a natural-language hint to this kind",
    )
    implied_tags: list[str] = Field(
        default_factory=list,
        description="Compliance tags every component of this kind carries",
    )

    def prop(self, name: str) -> Optional[PropSpec]:
        for spec in self.props:
            if spec.name == name:
                return spec
        return None


# ---------------------------------------------------------------------------
# Request & canonical spec
# ---------------------------------------------------------------------------

class GenerationRequest(BaseModel):
    """A caller's request to generate one component for several platforms."""
    kind: Optional[str] = Field(default=None, description="Known component kind")
    natural_language_hint: Optional[str] = Field(
        default=None, description="Free text describing the component"
    )
    props: dict[str, Any] = Field(default_factory=dict)
    platforms: list[str] = Field(..., min_length=1)
    compliance_tags: list[str] = Field(default_factory=list)

    @field_validator("platforms")
    @classmethod
    def _dedupe_platforms(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for platform in value:
            platform = platform.strip().lower()
            if platform and platform not in seen:
                seen.append(platform)
        if not seen:
            raise ValueError("at least one platform is required")
        return seen


class ComponentSpec(BaseModel):
    """Canonical, platform-neutral description of a component. Immutable.

    ``props`` is a read-only mapping, so every platform's render function
    sees the same values; deep copies share the instance.
    """
    model_config = ConfigDict(frozen=True)

    kind: str
    props: Mapping[str, PropValue] = Field(default_factory=dict, validate_default=True)
    compliance_tags: frozenset[str] = Field(default_factory=frozenset)
    source_hint: Optional[str] = None

    @field_validator("props")
    @classmethod
    def _freeze_props(cls, value: Mapping[str, PropValue]) -> Mapping[str, PropValue]:
        return MappingProxyType(dict(value))

    @field_serializer("props")
    def _dump_props(self, value: Mapping[str, PropValue]) -> dict[str, PropValue]:
        return dict(value)

    def __deepcopy__(self, memo: Optional[dict[int, Any]] = None) -> ComponentSpec:
        return self

    def fingerprint_payload(self) -> dict[str, Any]:
        """Order-independent representation used for duplicate detection."""
        return {
            "kind": self.kind,
            "props": dict(sorted(self.props.items())),
            "compliance_tags": sorted(self.compliance_tags),
        }


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

class Violation(BaseModel):
    """A constraint failure attached to a variant. Data, not an exception."""
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Rule id or engine violation code")
    severity: Severity
    message: str = Field(default="")
    stage: ViolationStage = Field(default=ViolationStage.COMPLIANCE)


# Score deducted per violation, out of 100.
SCORE_PENALTY: dict[Severity, int] = {Severity.BLOCKING: 10, Severity.ADVISORY: 5}


class ComplianceSummary(BaseModel):
    """Weighted score and per-severity counts for one variant's violations."""
    score: int = Field(ge=0, le=100)
    violations_by_severity: dict[str, int]
    compliant: bool

    @classmethod
    def from_violations(cls, violations: list[Violation]) -> ComplianceSummary:
        counts = {severity.value: 0 for severity in Severity}
        for violation in violations:
            counts[violation.severity.value] += 1
        penalty = sum(SCORE_PENALTY[v.severity] for v in violations)
        return cls(
            score=max(0, 100 - penalty),
            violations_by_severity=counts,
            compliant=counts[Severity.BLOCKING.value] == 0,
        )


class PlatformVariant(BaseModel):
    """The generated implementation of one component for one platform."""
    platform: str
    kind: str
    compliance_tags: frozenset[str] = Field(default_factory=frozenset)
    source_artifact: Optional[str] = Field(
        default=None, description="Generated source text, absent if no template"
    )
    file_name: Optional[str] = None
    template_version: Optional[int] = None
    applied_props: dict[str, PropValue] = Field(default_factory=dict)
    native_tags: frozenset[str] = Field(
        default_factory=frozenset,
        description="Compliance levels the platform's primitives guarantee on their own",
    )
    violations: list[Violation] = Field(default_factory=list)
    status: VariantStatus = Field(default=VariantStatus.DRAFT)

    @property
    def has_blocking(self) -> bool:
        return any(v.severity == Severity.BLOCKING for v in self.violations)

    @computed_field  # type: ignore[misc]
    @property
    def compliance(self) -> ComplianceSummary:
        """Weighted score and per-severity counts of the current violations."""
        return ComplianceSummary.from_violations(self.violations)

    def violation_codes(self) -> list[str]:
        return [v.code for v in self.violations]


# ---------------------------------------------------------------------------
# Jobs & events
# ---------------------------------------------------------------------------

class JobError(BaseModel):
    """Why a job failed before any per-platform work started."""
    code: str
    message: str


class GenerationJob(BaseModel):
    """One generation request across all requested platforms."""
    job_id: str
    spec: Optional[ComponentSpec] = None
    platforms: list[str] = Field(default_factory=list)
    variants: dict[str, PlatformVariant] = Field(default_factory=dict)
    status: JobStatus = Field(default=JobStatus.PENDING)
    error: Optional[JobError] = None
    fingerprint: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None

    def accepted(self) -> list[str]:
        return [p for p, v in self.variants.items() if v.status == VariantStatus.ACCEPTED]

    def rejected(self) -> list[str]:
        return [p for p, v in self.variants.items() if v.status == VariantStatus.REJECTED]

    def compliance_score(self) -> Optional[float]:
        """Mean variant score, or ``None`` for a job without variants."""
        if not self.variants:
            return None
        scores = [v.compliance.score for v in self.variants.values()]
        return sum(scores) / len(scores)


class ProgressEvent(BaseModel):
    """Immutable record emitted during a job's life."""
    model_config = ConfigDict(frozen=True)

    job_id: str
    phase: EventPhase
    platform: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
    sequence: int = 0
    status: Optional[str] = None
    job: Optional[GenerationJob] = Field(
        default=None, description="Full job snapshot, present on job-done only"
    )
