"""omnigen -- generate one UI component for many platforms.

A request names a component kind (or describes it in plain words), its props
and the target platforms. The engine resolves it into a canonical
``ComponentSpec``, renders it through each platform's template, checks every
rendering against the compliance rule set and reports the results as a
``GenerationJob``.

Quick usage::

    from omnigen import EngineConfig, create_engine

    engine = create_engine(EngineConfig(max_parallel_platforms=2))
    job = await engine.generate(
        {"kind": "button", "props": {"variant": "primary"}, "platforms": ["react", "vue"]}
    )
    for platform, variant in job.variants.items():
        print(platform, variant.status, variant.file_name)
"""

from omnigen.config import EngineConfig, OllamaConfig
from omnigen.errors import (
    DuplicateJobError,
    InvalidProp,
    InvalidTag,
    JobNotFound,
    OmnigenError,
    RegistryFrozenError,
    ResolutionError,
    TemplateNotFound,
    UnknownKind,
)
from omnigen.models import (
    ComponentSpec,
    GenerationJob,
    GenerationRequest,
    JobStatus,
    PlatformVariant,
    ProgressEvent,
    Severity,
    VariantStatus,
    Violation,
)
from omnigen.orchestrator import GenerationOrchestrator, create_engine

__version__ = "0.1.0"

__all__ = [
    "ComponentSpec",
    "DuplicateJobError",
    "EngineConfig",
    "GenerationJob",
    "GenerationOrchestrator",
    "GenerationRequest",
    "InvalidProp",
    "InvalidTag",
    "JobNotFound",
    "JobStatus",
    "OllamaConfig",
    "OmnigenError",
    "PlatformVariant",
    "ProgressEvent",
    "RegistryFrozenError",
    "ResolutionError",
    "Severity",
    "TemplateNotFound",
    "UnknownKind",
    "VariantStatus",
    "Violation",
    "create_engine",
]
