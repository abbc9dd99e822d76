"""Exception hierarchy for the omnigen engine.

Every exception carries a stable ``code`` string which is what ends up in
``GenerationJob.error`` and in CLI output.
"""

from __future__ import annotations


class OmnigenError(Exception):
    """Base class for all engine errors."""

    code = "OmnigenError"


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(OmnigenError):
    """A request could not be normalised into a ``ComponentSpec``."""

    code = "ResolutionError"


class UnknownKind(ResolutionError):
    """The request names (or the hint maps to) no known component kind."""

    code = "UnknownKind"

    def __init__(self, kind: str | None, hint: str | None = None) -> None:
        self.kind = kind
        self.hint = hint
        if kind:
            message = f"Unknown component kind: {kind!r}"
        elif hint:
            message = f"Could not map hint to a known component kind: {hint!r}"
        else:
            message = "Request names no component kind and carries no hint"
        super().__init__(message)


class InvalidProp(ResolutionError):
    """A prop is unknown for the kind, has the wrong type, or is missing."""

    code = "InvalidProp"

    def __init__(self, kind: str, prop: str, reason: str) -> None:
        self.kind = kind
        self.prop = prop
        self.reason = reason
        super().__init__(f"Invalid prop {prop!r} for kind {kind!r}: {reason}")


class InvalidTag(ResolutionError):
    """A compliance tag is malformed or names an unknown axis/level."""

    code = "InvalidTag"

    def __init__(self, tag: str, reason: str) -> None:
        self.tag = tag
        self.reason = reason
        super().__init__(f"Invalid compliance tag {tag!r}: {reason}")


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------


class TemplateNotFound(OmnigenError):
    """No template is registered for a (kind, platform) pair."""

    code = "TemplateNotFound"

    def __init__(self, kind: str, platform: str, version: int | None = None) -> None:
        self.kind = kind
        self.platform = platform
        self.version = version
        suffix = f" (version {version})" if version is not None else ""
        super().__init__(f"No template for kind {kind!r} on platform {platform!r}{suffix}")


class RegistryFrozenError(OmnigenError):
    """A registry was mutated after initialisation completed."""

    code = "RegistryFrozen"


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class JobNotFound(OmnigenError):
    """No job with the given id exists (or it was purged after retention)."""

    code = "JobNotFound"

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class DuplicateJobError(OmnigenError):
    """An identical request is already running and the policy is ``reject``."""

    code = "DuplicateJob"

    def __init__(self, existing_job_id: str) -> None:
        self.existing_job_id = existing_job_id
        super().__init__(f"An identical request is already running as job {existing_job_id}")
