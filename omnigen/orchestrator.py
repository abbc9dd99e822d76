"""Generation orchestrator.

Drives one job through ``pending -> running -> completed | failed |
cancelled``:

1. Resolve the request into a ``ComponentSpec`` (failure -> ``failed`` job,
   no variants).
2. Fan out one task per requested platform, bounded by an
   ``asyncio.Semaphore``. Each task expands then validates its platform and
   writes only its own ``job.variants`` slot.
3. Once every platform task has finished, settle the job status and emit
   ``job-done`` with a full snapshot.

Cancellation is cooperative: the flag is checked before expansion and before
validation. A platform that observes it is recorded as ``rejected`` with a
blocking ``Cancelled`` violation and emits nothing further.

Usage::

    engine = create_engine(EngineConfig())
    job = await engine.generate(
        {"kind": "button", "props": {"variant": "primary"}, "platforms": ["react", "vue"]}
    )
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from rich.console import Console

from omnigen.catalog import KindCatalog, default_catalog
from omnigen.config import EngineConfig
from omnigen.errors import DuplicateJobError, ResolutionError
from omnigen.events import EventBroker, Subscriber
from omnigen.expander import VariantExpander
from omnigen.jobs import JobStore, fingerprint
from omnigen.models import (
    CANCELLED,
    RENDER_ERROR,
    ComponentSpec,
    EventPhase,
    GenerationJob,
    GenerationRequest,
    JobError,
    JobStatus,
    PlatformVariant,
    ProgressEvent,
    Severity,
    VariantStatus,
    Violation,
    ViolationStage,
)
from omnigen.ollama_client import OllamaClient
from omnigen.resolver import IntentResolver, SuggestionCollaborator, coerce_request
from omnigen.rules import RuleSet, register_builtin_rules
from omnigen.suggester import OllamaSuggester
from omnigen.templates import TemplateRegistry, TemplateRenderer, register_builtin_templates
from omnigen.utils import console, format_duration
from omnigen.validator import ComplianceValidator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GenerationOrchestrator:
    """Runs generation jobs against frozen template and rule registries."""

    def __init__(
        self,
        resolver: IntentResolver,
        expander: VariantExpander,
        validator: ComplianceValidator,
        config: Optional[EngineConfig] = None,
        store: Optional[JobStore] = None,
        events: Optional[EventBroker] = None,
        out: Optional[Console] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.resolver = resolver
        self.expander = expander
        self.validator = validator
        self.out = out or (console if self.config.verbose else Console(quiet=True))
        self.events = events or EventBroker(buffer_size=self.config.event_buffer, out=self.out)
        self.store = store or JobStore(
            retention_seconds=self.config.retention_seconds, on_purge=self.events.forget
        )
        self._tasks: dict[str, asyncio.Task[GenerationJob]] = {}

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, request: GenerationRequest | dict[str, Any]) -> str:
        """Start a job and return its id without waiting for it.

        Resolution failures do not raise: they produce a ``failed`` job.

        Raises:
            pydantic.ValidationError: If *request* is not a valid request shape.
            DuplicateJobError: Under the ``reject`` policy, when an identical
                job is still running.
        """
        job_id, _ = await self._submit(request)
        return job_id

    async def generate(self, request: GenerationRequest | dict[str, Any]) -> GenerationJob:
        """Submit *request* and wait for the finished job."""
        job_id, failed = await self._submit(request)
        if failed is not None:
            return failed
        return await self.wait(job_id)

    async def _submit(
        self, request: GenerationRequest | dict[str, Any]
    ) -> tuple[str, Optional[GenerationJob]]:
        """Start a job; a job that failed resolution comes back with its final snapshot."""
        request = coerce_request(request)
        try:
            spec = await self.resolver.resolve_async(request)
        except ResolutionError as exc:
            failed = self._fail(request, exc)
            return failed.job_id, failed

        job_fingerprint = fingerprint(spec, request.platforms)
        policy = self.config.duplicate_policy
        if policy != "new":
            live = self.store.find_live(job_fingerprint)
            if live is not None:
                if policy == "reject":
                    raise DuplicateJobError(live.job_id)
                self.out.print(f"[dim]Coalesced duplicate request into job {live.job_id}[/dim]")
                return live.job_id, None

        job_id = self.store.create(spec, request.platforms, fingerprint=job_fingerprint)
        job = self.store.get(job_id)
        for platform in job.platforms:
            job.variants[platform] = PlatformVariant(
                platform=platform, kind=spec.kind, compliance_tags=spec.compliance_tags
            )
        job.status = JobStatus.RUNNING
        self.out.print(
            f"[cyan]Job {job_id}[/cyan] {spec.kind} -> {', '.join(job.platforms)}"
        )
        self.events.emit(job_id, EventPhase.RESOLVED, status=job.status.value)

        task = asyncio.create_task(self._run(job, spec))
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))
        return job_id, None

    async def wait(self, job_id: str) -> GenerationJob:
        """Wait until *job_id* is terminal and return a snapshot of it.

        Raises:
            JobNotFound: If the id is unknown.
        """
        task = self._tasks.get(job_id)
        if task is not None:
            job = await asyncio.shield(task)
            return job.model_copy(deep=True)
        return self.get(job_id)

    async def drain(self) -> None:
        """Wait for every running job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    # ------------------------------------------------------------------
    # Queries and control
    # ------------------------------------------------------------------

    def get(self, job_id: str) -> GenerationJob:
        """Snapshot of the job's current state.

        Raises:
            JobNotFound: If the id is unknown or was purged.
        """
        return self.store.get(job_id).model_copy(deep=True)

    def cancel(self, job_id: str) -> bool:
        """Request cancellation; ``False`` if the job already finished.

        Raises:
            JobNotFound: If the id is unknown.
        """
        accepted = self.store.cancel(job_id)
        if accepted:
            self.out.print(f"[yellow]Job {job_id} cancellation requested[/yellow]")
        return accepted

    def stream(self, job_id: str) -> AsyncIterator[ProgressEvent]:
        """Async iterator over the job's events, replaying past ones first.

        Raises:
            JobNotFound: If the id is unknown.
        """
        self.store.get(job_id)
        return self.events.stream(job_id)

    def subscribe(self, callback: Subscriber, job_id: Optional[str] = None) -> int:
        return self.events.subscribe(callback, job_id=job_id)

    def unsubscribe(self, token: int) -> bool:
        return self.events.unsubscribe(token)

    # ------------------------------------------------------------------
    # Job execution
    # ------------------------------------------------------------------

    def _fail(self, request: GenerationRequest, exc: ResolutionError) -> GenerationJob:
        job_id = self.store.create(None, request.platforms)
        job = self.store.get(job_id)
        job.status = JobStatus.FAILED
        job.error = JobError(code=exc.code, message=str(exc))
        job.finished_at = _utcnow()
        self.store.mark_finished(job_id)
        self.out.print(f"[red]Job {job_id} failed: {exc.code}: {exc}[/red]")
        snapshot = job.model_copy(deep=True)
        self.events.emit(
            job_id,
            EventPhase.JOB_DONE,
            status=job.status.value,
            job=snapshot.model_copy(deep=True),
        )
        return snapshot

    async def _run(self, job: GenerationJob, spec: ComponentSpec) -> GenerationJob:
        started = time.monotonic()
        semaphore = asyncio.Semaphore(self.config.max_parallel_platforms)

        async def _bounded(platform: str) -> None:
            async with semaphore:
                await self._run_platform(job, spec, platform)

        await asyncio.gather(*[_bounded(p) for p in job.platforms])

        if self.store.is_cancelled(job.job_id):
            job.status = JobStatus.CANCELLED
        else:
            job.status = JobStatus.COMPLETED
        job.finished_at = _utcnow()
        self.store.mark_finished(job.job_id)

        self.out.print(
            f"[green]Job {job.job_id} {job.status.value}[/green] in "
            f"{format_duration(time.monotonic() - started)}: "
            f"{len(job.accepted())} accepted, {len(job.rejected())} rejected"
        )
        self.events.emit(
            job.job_id,
            EventPhase.JOB_DONE,
            status=job.status.value,
            job=job.model_copy(deep=True),
        )
        return job

    async def _run_platform(
        self, job: GenerationJob, spec: ComponentSpec, platform: str
    ) -> None:
        """Expand and validate one platform, writing only its own slot."""
        if self.store.is_cancelled(job.job_id):
            job.variants[platform] = _abandon(job.variants[platform])
            return

        self.events.emit(
            job.job_id, EventPhase.VARIANT_STARTED, platform=platform,
            status=VariantStatus.DRAFT.value,
        )
        try:
            variant = await asyncio.to_thread(self.expander.expand, spec, platform)
        except Exception as exc:
            variant = job.variants[platform].model_copy(
                update={
                    "violations": [
                        Violation(
                            code=RENDER_ERROR,
                            severity=Severity.BLOCKING,
                            message=f"Template for {platform} failed: {type(exc).__name__}: {exc}",
                            stage=ViolationStage.ORCHESTRATION,
                        )
                    ],
                    "status": VariantStatus.REJECTED,
                }
            )
            self.out.print(f"  [red]{platform}: render failed ({exc})[/red]")

        if self.store.is_cancelled(job.job_id):
            job.variants[platform] = _abandon(variant)
            return

        variant = self.validator.annotate(variant)
        job.variants[platform] = variant
        self.events.emit(
            job.job_id, EventPhase.VARIANT_VALIDATED, platform=platform,
            status=variant.status.value,
        )

        variant = self.validator.decide(variant)
        job.variants[platform] = variant
        self.out.print(
            f"  {platform}: {variant.status.value}"
            + (f" ({', '.join(variant.violation_codes())})" if variant.violations else "")
        )
        self.events.emit(
            job.job_id, EventPhase.VARIANT_DONE, platform=platform,
            status=variant.status.value,
        )


def _abandon(variant: PlatformVariant) -> PlatformVariant:
    return variant.model_copy(
        update={
            "violations": [
                *variant.violations,
                Violation(
                    code=CANCELLED,
                    severity=Severity.BLOCKING,
                    message="Job was cancelled before this platform finished",
                    stage=ViolationStage.ORCHESTRATION,
                ),
            ],
            "status": VariantStatus.REJECTED,
        }
    )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_engine(
    config: Optional[EngineConfig] = None,
    catalog: Optional[KindCatalog] = None,
    registry: Optional[TemplateRegistry] = None,
    rules: Optional[RuleSet] = None,
    collaborator: Optional[SuggestionCollaborator] = None,
    out: Optional[Console] = None,
) -> GenerationOrchestrator:
    """Build an orchestrator wired with the built-in catalog, templates and rules.

    Registries passed in are used as-is; the built-in ones are populated and
    frozen here. When ``config.ollama.enabled`` is set and no collaborator is
    given, hint-only requests that match no alias are sent to Ollama.
    """
    config = config or EngineConfig()
    if catalog is None:
        catalog = default_catalog()
    catalog.freeze()

    if registry is None:
        registry = TemplateRegistry()
        register_builtin_templates(registry, catalog, TemplateRenderer())
    registry.freeze()

    if rules is None:
        rules = RuleSet()
        register_builtin_rules(rules, catalog)
    rules.freeze()

    if collaborator is None and config.ollama.enabled:
        client = OllamaClient(base_url=config.ollama.url, timeout=config.ollama.timeout)
        collaborator = OllamaSuggester(catalog, client, config.ollama.model)

    return GenerationOrchestrator(
        resolver=IntentResolver(catalog, collaborator),
        expander=VariantExpander(registry),
        validator=ComplianceValidator(rules),
        config=config,
        out=out,
    )
