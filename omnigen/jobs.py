"""In-memory job store.

Owns every :class:`GenerationJob`, its cancellation flag and the
fingerprint index used to spot duplicate submissions. Terminal jobs are
kept for ``retention_seconds`` and purged lazily on the next store access.
"""

from __future__ import annotations

import hashlib
import json
import time
import uuid
from typing import Callable, Optional

from omnigen.errors import JobNotFound
from omnigen.models import ComponentSpec, GenerationJob, JobStatus


def fingerprint(spec: ComponentSpec, platforms: list[str]) -> str:
    """Stable digest of a resolved spec and its platform set."""
    payload = {"spec": spec.fingerprint_payload(), "platforms": sorted(platforms)}
    raw = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


class JobStore:
    """Maps job ids to jobs. Not shared across processes."""

    def __init__(
        self,
        retention_seconds: float = 3600.0,
        on_purge: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.retention_seconds = retention_seconds
        self.on_purge = on_purge
        self._jobs: dict[str, GenerationJob] = {}
        self._cancelled: set[str] = set()
        self._finished_at: dict[str, float] = {}

    def create(
        self,
        spec: Optional[ComponentSpec],
        platforms: list[str],
        fingerprint: Optional[str] = None,
    ) -> str:
        """Register a new ``pending`` job and return its id."""
        self.purge()
        job_id = uuid.uuid4().hex
        self._jobs[job_id] = GenerationJob(
            job_id=job_id,
            spec=spec,
            platforms=list(platforms),
            fingerprint=fingerprint,
        )
        return job_id

    def get(self, job_id: str) -> GenerationJob:
        """Return the live job object.

        Raises:
            JobNotFound: If the id is unknown or the job has been purged.
        """
        self.purge()
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    def cancel(self, job_id: str) -> bool:
        """Flag *job_id* for cancellation.

        Returns ``False`` if the job has already reached a terminal state.
        """
        job = self.get(job_id)
        if job.status.is_terminal:
            return False
        self._cancelled.add(job_id)
        return True

    def is_cancelled(self, job_id: str) -> bool:
        return job_id in self._cancelled

    def mark_finished(self, job_id: str) -> None:
        """Start the retention clock for a job that just went terminal."""
        self._finished_at[job_id] = time.monotonic()
        self._cancelled.discard(job_id)

    def find_live(self, job_fingerprint: str) -> Optional[GenerationJob]:
        """Return a non-terminal job with the same fingerprint, if any."""
        for job in self._jobs.values():
            if job.fingerprint == job_fingerprint and not job.status.is_terminal:
                return job
        return None

    def list(self) -> list[GenerationJob]:
        self.purge()
        return list(self._jobs.values())

    def purge(self) -> list[str]:
        """Drop terminal jobs older than the retention window."""
        now = time.monotonic()
        expired = [
            job_id
            for job_id, finished in self._finished_at.items()
            if now - finished >= self.retention_seconds
        ]
        for job_id in expired:
            self._jobs.pop(job_id, None)
            self._finished_at.pop(job_id, None)
            if self.on_purge is not None:
                self.on_purge(job_id)
        return expired

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)
