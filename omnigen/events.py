"""Progress event broker.

Every job gets its own sequence counter and a bounded replay log. Events
are delivered to synchronous subscribers inline, in emission order, and to
async consumers through :meth:`EventBroker.stream`, which replays what has
already happened before following the live feed. A stream ends after the
job's ``job-done`` event.

All emission happens on the event loop thread, so the replay snapshot and
queue registration in :meth:`stream` cannot interleave with an emit.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import deque
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional

from rich.console import Console

from omnigen.models import EventPhase, GenerationJob, ProgressEvent

Subscriber = Callable[[ProgressEvent], Any]


@dataclass(frozen=True)
class _Subscription:
    token: int
    callback: Subscriber
    job_id: Optional[str] = None


class EventBroker:
    """Per-job replay logs plus listener fan-out."""

    def __init__(self, buffer_size: int = 256, out: Optional[Console] = None) -> None:
        self.buffer_size = buffer_size
        self._out = out or Console(quiet=True)
        self._logs: dict[str, deque[ProgressEvent]] = {}
        self._sequences: dict[str, int] = {}
        self._closed: set[str] = set()
        self._subscriptions: dict[int, _Subscription] = {}
        self._queues: dict[str, list[asyncio.Queue[ProgressEvent]]] = {}
        self._pending: set[asyncio.Task[Any]] = set()
        self._next_token = 1

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber, job_id: Optional[str] = None) -> int:
        """Call *callback* for every event (or only those of *job_id*).

        Returns a token for :meth:`unsubscribe`.
        """
        if not callable(callback):
            raise ValueError("callback must be callable")
        token = self._next_token
        self._next_token += 1
        self._subscriptions[token] = _Subscription(token=token, callback=callback, job_id=job_id)
        return token

    def unsubscribe(self, token: int) -> bool:
        return self._subscriptions.pop(token, None) is not None

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def emit(
        self,
        job_id: str,
        phase: EventPhase,
        platform: Optional[str] = None,
        status: Optional[str] = None,
        job: Optional[GenerationJob] = None,
    ) -> ProgressEvent:
        """Record and deliver one event. Returns the event."""
        if job_id in self._closed:
            raise RuntimeError(f"Job {job_id} already emitted job-done")
        sequence = self._sequences.get(job_id, 0) + 1
        self._sequences[job_id] = sequence
        event = ProgressEvent(
            job_id=job_id,
            phase=phase,
            platform=platform,
            sequence=sequence,
            status=status,
            job=job,
        )
        log = self._logs.setdefault(job_id, deque(maxlen=self.buffer_size))
        log.append(event)
        if phase == EventPhase.JOB_DONE:
            self._closed.add(job_id)

        queues = list(self._queues.get(job_id, []))
        for subscription in tuple(self._subscriptions.values()):
            if subscription.job_id is not None and subscription.job_id != job_id:
                continue
            self._deliver(subscription.callback, event)

        for queue in queues:
            queue.put_nowait(event)
        if phase == EventPhase.JOB_DONE:
            self._queues.pop(job_id, None)
        return event

    def _deliver(self, callback: Subscriber, event: ProgressEvent) -> None:
        try:
            result = callback(event)
        except Exception as exc:
            self._out.print(
                f"[yellow]Event subscriber {getattr(callback, '__name__', callback)!r} "
                f"failed on {event.phase.value}: {exc}[/yellow]"
            )
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def history(self, job_id: str) -> list[ProgressEvent]:
        """Retained events for *job_id*, oldest first."""
        return list(self._logs.get(job_id, ()))

    def is_closed(self, job_id: str) -> bool:
        return job_id in self._closed

    async def stream(self, job_id: str) -> AsyncIterator[ProgressEvent]:
        """Yield past then live events for *job_id* until ``job-done``."""
        replay = self.history(job_id)
        if job_id in self._closed:
            for event in replay:
                yield event
            return

        queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        self._queues.setdefault(job_id, []).append(queue)
        try:
            for event in replay:
                yield event
            while True:
                event = await queue.get()
                yield event
                if event.phase == EventPhase.JOB_DONE:
                    return
        finally:
            queues = self._queues.get(job_id)
            if queues and queue in queues:
                queues.remove(queue)

    def forget(self, job_id: str) -> None:
        """Drop everything retained for *job_id*."""
        self._logs.pop(job_id, None)
        self._sequences.pop(job_id, None)
        self._closed.discard(job_id)
        self._queues.pop(job_id, None)
