"""Generation job submission and polling."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from news_writer.domain.generation import GenerationJob, parse_job_update

_logger = logging.getLogger(__name__)

JobCallback = Callable[[GenerationJob], None]


class GenerationClient(Protocol):
    """Interface for the external article generation service."""

    async def submit(self, payload: dict[str, object]) -> dict[str, object]:
        """Submit a generation request and return the raw answer."""

    async def get_job(self, job_id: str) -> dict[str, object]:
        """Return the raw state of a submitted job."""


@dataclass
class PollHandle:
    """Cancellation token and result of a running poll loop."""

    task: "asyncio.Task[GenerationJob | None]"
    stop_event: asyncio.Event

    def stop(self) -> None:
        """Stop polling; responses still in flight are dropped."""
        self.stop_event.set()

    @property
    def stopped(self) -> bool:
        """Return true once stop() has been called."""
        return self.stop_event.is_set()

    async def wait(self) -> GenerationJob | None:
        """Wait for the terminal job, or None when polling was stopped."""
        return await self.task


@dataclass
class GenerationJobController:
    """Drive a generation job from submission to a terminal state."""

    client: GenerationClient
    poll_interval_seconds: float = 2.5
    active: list[PollHandle] = field(default_factory=list)

    async def submit(self, payload: dict[str, object]) -> GenerationJob:
        """Submit a request; the answer is either a job reference or a result."""
        raw = await self.client.submit(payload)
        job = parse_job_update(raw)
        _logger.info("Generation submitted: job=%s status=%s", job.id, job.status)
        return job

    def poll(
        self,
        job: GenerationJob,
        on_update: JobCallback | None = None,
    ) -> PollHandle:
        """Start polling a job until it reaches a terminal status.

        Must be called from a running event loop. Transport errors are logged
        and the next poll is scheduled anyway; only a terminal status or
        ``PollHandle.stop()`` ends the loop.
        """
        stop_event = asyncio.Event()
        task = asyncio.create_task(self._poll_loop(job, stop_event, on_update))
        handle = PollHandle(task=task, stop_event=stop_event)
        self.active.append(handle)
        task.add_done_callback(lambda _: self._forget(handle))
        return handle

    async def run(
        self,
        payload: dict[str, object],
        on_update: JobCallback | None = None,
    ) -> GenerationJob:
        """Submit a request and wait for its terminal state."""
        job = await self.submit(payload)
        if job.status.is_terminal:
            return job
        handle = self.poll(job, on_update)
        try:
            final = await handle.wait()
        except asyncio.CancelledError:
            handle.stop()
            raise
        return final if final is not None else job

    def stop_all(self) -> None:
        """Stop every poll loop started by this controller."""
        for handle in list(self.active):
            handle.stop()

    async def _poll_loop(
        self,
        job: GenerationJob,
        stop_event: asyncio.Event,
        on_update: JobCallback | None,
    ) -> GenerationJob | None:
        if job.id is None:
            raise ValueError("cannot poll a job without an id")
        current = job
        while not stop_event.is_set():
            try:
                raw = await self.client.get_job(job.id)
                update = parse_job_update(raw, job_id=job.id)
            except Exception:
                _logger.exception("Polling job %s failed", job.id)
            else:
                if stop_event.is_set():
                    _logger.info("Dropping response for stopped job %s", job.id)
                    return None
                current = current.with_update(update)
                if on_update is not None:
                    on_update(current)
                if current.status.is_terminal:
                    _logger.info("Job %s finished: %s", job.id, current.status)
                    return current
            await _wait_or_stop(stop_event, self.poll_interval_seconds)
        return None

    def _forget(self, handle: PollHandle) -> None:
        if handle in self.active:
            self.active.remove(handle)


async def _wait_or_stop(stop_event: asyncio.Event, seconds: float) -> None:
    """Sleep for the poll interval, waking early when polling is stopped."""
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except TimeoutError:
        pass
