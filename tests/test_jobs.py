"""Tests for generation job submission and polling."""

import asyncio
from dataclasses import dataclass, field

import httpx
import pytest

from news_writer.domain.generation import (
    GenerationJob,
    GenerationResponseError,
    JobEnvelope,
    JobStatus,
    parse_job_update,
)
from news_writer.services.jobs import GenerationJobController
from tests.conftest import FakeGenerationClient

_SUCCEEDED = {
    "status": "succeeded",
    "result": {"title": "标题", "markdown": "正文", "photos": []},
}


@dataclass
class GatedGenerationClient(FakeGenerationClient):
    """Generation client whose poll answer is held until the gate opens."""

    gate: asyncio.Event = field(default_factory=asyncio.Event)
    entered: asyncio.Event = field(default_factory=asyncio.Event)

    async def get_job(self, job_id: str) -> dict[str, object]:
        self.polled.append(job_id)
        self.entered.set()
        await self.gate.wait()
        return {"jobId": job_id, **_SUCCEEDED}


def test_run_polls_until_succeeded() -> None:
    client = FakeGenerationClient(
        submit_response={"jobId": "J1", "status": "processing"},
        job_responses=[
            {"status": "processing"},
            {"status": "processing"},
            _SUCCEEDED,
        ],
    )
    controller = GenerationJobController(client, poll_interval_seconds=0)
    updates: list[GenerationJob] = []

    job = asyncio.run(controller.run({"form": {}}, updates.append))

    assert job.status is JobStatus.SUCCEEDED
    assert job.id == "J1"
    assert job.result is not None
    assert job.result.title == "标题"
    assert client.polled == ["J1", "J1", "J1"]
    assert [update.status for update in updates] == [
        JobStatus.PROCESSING,
        JobStatus.PROCESSING,
        JobStatus.SUCCEEDED,
    ]
    assert controller.active == []


def test_run_returns_immediate_result_without_polling() -> None:
    client = FakeGenerationClient(submit_response=_SUCCEEDED)
    controller = GenerationJobController(client, poll_interval_seconds=0)

    job = asyncio.run(controller.run({"fullPrompt": "写一篇稿"}))

    assert job.status is JobStatus.SUCCEEDED
    assert job.id is None
    assert client.polled == []


def test_poll_keeps_going_after_transport_errors() -> None:
    client = FakeGenerationClient(
        job_responses=[httpx.ConnectError("offline"), {"status": "failed"}],
    )
    controller = GenerationJobController(client, poll_interval_seconds=0)

    job = asyncio.run(controller.run({"form": {}}))

    assert job.status is JobStatus.FAILED
    assert client.polled == ["job-1", "job-1"]


def test_stop_drops_in_flight_response() -> None:
    async def scenario() -> tuple[
        GenerationJob | None, list[GenerationJob], list[str], int
    ]:
        client = GatedGenerationClient()
        controller = GenerationJobController(client, poll_interval_seconds=0)
        updates: list[GenerationJob] = []
        handle = controller.poll(
            GenerationJob(id="job-9", status=JobStatus.PROCESSING), updates.append
        )
        await client.entered.wait()
        handle.stop()
        client.gate.set()
        final = await handle.wait()
        await asyncio.sleep(0)
        return final, updates, client.polled, len(controller.active)

    final, updates, polled, active = asyncio.run(scenario())

    assert final is None
    assert updates == []
    assert polled == ["job-9"]
    assert active == 0


def test_stop_interrupts_wait_between_polls() -> None:
    async def scenario() -> tuple[GenerationJob | None, list[str]]:
        client = FakeGenerationClient()
        controller = GenerationJobController(client, poll_interval_seconds=60)
        handles = []

        def _stop_after_first(_job: GenerationJob) -> None:
            handles[0].stop()

        handles.append(
            controller.poll(
                GenerationJob(id="job-2", status=JobStatus.SUBMITTED),
                _stop_after_first,
            )
        )
        final = await asyncio.wait_for(handles[0].wait(), timeout=5)
        return final, client.polled

    final, polled = asyncio.run(scenario())

    assert final is None
    assert polled == ["job-2"]


def test_cancelling_run_stops_polling() -> None:
    async def scenario() -> bool:
        controller = GenerationJobController(
            FakeGenerationClient(), poll_interval_seconds=0.01
        )
        task = asyncio.create_task(controller.run({"form": {}}))
        while not controller.active:
            await asyncio.sleep(0)
        handle = controller.active[0]
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return handle.stopped

    assert asyncio.run(scenario()) is True


def test_submit_rejects_unexpected_shape() -> None:
    controller = GenerationJobController(FakeGenerationClient(submit_response={}))

    with pytest.raises(GenerationResponseError):
        asyncio.run(controller.submit({"form": {}}))


def test_envelope_treats_unknown_status_as_processing() -> None:
    job = JobEnvelope.model_validate({"jobId": 12, "status": "QUEUED"}).to_job()

    assert job.id == "12"
    assert job.status is JobStatus.PROCESSING


def test_terminal_job_ignores_later_updates() -> None:
    done = GenerationJob(id="j", status=JobStatus.CANCELLED)

    updated = done.with_update(GenerationJob(id="j", status=JobStatus.SUCCEEDED))

    assert updated is done


def test_run_accepts_numeric_result_fields() -> None:
    client = FakeGenerationClient(
        submit_response={"jobId": "J1", "status": "processing"},
        job_responses=[
            {"status": "succeeded", "result": {"title": 2024, "markdown": "正文"}},
        ],
    )
    controller = GenerationJobController(client, poll_interval_seconds=0)

    job = asyncio.run(asyncio.wait_for(controller.run({"form": {}}), timeout=5))

    assert job.status is JobStatus.SUCCEEDED
    assert job.result is not None
    assert job.result.title == "2024"


def test_run_ends_when_terminal_result_is_unreadable() -> None:
    client = FakeGenerationClient(
        submit_response={"jobId": "J1", "status": "processing"},
        job_responses=[{"status": "succeeded", "result": "oops"}],
    )
    controller = GenerationJobController(client, poll_interval_seconds=0)

    job = asyncio.run(asyncio.wait_for(controller.run({"form": {}}), timeout=5))

    assert job.status is JobStatus.FAILED
    assert job.id == "J1"
    assert job.error == "unreadable result"
    assert client.polled == ["J1"]


def test_parse_job_update_keeps_terminal_status_of_unreadable_answer() -> None:
    job = parse_job_update(
        {"status": "cancelled", "result": ["not", "a", "result"]}, job_id="J2"
    )

    assert job.status is JobStatus.CANCELLED
    assert job.id == "J2"


def test_parse_job_update_raises_for_unreadable_pending_answer() -> None:
    with pytest.raises(ValueError):
        parse_job_update({"status": "processing", "result": "oops"}, job_id="J1")
