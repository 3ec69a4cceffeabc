"""Shared test fixtures."""

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from news_writer.config import Settings
from news_writer.containers import AppContainer
from news_writer.services.drafts import DraftService, DraftStorage
from news_writer.services.jobs import GenerationClient, GenerationJobController
from news_writer.services.photos import PhotoLookup, PhotoResolver
from news_writer.services.prompts import PromptPreviewClient, PromptService
from news_writer.services.writer import NewsWriterService


@dataclass
class FakeGenerationClient(GenerationClient, PromptPreviewClient):
    """Fake generation service that replays queued answers."""

    submit_response: dict[str, object] = field(
        default_factory=lambda: {"jobId": "job-1", "status": "processing"}
    )
    job_responses: list[object] = field(default_factory=list)
    preview_response: dict[str, object] | Exception = field(default_factory=dict)
    submitted: list[dict[str, object]] = field(default_factory=list)
    polled: list[str] = field(default_factory=list)

    async def submit(self, payload: dict[str, object]) -> dict[str, object]:
        self.submitted.append(payload)
        return self.submit_response

    async def get_job(self, job_id: str) -> dict[str, object]:
        self.polled.append(job_id)
        if not self.job_responses:
            return {"jobId": job_id, "status": "processing"}
        response = self.job_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def preview_prompt(self, payload: dict[str, object]) -> dict[str, object]:
        if isinstance(self.preview_response, Exception):
            raise self.preview_response
        return self.preview_response


@dataclass
class FakePhotoLookup(PhotoLookup):
    """Photo lookup backed by a dict; unknown ids raise."""

    photos: dict[str, dict[str, object]] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def get_photo(self, photo_id: str) -> dict[str, object]:
        self.calls.append(photo_id)
        if photo_id not in self.photos:
            raise RuntimeError(f"photo {photo_id} not found")
        return self.photos[photo_id]


@dataclass
class InMemoryDraftStorage(DraftStorage):
    """In-memory key-value storage for tests."""

    data: dict[str, str] = field(default_factory=dict)
    writes: list[str] = field(default_factory=list)
    fail_writes: bool = False

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, data: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append(key)
        self.data[key] = data


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        generation_base_url="https://writer.test",
        api_token="test-token",
        poll_interval_seconds=0,
        draft_dir=str(tmp_path / "drafts"),
        draft_debounce_seconds=0,
    )


@pytest.fixture
def generation_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def photo_lookup() -> FakePhotoLookup:
    return FakePhotoLookup()


@pytest.fixture
def draft_storage() -> InMemoryDraftStorage:
    return InMemoryDraftStorage()


@pytest.fixture
def writer_service(
    generation_client: FakeGenerationClient, photo_lookup: FakePhotoLookup
) -> NewsWriterService:
    return NewsWriterService(
        controller=GenerationJobController(generation_client, poll_interval_seconds=0),
        resolver=PhotoResolver(lookup=photo_lookup),
    )


@pytest.fixture
def container(
    settings: Settings,
    generation_client: FakeGenerationClient,
    photo_lookup: FakePhotoLookup,
    draft_storage: InMemoryDraftStorage,
    writer_service: NewsWriterService,
) -> AppContainer:
    draft_service = DraftService(draft_storage, debounce_seconds=0)

    async def close_resources() -> None:
        await draft_service.flush()

    return AppContainer(
        settings=settings,
        generation_client=generation_client,
        photo_lookup=photo_lookup,
        job_controller=writer_service.controller,
        photo_resolver=writer_service.resolver,
        prompt_service=PromptService(client=generation_client),
        writer_service=writer_service,
        draft_storage=draft_storage,
        draft_service=draft_service,
        close_resources=close_resources,
    )
