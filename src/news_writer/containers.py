"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from news_writer.adapters.file_draft_storage import FileDraftStorage
from news_writer.adapters.generation_client import HttpxGenerationClient
from news_writer.adapters.photo_client import HttpxPhotoClient
from news_writer.adapters.supabase_photo_repository import SupabasePhotoLookup
from news_writer.config import Settings
from news_writer.services.drafts import DraftService, DraftStorage
from news_writer.services.jobs import GenerationJobController
from news_writer.services.photos import PhotoLookup, PhotoResolver
from news_writer.services.prompts import PromptService
from news_writer.services.selection import SelectionStore
from news_writer.services.session import WriterSession
from news_writer.services.writer import NewsWriterService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    generation_client: HttpxGenerationClient
    photo_lookup: PhotoLookup
    job_controller: GenerationJobController
    photo_resolver: PhotoResolver
    prompt_service: PromptService
    writer_service: NewsWriterService
    draft_storage: DraftStorage
    draft_service: DraftService
    close_resources: Callable[[], Awaitable[None]]

    def new_session(self) -> WriterSession:
        """Create a writer session backed by the shared draft storage."""
        return WriterSession(
            writer=self.writer_service,
            drafts=self.draft_service,
            selection=SelectionStore(storage=self.draft_storage),
            prompts=self.prompt_service,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    generation_client = HttpxGenerationClient.create(
        base_url=resolved_settings.generation_base_url,
        api_token=resolved_settings.api_token,
        timeout=resolved_settings.request_timeout_seconds,
    )
    photo_client: HttpxPhotoClient | None = None
    photo_lookup: PhotoLookup
    if resolved_settings.uses_supabase_photos:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        photo_lookup = SupabasePhotoLookup(supabase_client)
    else:
        photo_client = HttpxPhotoClient.create(
            base_url=resolved_settings.resolved_photo_base_url,
            api_token=resolved_settings.api_token,
            timeout=resolved_settings.request_timeout_seconds,
        )
        photo_lookup = photo_client
    job_controller = GenerationJobController(
        client=generation_client,
        poll_interval_seconds=resolved_settings.poll_interval_seconds,
    )
    photo_resolver = PhotoResolver(lookup=photo_lookup)
    prompt_service = PromptService(client=generation_client)
    writer_service = NewsWriterService(
        controller=job_controller,
        resolver=photo_resolver,
        sanitizer_fail_closed=resolved_settings.sanitizer_fail_closed,
    )
    draft_storage = FileDraftStorage(Path(resolved_settings.draft_dir))
    draft_service = DraftService(
        storage=draft_storage,
        debounce_seconds=resolved_settings.draft_debounce_seconds,
    )

    async def close_resources() -> None:
        job_controller.stop_all()
        await draft_service.flush()
        await generation_client.close()
        if photo_client is not None:
            await photo_client.close()

    return AppContainer(
        settings=resolved_settings,
        generation_client=generation_client,
        photo_lookup=photo_lookup,
        job_controller=job_controller,
        photo_resolver=photo_resolver,
        prompt_service=prompt_service,
        writer_service=writer_service,
        draft_storage=draft_storage,
        draft_service=draft_service,
        close_resources=close_resources,
    )
