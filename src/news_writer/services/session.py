"""Writer page state: form, selection, current draft and autosave."""

import dataclasses
import logging
from dataclasses import dataclass, field

from news_writer.domain.drafts import DraftSnapshot, ResolvedDraft
from news_writer.domain.requests import EventForm, GenerationRequest, SelectedPhotoRef
from news_writer.services.drafts import DraftService
from news_writer.services.jobs import JobCallback
from news_writer.services.prompts import PromptService
from news_writer.services.selection import SelectionStore
from news_writer.services.writer import NewsWriterService

_logger = logging.getLogger(__name__)


@dataclass
class WriterSession:
    """State of one writing session, autosaved after every change."""

    writer: NewsWriterService
    drafts: DraftService
    selection: SelectionStore
    prompts: PromptService = field(default_factory=PromptService)
    form: EventForm = field(default_factory=EventForm)
    reference_article: str = ""
    interview_text: str = ""
    override_prompt: str = ""
    draft: ResolvedDraft = field(default_factory=ResolvedDraft)

    def __post_init__(self) -> None:
        self._unsubscribe = self.selection.subscribe(
            lambda _photos: self._autosave(), emit_current=False
        )

    def restore(self) -> bool:
        """Load the saved snapshot; returns False when there is none."""
        snapshot = self.drafts.load()
        if snapshot is None:
            return False
        self.form = snapshot.form
        self.reference_article = snapshot.reference_article
        self.interview_text = snapshot.interview_text
        self.override_prompt = snapshot.override_prompt
        self.draft = ResolvedDraft(
            title=snapshot.title,
            subtitle=snapshot.subtitle,
            markdown=snapshot.markdown,
            html=snapshot.html,
        )
        if snapshot.photos and not len(self.selection):
            for photo in snapshot.photos:
                self.selection.add(photo)
        _logger.info("Restored draft saved at %s", snapshot.saved_at)
        return True

    def update_form(self, **changes: object) -> None:
        self.form = dataclasses.replace(self.form, **changes)
        self._autosave()

    def set_reference_article(self, text: str) -> None:
        self.reference_article = text
        self._autosave()

    def set_interview_text(self, text: str) -> None:
        self.interview_text = text
        self._autosave()

    def set_override_prompt(self, text: str) -> None:
        self.override_prompt = text
        self._autosave()

    def add_photo(self, photo: SelectedPhotoRef | dict[str, object]) -> bool:
        return self.selection.add(photo)

    def remove_photo(self, photo_id: str) -> bool:
        return self.selection.remove(photo_id)

    def build_request(self, use_override: bool = False) -> GenerationRequest:
        """Freeze the current state into a request."""
        return GenerationRequest(
            form=self.form,
            reference_article=self.reference_article,
            interview_text=self.interview_text,
            photos=self.selection.all(),
            override_prompt=self.override_prompt if use_override else None,
        )

    async def preview_prompt(self) -> str:
        return await self.prompts.preview(self.build_request())

    async def generate(
        self,
        use_override: bool = False,
        on_update: JobCallback | None = None,
    ) -> ResolvedDraft:
        """Run generation for the current state and keep the resulting draft."""
        request = self.build_request(use_override=use_override)
        self.draft = await self.writer.generate(request, on_update)
        self._autosave()
        return self.draft

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot(
            form=self.form,
            reference_article=self.reference_article,
            interview_text=self.interview_text,
            override_prompt=self.override_prompt,
            photos=list(self.selection.all()),
            title=self.draft.title,
            subtitle=self.draft.subtitle,
            markdown=self.draft.markdown,
            html=self.draft.html,
        )

    def close(self) -> None:
        """Detach from the selection store."""
        self._unsubscribe()

    def _autosave(self) -> None:
        self.drafts.schedule_save(self.snapshot())
