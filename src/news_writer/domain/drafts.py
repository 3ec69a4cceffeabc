"""Domain models for resolved drafts and persisted writer state."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from news_writer.domain.requests import EventForm, SelectedPhotoRef

DRAFT_STORAGE_KEY = "news_writer.draft.v1"


@dataclass(frozen=True)
class ResolvedDraft:
    """Draft content with every photo token resolved and the HTML sanitized."""

    title: str = ""
    subtitle: str = ""
    markdown: str = ""
    html: str = ""
    missing_photo_ids: tuple[str, ...] = ()

    def copy_markdown(self) -> str:
        """Return the markdown body for copying."""
        return self.markdown


class DraftSnapshot(BaseModel):
    """Versioned snapshot of an in-progress writer session."""

    model_config = ConfigDict(extra="ignore")

    version: Literal[1] = 1
    form: EventForm = Field(default_factory=EventForm)
    reference_article: str = ""
    interview_text: str = ""
    override_prompt: str = ""
    photos: list[SelectedPhotoRef] = Field(default_factory=list)
    title: str = ""
    subtitle: str = ""
    markdown: str = ""
    html: str = ""
    saved_at: datetime | None = None
