"""Pydantic request and response bodies for the writer API."""

from datetime import date

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from news_writer.domain.drafts import ResolvedDraft
from news_writer.domain.generation import GenerationResult, WireResult
from news_writer.domain.requests import EventForm, GenerationRequest, SelectedPhotoRef


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class EventFormBody(_CamelModel):
    """Structured event fields."""

    event_name: str | None = None
    event_date: date | None = None
    location: str | None = None
    organizer: str | None = None
    participants: str | None = None
    highlights: str | None = None
    usage: str | None = None
    tone: str | None = None
    target_words: str | None = None
    style_preset: str | None = None

    def to_form(self) -> EventForm:
        return EventForm(**self.model_dump())


class GenerateBody(_CamelModel):
    """Body for prompt previews and generation runs."""

    form: EventFormBody = Field(default_factory=EventFormBody)
    reference_article: str = ""
    interview_text: str = ""
    selected_photos: list[dict[str, object]] = Field(default_factory=list)
    full_prompt: str | None = None

    def to_request(self) -> GenerationRequest:
        photos = [SelectedPhotoRef.from_payload(raw) for raw in self.selected_photos]
        return GenerationRequest(
            form=self.form.to_form(),
            reference_article=self.reference_article,
            interview_text=self.interview_text,
            photos=tuple(photo for photo in photos if photo is not None),
            override_prompt=self.full_prompt or None,
        )


class RenderBody(_CamelModel):
    """Editor content to run through resolution, sanitizing and preview."""

    title: str = ""
    subtitle: str = ""
    markdown: str = Field(default="", validation_alias=AliasChoices("markdown", "md"))
    html: str = ""
    photos: list[dict[str, object]] = Field(default_factory=list)
    selected_photos: list[dict[str, object]] = Field(default_factory=list)

    def to_result(self) -> GenerationResult:
        return WireResult.model_validate(
            {
                "title": self.title,
                "subtitle": self.subtitle,
                "markdown": self.markdown,
                "html": self.html,
                "photos": self.photos,
            }
        ).to_result()

    def selection(self) -> tuple[SelectedPhotoRef, ...]:
        photos = [SelectedPhotoRef.from_payload(raw) for raw in self.selected_photos]
        return tuple(photo for photo in photos if photo is not None)


class PromptPreviewResponse(_CamelModel):
    assembled_prompt: str


class DraftResponse(_CamelModel):
    """Resolved draft with its rendered preview."""

    title: str
    subtitle: str
    markdown: str
    html: str
    preview_html: str
    word_count: int
    missing_photo_ids: list[str]

    @classmethod
    def from_draft(
        cls, draft: ResolvedDraft, preview_html: str, word_count: int
    ) -> "DraftResponse":
        return cls(
            title=draft.title,
            subtitle=draft.subtitle,
            markdown=draft.markdown,
            html=draft.html,
            preview_html=preview_html,
            word_count=word_count,
            missing_photo_ids=list(draft.missing_photo_ids),
        )
