"""Domain models for article generation requests."""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class EventForm:
    """Structured event fields collected by the writer form."""

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

    def to_payload(self) -> dict[str, object]:
        """Return the camelCase form body expected by the generation service."""
        return {
            "eventName": self.event_name or "",
            "eventDate": self.event_date.isoformat() if self.event_date else None,
            "location": self.location or "",
            "organizer": self.organizer or "",
            "participants": self.participants or "",
            "highlights": self.highlights or "",
            "usage": self.usage or "",
            "tone": self.tone or "",
            "targetWords": self.target_words or "",
            "stylePreset": self.style_preset or "",
        }


@dataclass(frozen=True)
class SelectedPhotoRef:
    """A photo picked by the user for inclusion in the article."""

    id: str
    thumb_url: str | None = None
    url: str | None = None
    description: str = ""
    tags: tuple[str, ...] = ()
    photographer_id: str | None = None
    photographer_name: str | None = None
    project_title: str = ""

    @classmethod
    def from_payload(cls, raw: dict[str, object]) -> "SelectedPhotoRef | None":
        """Build a reference from a loosely shaped photo dict.

        Album browsing and the transfer station hand over photos with several
        synonymous keys; the first populated one wins. Returns None when the
        photo carries neither an id nor a URL.
        """
        url = _first_text(raw, "url", "fullUrl", "cosUrl", "src", "original")
        photo_id = _first_text(raw, "id") or url
        if not photo_id:
            return None
        tags = raw.get("tags")
        if not isinstance(tags, list | tuple):
            tags = raw.get("tagList")
        if not isinstance(tags, list | tuple):
            tags = ()
        return cls(
            id=photo_id,
            thumb_url=_first_text(raw, "thumbUrl", "thumbSrc", "thumb") or url,
            url=url,
            description=_first_text(raw, "description", "caption", "alt", "title")
            or "",
            tags=tuple(str(tag) for tag in tags),
            photographer_id=_first_text(
                raw, "photographerId", "photographer_id", "photographer"
            ),
            photographer_name=_first_text(
                raw, "photographerName", "photographer_name"
            ),
            project_title=_first_text(raw, "projectTitle", "source") or "",
        )

    def to_payload(self) -> dict[str, object]:
        """Return the per-photo body sent along with a generation request."""
        return {
            "id": self.id,
            "thumbUrl": self.thumb_url,
            "description": self.description,
            "tags": list(self.tags),
            "projectTitle": self.project_title,
            "photographerId": self.photographer_id,
        }


@dataclass(frozen=True)
class GenerationRequest:
    """Everything the writer submits for one generation run."""

    form: EventForm = field(default_factory=EventForm)
    reference_article: str = ""
    interview_text: str = ""
    photos: tuple[SelectedPhotoRef, ...] = ()
    override_prompt: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Build the submission body for the generation service."""
        payload: dict[str, object] = {}
        if self.override_prompt:
            payload["fullPrompt"] = self.override_prompt
        else:
            payload["form"] = self.form.to_payload()
        if self.reference_article:
            payload["referenceArticle"] = self.reference_article
        if self.interview_text:
            payload["interviewText"] = self.interview_text
        if self.photos:
            payload["selectedPhotos"] = [photo.to_payload() for photo in self.photos]
            payload["clientPhotoMap"] = {
                photo.id: photo.thumb_url for photo in self.photos if photo.thumb_url
            }
        return payload


def _first_text(raw: dict[str, object], *keys: str) -> str | None:
    for key in keys:
        value = raw.get(key)
        if value is None or value == "":
            continue
        return str(value)
    return None
