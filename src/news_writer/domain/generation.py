"""Generation job records and the validated wire payloads they come from."""

from dataclasses import dataclass, replace
from enum import StrEnum

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)


class GenerationResponseError(ValueError):
    """Raised when the generation service answers with an unusable shape."""


class JobStatus(StrEnum):
    """Lifecycle states of a generation job."""

    SUBMITTED = "submitted"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Return true when no further transition can happen."""
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELLED}
)
_KNOWN_STATUSES = frozenset(status.value for status in JobStatus)
_TERMINAL_VALUES = frozenset(status.value for status in _TERMINAL_STATUSES)


@dataclass(frozen=True)
class ResultPhoto:
    """Photo metadata returned alongside a generated draft."""

    id: str
    url: str | None = None
    photographer_name: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Strict draft content produced by the generation service."""

    title: str = ""
    subtitle: str = ""
    markdown: str = ""
    html: str = ""
    photos: tuple[ResultPhoto, ...] = ()


@dataclass(frozen=True)
class GenerationJob:
    """A submitted generation job and its last observed state."""

    id: str | None
    status: JobStatus
    result: GenerationResult | None = None
    error: str | None = None

    def with_update(self, update: "GenerationJob") -> "GenerationJob":
        """Apply a poll update; terminal jobs are never changed."""
        if self.status.is_terminal:
            return self
        return replace(
            self,
            status=update.status,
            result=update.result or self.result,
            error=update.error or self.error,
        )


class WirePhoto(BaseModel):
    """Photo entry as returned by the generation service."""

    model_config = ConfigDict(extra="ignore")

    id: str
    url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("url", "fullUrl", "cosUrl", "src", "thumbSrc"),
    )
    photographer_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("photographerName", "photographer_name"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @field_validator("url", "photographer_name", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        return _scalar_text(value)

    def to_photo(self) -> ResultPhoto:
        """Convert to the internal photo record."""
        return ResultPhoto(
            id=self.id, url=self.url, photographer_name=self.photographer_name
        )


class WireResult(BaseModel):
    """Draft content as returned by the generation service."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    subtitle: str | None = None
    markdown: str | None = Field(
        default=None, validation_alias=AliasChoices("markdown", "md")
    )
    html: str | None = None
    photos: list[WirePhoto] | None = None

    @field_validator("title", "subtitle", "markdown", "html", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> object:
        return _scalar_text(value)

    @field_validator("photos", mode="before")
    @classmethod
    def _drop_unusable_photos(cls, value: object) -> object:
        if not isinstance(value, list):
            return None
        return [
            item
            for item in value
            if isinstance(item, dict) and item.get("id") not in (None, "")
        ]

    def to_result(self) -> GenerationResult:
        """Convert to the internal result record."""
        return GenerationResult(
            title=self.title or "",
            subtitle=self.subtitle or "",
            markdown=self.markdown or "",
            html=self.html or "",
            photos=tuple(photo.to_photo() for photo in self.photos or []),
        )


class JobEnvelope(BaseModel):
    """Submit or poll answer: either a job reference or a terminal result."""

    model_config = ConfigDict(extra="ignore")

    job_id: str | None = Field(
        default=None, validation_alias=AliasChoices("jobId", "job_id", "id")
    )
    status: JobStatus | None = None
    result: WireResult | None = None
    error: str | None = Field(
        default=None, validation_alias=AliasChoices("error", "message")
    )

    @field_validator("job_id", mode="before")
    @classmethod
    def _coerce_job_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> object:
        if value is None:
            return None
        text = str(value).strip().lower()
        if text in _KNOWN_STATUSES:
            return text
        return JobStatus.PROCESSING

    def to_job(self, job_id: str | None = None) -> GenerationJob:
        """Convert to a job record, falling back to a known job id."""
        resolved_id = self.job_id or job_id
        status = self.status
        if status is None:
            if resolved_id is None:
                raise GenerationResponseError("unexpected response shape")
            status = JobStatus.SUBMITTED
        if not status.is_terminal and resolved_id is None:
            raise GenerationResponseError("non-terminal response without a job id")
        return GenerationJob(
            id=resolved_id,
            status=status,
            result=self.result.to_result() if self.result else None,
            error=self.error,
        )


def parse_job_update(raw: object, job_id: str | None = None) -> GenerationJob:
    """Validate a submit or poll answer into a job record.

    A terminal answer whose result cannot be read still ends the job: a
    ``succeeded`` status becomes ``failed`` so callers stop waiting.
    """
    try:
        return JobEnvelope.model_validate(raw).to_job(job_id=job_id)
    except ValidationError:
        status = raw.get("status") if isinstance(raw, dict) else None
        text = str(status).strip().lower() if status is not None else ""
        if text not in _TERMINAL_VALUES:
            raise
        if text == JobStatus.SUCCEEDED:
            return GenerationJob(
                id=job_id, status=JobStatus.FAILED, error="unreadable result"
            )
        return GenerationJob(id=job_id, status=JobStatus(text))


def _scalar_text(value: object) -> object:
    if isinstance(value, int | float):
        return str(value)
    return value
