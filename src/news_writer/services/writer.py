"""Writer pipeline: generation, photo resolution, sanitization and preview."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from news_writer.domain.drafts import ResolvedDraft
from news_writer.domain.generation import GenerationJob, GenerationResult, JobStatus
from news_writer.domain.requests import GenerationRequest, SelectedPhotoRef
from news_writer.services.jobs import GenerationJobController, JobCallback
from news_writer.services.normalizer import (
    count_visible_chars,
    fix_nested_markdown_images,
    normalize_markdown,
)
from news_writer.services.photos import PhotoResolver
from news_writer.services.preview import format_preview, render_markdown
from news_writer.services.prompts import clip_prompt
from news_writer.services.sanitizer import sanitize_html

_logger = logging.getLogger(__name__)


class GenerationFailedError(RuntimeError):
    """Raised when a generation job ends without a usable result."""

    def __init__(self, job: GenerationJob) -> None:
        detail = job.error or "no result"
        super().__init__(f"Generation {job.status}: {detail}")
        self.job = job


@dataclass
class NewsWriterService:
    """Turn generation requests into resolved, renderable drafts."""

    controller: GenerationJobController
    resolver: PhotoResolver
    sanitizer_fail_closed: bool = False

    async def generate(
        self,
        request: GenerationRequest,
        on_update: JobCallback | None = None,
    ) -> ResolvedDraft:
        """Submit a request, wait for the job and resolve its draft."""
        payload = request.to_payload()
        if request.override_prompt:
            payload["fullPrompt"] = clip_prompt(request.override_prompt)
        job = await self.controller.run(payload, on_update)
        if job.status is not JobStatus.SUCCEEDED or job.result is None:
            _logger.warning("Generation job %s ended as %s", job.id, job.status)
            raise GenerationFailedError(job)
        draft = await self.resolve(job.result, request.photos)
        if draft.title:
            return draft
        return ResolvedDraft(
            title=request.form.event_name or "",
            subtitle=draft.subtitle,
            markdown=draft.markdown,
            html=draft.html,
            missing_photo_ids=draft.missing_photo_ids,
        )

    async def resolve(
        self,
        result: GenerationResult,
        selection: Iterable[SelectedPhotoRef] = (),
    ) -> ResolvedDraft:
        """Normalize, resolve and sanitize raw draft content."""
        selection = tuple(selection)
        markdown = fix_nested_markdown_images(normalize_markdown(result.markdown))
        markdown, markdown_missing = await self.resolver.resolve_markdown(
            markdown, result.photos, selection
        )
        html, html_missing = await self.resolver.resolve_html(
            result.html, result.photos, selection
        )
        # tokens nested inside an image target only become URLs after resolution
        markdown = fix_nested_markdown_images(markdown)
        missing = tuple(dict.fromkeys([*markdown_missing, *html_missing]))
        if missing:
            _logger.warning("Draft has missing photos: %s", ", ".join(missing))
        return ResolvedDraft(
            title=result.title,
            subtitle=result.subtitle,
            markdown=markdown,
            html=sanitize_html(html, fail_closed=self.sanitizer_fail_closed),
            missing_photo_ids=missing,
        )

    def preview_html(self, draft: ResolvedDraft) -> str:
        """Return reading-friendly HTML, preferring the markdown body."""
        source = render_markdown(draft.markdown) if draft.markdown else draft.html
        return format_preview(
            sanitize_html(source, fail_closed=self.sanitizer_fail_closed)
        )

    def copy_html(self, draft: ResolvedDraft) -> str:
        """Return HTML for copying, preferring the generator's own HTML."""
        if draft.html:
            return draft.html
        return sanitize_html(
            render_markdown(draft.markdown), fail_closed=self.sanitizer_fail_closed
        )

    def word_count(self, draft: ResolvedDraft) -> int:
        """Count visible characters of the markdown body."""
        return count_visible_chars(draft.markdown)
