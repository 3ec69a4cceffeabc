"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Request, status

from news_writer.api.models import (
    DraftResponse,
    GenerateBody,
    PromptPreviewResponse,
    RenderBody,
)
from news_writer.app_logging import configure_logging
from news_writer.containers import AppContainer
from news_writer.domain.drafts import ResolvedDraft
from news_writer.services.writer import GenerationFailedError, NewsWriterService


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/prompts/preview")
    async def preview_prompt(
        body: GenerateBody, request: Request
    ) -> PromptPreviewResponse:
        """Return the prompt the generator would receive."""
        state_container: AppContainer = request.app.state.container
        prompt = await state_container.prompt_service.preview(body.to_request())
        return PromptPreviewResponse(assembled_prompt=prompt)

    @app.post("/drafts/generate")
    async def generate_draft(body: GenerateBody, request: Request) -> DraftResponse:
        """Generate an article and return the resolved draft."""
        state_container: AppContainer = request.app.state.container
        writer = state_container.writer_service
        try:
            draft = await writer.generate(body.to_request())
        except GenerationFailedError as exc:
            logger.warning("Generation failed: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=exc.job.error or "Generation failed",
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("Generation service unavailable")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Generation service unavailable, try again later",
            ) from exc
        return _draft_response(writer, draft)

    @app.post("/drafts/render")
    async def render_draft(body: RenderBody, request: Request) -> DraftResponse:
        """Resolve, sanitize and format editor content."""
        state_container: AppContainer = request.app.state.container
        writer = state_container.writer_service
        draft = await writer.resolve(body.to_result(), body.selection())
        return _draft_response(writer, draft)

    return app


def _draft_response(writer: NewsWriterService, draft: ResolvedDraft) -> DraftResponse:
    return DraftResponse.from_draft(
        draft,
        preview_html=writer.preview_html(draft),
        word_count=writer.word_count(draft),
    )
