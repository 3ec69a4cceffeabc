"""Prompt assembly for news article generation."""

import logging
from dataclasses import dataclass
from typing import Protocol

from news_writer.domain.requests import GenerationRequest

MAX_PROMPT_CHARS = 20000

CLOSING_INSTRUCTION = (
    "请根据以上信息生成一篇新闻稿，保持所选文风与目标字数范围，"
    "并在需要处插入图片占位符，例如：![图注](PHOTO:123)。"
)

_logger = logging.getLogger(__name__)


class PromptPreviewClient(Protocol):
    """Interface for server-side prompt previews."""

    async def preview_prompt(self, payload: dict[str, object]) -> dict[str, object]:
        """Return the server's assembled prompt for a request payload."""


def assemble_prompt(request: GenerationRequest) -> str:
    """Serialize a request into the textual prompt sent to the generator."""
    form = request.form
    fields = [
        ("活动名称", form.event_name),
        ("活动日期", form.event_date.isoformat() if form.event_date else None),
        ("活动地点", form.location),
        ("主办/承办", form.organizer),
        ("出席/参与", form.participants),
        ("活动亮点", form.highlights),
        ("稿件用途", form.usage),
        ("文风偏好", form.tone),
        ("目标字数", form.target_words),
        ("组织风格预设", form.style_preset),
    ]
    parts = [f"{label}：{value.strip()}" for label, value in fields if _filled(value)]
    if request.photos:
        lines = ["已选照片："]
        for index, photo in enumerate(request.photos, start=1):
            tags = ", ".join(photo.tags)
            lines.append(f"  图{index}：{photo.description} {tags}".rstrip())
        parts.append("\n".join(lines))
    if _filled(request.reference_article):
        parts.append(f"参考文章内容：\n{request.reference_article}")
    if _filled(request.interview_text):
        parts.append(f"采访原文：\n{request.interview_text}")
    parts.append(CLOSING_INSTRUCTION)
    return "\n\n".join(parts)


def clip_prompt(prompt: str) -> str:
    """Trim a hand-edited prompt to the accepted length."""
    return prompt[:MAX_PROMPT_CHARS]


@dataclass
class PromptService:
    """Produce prompt previews, preferring the server's assembly."""

    client: PromptPreviewClient | None = None

    async def preview(self, request: GenerationRequest) -> str:
        """Return the prompt the generator will see for this request."""
        if request.override_prompt:
            return clip_prompt(request.override_prompt)
        if self.client is not None:
            try:
                payload = await self.client.preview_prompt(request.to_payload())
            except Exception:
                _logger.warning(
                    "Prompt preview failed, assembling locally", exc_info=True
                )
            else:
                assembled = payload.get("assembledPrompt")
                if isinstance(assembled, str) and assembled.strip():
                    return clip_prompt(assembled)
        return assemble_prompt(request)


def _filled(value: str | None) -> bool:
    return bool(value and value.strip())
