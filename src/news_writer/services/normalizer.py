"""Text cleanup for generated markdown drafts."""

import re
from urllib.parse import unquote

_INVISIBLE = "\ufeff\u200b-\u200f\u202a-\u202e\u2060-\u2064\u2066-\u2069"
_LEADING_INVISIBLE = re.compile(f"^[{_INVISIBLE}]+", re.MULTILINE)
_WIDE_SPACES = re.compile("[\u00a0\u3000]")
_HEADING_WITHOUT_SPACE = re.compile(r"^(#{1,6})([^\s#])", re.MULTILINE)

_NESTED_LITERAL_IMAGE = re.compile(
    r"!\[([^\]]*)\]\(\s*!\[([^\]]*)\]\(\s*(https?://[^\s)]+)\s*\)\s*\)"
)
_ENCODED_IMAGE_TARGET = re.compile(
    r"!\[([^\]]*)\]\(\s*([^\s)]*%[0-9A-Fa-f]{2}[^\s)]*)\s*\)"
)
_NESTED_IMAGE = re.compile(r"!\[([^\]]*)\]\(\s*(https?://[^\s)]+)\s*\)")
_MARKDOWN_IMAGE_ALT_ONLY = re.compile(r"!\[([^\]]*?)\]\([^)]*?\)")
_HTML_IMAGE_ALT = re.compile(
    r"<img\b[^>]*alt=(?:\"([^\"]*)\"|'([^']*)'|([^\s>]+))[^>]*>", re.IGNORECASE
)
_BARE_URL = re.compile(r"https?://[^\s)\"']+")


def normalize_markdown(text: str) -> str:
    """Remove invisible characters and repair heading markers.

    Non-breaking and ideographic spaces become plain spaces, the fullwidth
    hash becomes ``#``, zero-width and directionality marks are dropped from
    the start of every line, and ``#标题`` becomes ``# 标题``. Line count and
    order are preserved, and applying the function to its own output is a
    no-op.
    """
    if not text:
        return text
    cleaned = _WIDE_SPACES.sub(" ", text).replace("\uff03", "#")
    cleaned = _LEADING_INVISIBLE.sub("", cleaned)
    return _HEADING_WITHOUT_SPACE.sub(r"\1 \2", cleaned)


def fix_nested_markdown_images(text: str) -> str:
    """Collapse ``![outer](![inner](url))`` into a single image reference.

    The inner reference may also arrive percent-encoded. The outer alt text
    wins when it is not blank.
    """
    if not text:
        return text

    def _collapse_literal(match: re.Match[str]) -> str:
        alt = match.group(1).strip() or match.group(2).strip()
        return f"![{alt}]({match.group(3)})"

    def _collapse_encoded(match: re.Match[str]) -> str:
        nested = _NESTED_IMAGE.search(unquote(match.group(2)))
        if nested is None:
            return match.group(0)
        alt = match.group(1).strip() or nested.group(1).strip()
        return f"![{alt}]({nested.group(2)})"

    fixed = _NESTED_LITERAL_IMAGE.sub(_collapse_literal, text)
    return _ENCODED_IMAGE_TARGET.sub(_collapse_encoded, fixed)


def count_visible_chars(text: str) -> int:
    """Count characters a reader sees, ignoring image and link URLs."""
    if not text:
        return 0
    visible = _MARKDOWN_IMAGE_ALT_ONLY.sub(lambda match: match.group(1), text)
    visible = _HTML_IMAGE_ALT.sub(
        lambda match: match.group(1) or match.group(2) or match.group(3) or "",
        visible,
    )
    visible = _BARE_URL.sub("", visible)
    return len(visible.replace("\r\n", "\n"))
