"""Sanitization of generated HTML fragments.

The pipeline runs a fixed list of independent steps. A step that raises is
logged and skipped, so the remaining steps still run and ``sanitize_html``
never raises. Skipping a step returns its input unchanged (fail-open); with
``fail_closed=True`` a failure in one of the security steps empties the
fragment instead.
"""

import logging
import re
from collections.abc import Callable
from urllib.parse import unquote

from bs4 import BeautifulSoup, NavigableString, Tag

_logger = logging.getLogger(__name__)

_EVENT_HANDLER = re.compile(r"^on", re.IGNORECASE)
_URL_ATTRIBUTES = ("href", "src")
_SCHEME_NOISE = re.compile(r"[\x00-\x20\x7f]+")
_EMBEDDED_ALT = re.compile(r"\[([^\]]+)\]\s*\(")
_EMBEDDED_MARKDOWN = re.compile(r"!?\[[^\]]*\]\s*\(")
_ABSOLUTE_URL = re.compile(r"https?://[^\s()\"'<>\[\]]+", re.IGNORECASE)
_DANGLING_OPENER = re.compile(r"!\[\s*$")
_DANGLING_CLOSER = re.compile(r"^\s*\)\s*\d*")

SanitizeStep = Callable[[str], str]


def strip_executable_elements(html: str) -> str:
    """Remove ``script`` and ``style`` elements."""
    soup = _parse(html)
    for element in soup.find_all(["script", "style"]):
        element.decompose()
    return str(soup)


def strip_event_handlers(html: str) -> str:
    """Remove ``on*`` attributes from every element."""
    soup = _parse(html)
    for tag in soup.find_all(True):
        for name in [name for name in tag.attrs if _EVENT_HANDLER.match(name)]:
            del tag[name]
    return str(soup)


def strip_javascript_urls(html: str) -> str:
    """Remove ``href``/``src`` attributes that use the javascript: scheme.

    Control characters and whitespace are ignored when reading the scheme,
    as browsers do.
    """
    soup = _parse(html)
    for tag in soup.find_all(True):
        for name in _URL_ATTRIBUTES:
            value = tag.get(name)
            if not isinstance(value, str):
                continue
            scheme = _SCHEME_NOISE.sub("", value).lower()
            if scheme.startswith("javascript:"):
                del tag[name]
    return str(soup)


def repair_image_sources(html: str) -> str:
    """Extract real URLs from image sources that embed markdown image syntax."""
    soup = _parse(html)
    for img in soup.find_all("img"):
        raw = img.get("src")
        if not isinstance(raw, str) or not raw:
            continue
        decoded = unquote(raw)
        if not _EMBEDDED_MARKDOWN.search(decoded):
            continue
        url_match = _ABSOLUTE_URL.search(decoded)
        if url_match is None:
            continue
        img["src"] = url_match.group(0)
        alt_match = _EMBEDDED_ALT.search(decoded)
        if alt_match and not img.get("alt"):
            img["alt"] = alt_match.group(1)
    return str(soup)


def strip_stray_image_markdown(html: str) -> str:
    """Drop leftover ``![`` and ``)`` fragments around image elements."""
    soup = _parse(html)
    for img in soup.find_all("img"):
        previous = img.previous_sibling
        if _is_text(previous) and _DANGLING_OPENER.search(previous):
            _replace_text(previous, _DANGLING_OPENER.sub("", previous))
        following = img.next_sibling
        if _is_text(following) and _DANGLING_CLOSER.match(following):
            _replace_text(following, _DANGLING_CLOSER.sub("", following, count=1))
    return str(soup)


def dedupe_adjacent_images(html: str) -> str:
    """Keep only the first of consecutive sibling images with the same src."""
    soup = _parse(html)
    for img in soup.find_all("img"):
        previous = img.previous_sibling
        while _is_text(previous) and not previous.strip():
            previous = previous.previous_sibling
        if not isinstance(previous, Tag) or previous.name != "img":
            continue
        source = img.get("src") or ""
        if source and source == previous.get("src"):
            img.decompose()
    return str(soup)


SECURITY_STEPS: tuple[SanitizeStep, ...] = (
    strip_executable_elements,
    strip_event_handlers,
    strip_javascript_urls,
)
REPAIR_STEPS: tuple[SanitizeStep, ...] = (
    repair_image_sources,
    strip_stray_image_markdown,
    dedupe_adjacent_images,
)


def sanitize_html(html: str, fail_closed: bool = False) -> str:
    """Run every sanitization step over an HTML fragment."""
    if not html:
        return ""
    cleaned = html
    for step in SECURITY_STEPS:
        cleaned, ok = _run_step(step, cleaned)
        if not ok and fail_closed:
            return ""
    for step in REPAIR_STEPS:
        cleaned, _ = _run_step(step, cleaned)
    return cleaned


def _run_step(step: SanitizeStep, html: str) -> tuple[str, bool]:
    try:
        return step(html), True
    except Exception:
        _logger.exception("Sanitize step %s failed, keeping input", step.__name__)
        return html, False


def _parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _is_text(node: object) -> bool:
    return type(node) is NavigableString


def _replace_text(node: NavigableString, value: str) -> None:
    if value.strip():
        node.replace_with(NavigableString(value))
    else:
        node.extract()
