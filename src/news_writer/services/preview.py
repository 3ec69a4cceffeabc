"""Presentation-only transforms for previewing sanitized drafts."""

import logging
import re

import tinycss2
from bs4 import BeautifulSoup, NavigableString, Tag
from markdown_it import MarkdownIt

_logger = logging.getLogger(__name__)

CAPTION_MAX_CHARS = 200

_IMAGE_STYLE = {"max-width": "100%", "height": "auto", "display": "block"}
_IMAGE_DEFAULTS = {"margin": "12px auto"}
_FIGURE_STYLE = {"margin": "12px auto", "max-width": "100%", "text-align": "center"}
_CAPTION_STYLE = {
    "font-size": "13px",
    "color": "#666",
    "margin-top": "6px",
    "text-align": "center",
}
_HEADING_STYLE = {
    "line-height": "1.35",
    "margin-top": "6px",
    "margin-bottom": "12px",
    "white-space": "normal",
    "word-break": "break-word",
    "display": "block",
}
_PARAGRAPH_DEFAULTS = {"margin-top": "6px", "margin-bottom": "10px"}
_SHORTHANDS = frozenset({"margin", "padding"})
_CAPTION_TAGS = frozenset({"em", "small"})
_CAPTION_CLASS = re.compile(r"caption", re.IGNORECASE)
_BLOCKED_SCHEMES = re.compile(r"^\s*(javascript|vbscript|file):", re.IGNORECASE)
_DATA_SCHEME = re.compile(r"^\s*data:", re.IGNORECASE)
_DATA_IMAGE = re.compile(r"^\s*data:image/", re.IGNORECASE)


def render_markdown(markdown: str) -> str:
    """Render markdown to HTML with raw HTML disabled."""
    if not markdown:
        return ""
    md = MarkdownIt("commonmark").disable("html_block").disable("html_inline")
    md.validateLink = _validate_link
    return md.render(markdown)


def format_preview(html: str) -> str:
    """Apply responsive image, figure and spacing styles to a fragment."""
    if not html:
        return html
    try:
        soup = BeautifulSoup(html, "html.parser")
        for img in soup.find_all("img"):
            _style_image(img)
            if img.find_parent("figure") is None:
                _wrap_in_figure(soup, img)
        for heading in soup.find_all(["h1", "h2", "h3"]):
            _set_style(heading, _HEADING_STYLE)
        for paragraph in soup.find_all("p"):
            _set_style(paragraph, _PARAGRAPH_DEFAULTS, overwrite=False)
        return str(soup)
    except Exception:
        _logger.exception("Preview formatting failed, returning input")
        return html


def parse_style(value: str | None) -> dict[str, str]:
    """Parse an inline style attribute into an ordered property map.

    Values keep their original text, including semicolons inside ``url()``
    or quoted strings. Unparseable fragments are dropped.
    """
    declarations: dict[str, str] = {}
    nodes = tinycss2.parse_declaration_list(
        value or "", skip_comments=True, skip_whitespace=True
    )
    for node in nodes:
        if node.type != "declaration":
            continue
        prop_value = tinycss2.serialize(node.value).strip()
        if node.important:
            prop_value = f"{prop_value} !important"
        declarations[node.lower_name] = prop_value
    return declarations


def format_style(declarations: dict[str, str]) -> str:
    """Serialize a property map back into an inline style attribute."""
    return "; ".join(f"{name}: {value}" for name, value in declarations.items())


def _set_style(tag: Tag, properties: dict[str, str], overwrite: bool = True) -> None:
    declarations = parse_style(tag.get("style"))
    for name, value in properties.items():
        if overwrite or not _is_set(declarations, name):
            declarations[name] = value
    tag["style"] = format_style(declarations)


def _is_set(declarations: dict[str, str], name: str) -> bool:
    """Return true when a property or its shorthand or longhands is present."""
    if name in declarations:
        return True
    shorthand, sep, _ = name.partition("-")
    if sep and shorthand in _SHORTHANDS and shorthand in declarations:
        return True
    return name in _SHORTHANDS and any(
        key.startswith(f"{name}-") for key in declarations
    )


def _style_image(img: Tag) -> None:
    _set_style(img, _IMAGE_STYLE)
    _set_style(img, _IMAGE_DEFAULTS, overwrite=False)


def _wrap_in_figure(soup: BeautifulSoup, img: Tag) -> None:
    figure = img.wrap(soup.new_tag("figure"))
    _set_style(figure, _FIGURE_STYLE)
    caption = _take_caption(img, figure)
    if not caption:
        return
    figcaption = soup.new_tag("figcaption")
    figcaption.string = caption
    _set_style(figcaption, _CAPTION_STYLE)
    figure.append(figcaption)


def _take_caption(img: Tag, figure: Tag) -> str:
    """Pick a caption, consuming the adjacent node or attribute it came from."""
    explicit = img.get("data-caption")
    if isinstance(explicit, str) and explicit.strip():
        del img["data-caption"]
        return explicit.strip()
    alt = img.get("alt")
    if isinstance(alt, str) and alt.strip():
        return alt.strip()
    following = figure.next_sibling
    while type(following) is NavigableString and not following.strip():
        following = following.next_sibling
    if type(following) is NavigableString:
        text = following.strip()
        if len(text) < CAPTION_MAX_CHARS:
            following.extract()
            return text
        return ""
    if isinstance(following, Tag) and _is_caption_element(following):
        text = following.get_text().strip()
        if text:
            following.decompose()
        return text
    return ""


def _is_caption_element(tag: Tag) -> bool:
    if tag.name in _CAPTION_TAGS:
        return True
    classes = tag.get("class") or []
    return any(_CAPTION_CLASS.search(name) for name in classes)


def _validate_link(url: str) -> bool:
    if _BLOCKED_SCHEMES.match(url):
        return False
    if _DATA_SCHEME.match(url):
        return bool(_DATA_IMAGE.match(url))
    return True
