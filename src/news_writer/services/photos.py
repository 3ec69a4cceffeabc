"""Resolution of symbolic ``PHOTO:<id>`` tokens into concrete image references."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import quote

from bs4 import BeautifulSoup, NavigableString, Tag

from news_writer.domain.generation import ResultPhoto
from news_writer.domain.requests import SelectedPhotoRef

PHOTO_TOKEN = re.compile(r"PHOTO:([\w-]+)")
_FULL_TOKEN = re.compile(r"\s*PHOTO:([\w-]+)\s*")
_IMAGE_OR_TOKEN = re.compile(r"!\[([^\]]*)\]\(\s*PHOTO:([\w-]+)\s*\)|PHOTO:([\w-]+)")
_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)
_ENCODED_COLON_TOKEN = re.compile(r"PHOTO(?:&#0*58;|&#[xX]0*3[aA];|&colon;)")

LOOKUP_URL_FIELDS = ("url", "fullUrl", "cosUrl", "src", "thumbSrc")
_RAW_TEXT_PARENTS = frozenset({"script", "style", "textarea", "title"})

MISSING_IMAGE_ALT = "图片缺失"
MISSING_IMAGE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="320" height="180">'
    '<rect width="100%" height="100%" fill="#eee"/>'
    '<text x="50%" y="50%" dominant-baseline="middle" text-anchor="middle" '
    f'fill="#888">{MISSING_IMAGE_ALT}</text></svg>'
)
MISSING_IMAGE_URL = "data:image/svg+xml;utf8," + quote(MISSING_IMAGE_SVG, safe="")

_logger = logging.getLogger(__name__)


class PhotoLookup(Protocol):
    """Interface for fetching photo metadata by id."""

    async def get_photo(self, photo_id: str) -> dict[str, object]:
        """Return the raw photo record for an id."""


@dataclass(frozen=True)
class ResolvedPhoto:
    """Outcome of resolving one photo id."""

    id: str
    url: str | None
    photographer: str | None = None

    @property
    def missing(self) -> bool:
        """Return true when no absolute URL was found."""
        return self.url is None

    @property
    def src(self) -> str:
        """Return the URL to render, or the missing-image placeholder."""
        return self.url or MISSING_IMAGE_URL


def is_absolute_url(value: object) -> bool:
    """Return true for http(s) URLs."""
    return isinstance(value, str) and bool(_ABSOLUTE_URL.match(value.strip()))


@dataclass
class PhotoResolver:
    """Replace photo tokens in markdown or HTML drafts.

    Each distinct id is resolved once per call, trying the generator's photo
    list, then the caller's selection, then the remote lookup. Ids nobody can
    resolve are rendered as a visible placeholder and reported back.
    """

    lookup: PhotoLookup | None = None

    async def resolve_markdown(
        self,
        text: str,
        result_photos: Iterable[ResultPhoto] = (),
        selection: Iterable[SelectedPhotoRef] = (),
    ) -> tuple[str, list[str]]:
        """Resolve tokens in markdown and return the text plus missing ids."""
        if text:
            text = _ENCODED_COLON_TOKEN.sub("PHOTO:", text)
        if not text or not PHOTO_TOKEN.search(text):
            return text, []
        ids = _distinct(match.group(1) for match in PHOTO_TOKEN.finditer(text))
        resolved = await self.resolve_ids(ids, result_photos, selection)

        def _replace(match: re.Match[str]) -> str:
            if match.group(2) is not None:
                return _markdown_image(resolved[match.group(2)], match.group(1))
            photo = resolved[match.group(3)]
            return _markdown_image(photo, f"图{photo.id}")

        return _IMAGE_OR_TOKEN.sub(_replace, text), _missing(resolved)

    async def resolve_html(
        self,
        html: str,
        result_photos: Iterable[ResultPhoto] = (),
        selection: Iterable[SelectedPhotoRef] = (),
    ) -> tuple[str, list[str]]:
        """Resolve tokens in an HTML fragment and return it plus missing ids."""
        if not html:
            return html, []
        soup = BeautifulSoup(html, "html.parser")
        ids = _distinct(_soup_photo_ids(soup))
        if not ids:
            return html, []
        resolved = await self.resolve_ids(ids, result_photos, selection)
        _resolve_image_sources(soup, resolved)
        _resolve_attribute_tokens(soup, resolved)
        _resolve_text_tokens(soup, resolved)
        return str(soup), _missing(resolved)

    async def resolve_ids(
        self,
        ids: Iterable[str],
        result_photos: Iterable[ResultPhoto] = (),
        selection: Iterable[SelectedPhotoRef] = (),
    ) -> dict[str, ResolvedPhoto]:
        """Resolve each id to a URL and photographer name, if known."""
        known = {photo.id: photo for photo in result_photos}
        selected = {photo.id: photo for photo in selection}
        resolved: dict[str, ResolvedPhoto] = {}
        for photo_id in ids:
            result_photo = known.get(photo_id)
            selected_photo = selected.get(photo_id)
            url = None
            if result_photo is not None and is_absolute_url(result_photo.url):
                url = result_photo.url
            elif selected_photo is not None:
                url = _first_absolute(selected_photo.thumb_url, selected_photo.url)
            if url is None:
                url = await self._lookup_url(photo_id)
            if url is None:
                _logger.error("Photo missing for id %s", photo_id)
            resolved[photo_id] = ResolvedPhoto(
                id=photo_id,
                url=url.strip() if url else None,
                photographer=_photographer(result_photo, selected_photo),
            )
        return resolved

    async def _lookup_url(self, photo_id: str) -> str | None:
        if self.lookup is None:
            return None
        try:
            payload = await self.lookup.get_photo(photo_id)
        except Exception:
            _logger.exception("Photo lookup failed for id %s", photo_id)
            return None
        return pick_lookup_url(payload)


def pick_lookup_url(payload: object) -> str | None:
    """Return the first absolute URL field of a photo lookup record."""
    if not isinstance(payload, dict):
        return None
    url = _first_absolute(*(payload.get(name) for name in LOOKUP_URL_FIELDS))
    if url is not None:
        return url
    nested = payload.get("data")
    if isinstance(nested, dict):
        return _first_absolute(*(nested.get(name) for name in LOOKUP_URL_FIELDS))
    return None


def scrub_tokens(text: str) -> str:
    """Replace tokens in free text (alt text, names) with a readable label."""
    return PHOTO_TOKEN.sub(lambda match: f"图{match.group(1)}", text)


def _first_absolute(*candidates: object) -> str | None:
    for candidate in candidates:
        if is_absolute_url(candidate):
            return str(candidate)
    return None


def _photographer(
    result_photo: ResultPhoto | None, selected_photo: SelectedPhotoRef | None
) -> str | None:
    if result_photo is not None and result_photo.photographer_name:
        return result_photo.photographer_name
    if selected_photo is None:
        return None
    if selected_photo.photographer_name:
        return selected_photo.photographer_name
    if selected_photo.photographer_id:
        return f"摄影师 #{selected_photo.photographer_id}"
    return None


def _distinct(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def _missing(resolved: dict[str, ResolvedPhoto]) -> list[str]:
    return [photo.id for photo in resolved.values() if photo.missing]


def _markdown_image(photo: ResolvedPhoto, alt: str) -> str:
    if photo.missing:
        return f"![{MISSING_IMAGE_ALT}]({MISSING_IMAGE_URL})"
    image = f"![{scrub_tokens(alt)}]({photo.src})"
    if photo.photographer:
        return f"{image}\n\n*摄影：{scrub_tokens(photo.photographer)}*"
    return image


def _soup_photo_ids(soup: BeautifulSoup) -> list[str]:
    ids: list[str] = []
    for tag in soup.find_all(True):
        for value in tag.attrs.values():
            values = value if isinstance(value, list) else [value]
            for item in values:
                ids.extend(PHOTO_TOKEN.findall(str(item)))
    for string in soup.find_all(string=PHOTO_TOKEN):
        ids.extend(PHOTO_TOKEN.findall(str(string)))
    return ids


def _resolve_image_sources(
    soup: BeautifulSoup, resolved: dict[str, ResolvedPhoto]
) -> None:
    for img in soup.find_all("img"):
        src = img.get("src")
        match = _FULL_TOKEN.fullmatch(src) if isinstance(src, str) else None
        if match is None:
            continue
        photo = resolved[match.group(1)]
        img["src"] = photo.src
        if photo.missing:
            img["alt"] = MISSING_IMAGE_ALT
            continue
        img["alt"] = scrub_tokens(img.get("alt") or f"图{photo.id}")
        if photo.photographer and img.find_parent("figure") is None:
            figure = img.wrap(soup.new_tag("figure"))
            figure.append(_photographer_caption(soup, photo))


def _resolve_attribute_tokens(
    soup: BeautifulSoup, resolved: dict[str, ResolvedPhoto]
) -> None:
    def _url(match: re.Match[str]) -> str:
        return resolved[match.group(1)].src

    for tag in soup.find_all(True):
        for name, value in list(tag.attrs.items()):
            if isinstance(value, list):
                tag[name] = [PHOTO_TOKEN.sub(_url, item) for item in value]
            elif isinstance(value, str) and PHOTO_TOKEN.search(value):
                tag[name] = PHOTO_TOKEN.sub(_url, value)


def _resolve_text_tokens(
    soup: BeautifulSoup, resolved: dict[str, ResolvedPhoto]
) -> None:
    for string in list(soup.find_all(string=PHOTO_TOKEN)):
        text = str(string)
        parent = string.parent
        raw_text = parent is not None and parent.name in _RAW_TEXT_PARENTS
        if type(string) is not NavigableString or raw_text:
            string.replace_with(
                type(string)(
                    PHOTO_TOKEN.sub(lambda m: resolved[m.group(1)].src, text)
                )
            )
            continue
        nodes: list[NavigableString | Tag] = []
        position = 0
        for match in _IMAGE_OR_TOKEN.finditer(text):
            if match.start() > position:
                nodes.append(NavigableString(text[position : match.start()]))
            if match.group(2) is not None:
                photo, alt = resolved[match.group(2)], match.group(1)
            else:
                photo = resolved[match.group(3)]
                alt = f"图{photo.id}"
            nodes.append(_html_image(soup, photo, alt))
            position = match.end()
        if position < len(text):
            nodes.append(NavigableString(text[position:]))
        string.replace_with(*nodes)


def _html_image(soup: BeautifulSoup, photo: ResolvedPhoto, alt: str) -> Tag:
    if photo.missing:
        return soup.new_tag("img", attrs={"src": photo.src, "alt": MISSING_IMAGE_ALT})
    img = soup.new_tag(
        "img",
        attrs={"src": photo.src, "alt": scrub_tokens(alt), "loading": "lazy"},
    )
    if not photo.photographer:
        return img
    figure = soup.new_tag("figure")
    figure.append(img)
    figure.append(_photographer_caption(soup, photo))
    return figure


def _photographer_caption(soup: BeautifulSoup, photo: ResolvedPhoto) -> Tag:
    caption = soup.new_tag("figcaption")
    caption.string = f"摄影：{scrub_tokens(photo.photographer or '')}"
    return caption
