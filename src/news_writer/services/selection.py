"""Photo selection shared between album browsing and the writer."""

import logging
from collections.abc import Callable

from pydantic import TypeAdapter, ValidationError

from news_writer.domain.requests import SelectedPhotoRef
from news_writer.services.drafts import DraftStorage

_logger = logging.getLogger(__name__)

SELECTION_STORAGE_KEY = "news_writer.selection"
MAX_SELECTED_PHOTOS = 30

SelectionListener = Callable[[tuple[SelectedPhotoRef, ...]], None]

_SELECTION_ADAPTER = TypeAdapter(list[SelectedPhotoRef])


class SelectionStore:
    """Ordered, de-duplicated set of selected photos with change listeners."""

    def __init__(
        self,
        storage: DraftStorage | None = None,
        max_count: int = MAX_SELECTED_PHOTOS,
        key: str = SELECTION_STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._max_count = max_count
        self._key = key
        self._photos: list[SelectedPhotoRef] = []
        self._listeners: list[SelectionListener] = []

    def load(self) -> None:
        """Restore the selection from storage, if any."""
        if self._storage is None:
            return
        try:
            raw = self._storage.read(self._key)
        except (OSError, UnicodeDecodeError):
            _logger.warning("Failed to read photo selection", exc_info=True)
            return
        if not raw:
            return
        try:
            photos = _SELECTION_ADAPTER.validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring unreadable photo selection")
            return
        self._photos = []
        for photo in photos:
            self._append(photo)
        self._notify()

    def all(self) -> tuple[SelectedPhotoRef, ...]:
        return tuple(self._photos)

    def __len__(self) -> int:
        return len(self._photos)

    def __contains__(self, photo_id: object) -> bool:
        return any(photo.id == photo_id for photo in self._photos)

    def add(self, photo: SelectedPhotoRef | dict[str, object]) -> bool:
        """Add a photo; returns False for duplicates, bad input or a full store."""
        ref = photo if isinstance(photo, SelectedPhotoRef) else None
        if isinstance(photo, dict):
            ref = SelectedPhotoRef.from_payload(photo)
        if ref is None:
            return False
        if not self._append(ref):
            return False
        self._changed()
        return True

    def remove(self, photo_id: str) -> bool:
        remaining = [photo for photo in self._photos if photo.id != photo_id]
        if len(remaining) == len(self._photos):
            return False
        self._photos = remaining
        self._changed()
        return True

    def clear(self) -> None:
        if not self._photos:
            return
        self._photos = []
        self._changed()

    def subscribe(
        self,
        listener: SelectionListener,
        emit_current: bool = True,
    ) -> Callable[[], None]:
        """Register a listener and return a function that unregisters it."""
        self._listeners.append(listener)
        if emit_current:
            listener(self.all())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _append(self, photo: SelectedPhotoRef) -> bool:
        if photo.id in self:
            return False
        if len(self._photos) >= self._max_count:
            _logger.info("Photo selection full, skipping %s", photo.id)
            return False
        self._photos.append(photo)
        return True

    def _changed(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            data = _SELECTION_ADAPTER.dump_json(self._photos).decode()
            self._storage.write(self._key, data)
        except OSError:
            _logger.warning("Failed to save photo selection", exc_info=True)

    def _notify(self) -> None:
        snapshot = self.all()
        for listener in list(self._listeners):
            listener(snapshot)
