"""Debounced persistence of writer drafts."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from pydantic import ValidationError

from news_writer.domain.drafts import DRAFT_STORAGE_KEY, DraftSnapshot

_logger = logging.getLogger(__name__)


class DraftStorage(Protocol):
    """Key-value storage for serialized writer state."""

    def read(self, key: str) -> str | None:
        """Return the stored value for a key, if present."""

    def write(self, key: str, data: str) -> None:
        """Store a value under a key."""


@dataclass
class DraftService:
    """Save and restore writer snapshots under a versioned key."""

    storage: DraftStorage
    key: str = DRAFT_STORAGE_KEY
    debounce_seconds: float = 0.35
    _pending: "asyncio.Task[None] | None" = field(default=None, init=False, repr=False)

    def load(self) -> DraftSnapshot | None:
        """Return the stored snapshot, ignoring missing or incompatible data."""
        try:
            raw = self.storage.read(self.key)
        except (OSError, UnicodeDecodeError):
            _logger.warning("Failed to read draft %s", self.key, exc_info=True)
            return None
        if not raw:
            return None
        try:
            return DraftSnapshot.model_validate_json(raw)
        except ValidationError:
            _logger.warning("Ignoring incompatible draft %s", self.key)
            return None

    def save(self, snapshot: DraftSnapshot) -> None:
        """Write a snapshot now; storage errors are logged, not raised."""
        stamped = snapshot.model_copy(update={"saved_at": datetime.now(tz=UTC)})
        try:
            self.storage.write(self.key, stamped.model_dump_json())
        except OSError:
            _logger.warning("Failed to save draft %s", self.key, exc_info=True)

    def schedule_save(self, snapshot: DraftSnapshot) -> None:
        """Save after the debounce delay, replacing any pending save."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save(snapshot)
            return
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = loop.create_task(self._save_later(snapshot))

    async def flush(self) -> None:
        """Wait for a pending debounced save to finish."""
        pending = self._pending
        if pending is None or pending.done():
            return
        try:
            await pending
        except asyncio.CancelledError:
            if not pending.cancelled():
                raise

    async def _save_later(self, snapshot: DraftSnapshot) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self.save(snapshot)
