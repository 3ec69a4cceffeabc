"""File-backed key-value storage for drafts and selections."""

from dataclasses import dataclass
from pathlib import Path

from news_writer.services.drafts import DraftStorage


@dataclass
class FileDraftStorage(DraftStorage):
    """Store each key as a JSON file in one directory."""

    directory: Path

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, data: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(data, encoding="utf-8")
        tmp_path.replace(path)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"
