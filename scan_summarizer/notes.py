"""
Saved notes: scanned text together with its summary and title.

Notes are kept newest-first in a single JSON file.
"""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
import json
import logging
import time

from .engine import SummaryResult
from .extractive import LengthTier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Note:
    """A summarized scan."""
    id: str
    title: str
    summary: str
    full_text: str
    created_at: str
    length: str = LengthTier.MEDIUM.value

    def share_text(self) -> str:
        """Render the note as plain text for sharing."""
        return f"{self.title}\n\n{self.summary}\n\nFull Text:\n{self.full_text}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        return cls(
            id=str(data["id"]),
            title=data["title"],
            summary=data["summary"],
            full_text=data["full_text"],
            created_at=data["created_at"],
            length=data.get("length", LengthTier.MEDIUM.value),
        )


class NoteStore:
    """JSON-file backed collection of notes."""

    def __init__(self, path: str | Path):
        """
        Args:
            path: JSON file holding the notes (created on first save)
        """
        self.path = Path(path).expanduser()

    def all(self) -> list[Note]:
        """
        Load every saved note, newest first.

        Raises:
            ValueError: If the notes file is not a valid notes list
        """
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw: Any = json.load(f)
            return [Note.from_dict(item) for item in raw]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise ValueError(f"Corrupt notes file {self.path}: {e}") from e

    def get(self, note_id: str) -> Note | None:
        """Find a note by id."""
        for note in self.all():
            if note.id == note_id:
                return note
        return None

    def add(
        self,
        result: SummaryResult,
        full_text: str,
        length: LengthTier | str = LengthTier.MEDIUM
    ) -> Note:
        """
        Save a summary as a new note.

        The note id is the creation time in epoch milliseconds.

        Args:
            result: Summary and title to store
            full_text: Recognized text the summary was made from
            length: Length tier used for the summary

        Returns:
            The stored note
        """
        notes: list[Note] = self.all()

        created = datetime.now(timezone.utc)
        note_id: int = int(time.time() * 1000)
        existing_ids: set[str] = {note.id for note in notes}
        while str(note_id) in existing_ids:
            note_id += 1

        note = Note(
            id=str(note_id),
            title=result.title,
            summary=result.summary,
            full_text=full_text,
            created_at=created.isoformat(),
            length=LengthTier.from_value(length).value,
        )
        notes.insert(0, note)
        self._write(notes)
        logger.info("Saved note %s (%s)", note.id, note.title)
        return note

    def delete(self, note_id: str) -> bool:
        """
        Delete a note.

        Returns:
            True if a note was removed
        """
        notes: list[Note] = self.all()
        remaining: list[Note] = [note for note in notes if note.id != note_id]
        if len(remaining) == len(notes):
            return False
        self._write(remaining)
        logger.info("Deleted note %s", note_id)
        return True

    def _write(self, notes: list[Note]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([asdict(note) for note in notes], f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)
