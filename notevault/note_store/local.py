import json
from pathlib import Path
from typing import List

from loguru import logger

from notevault.domain.note import Note
from notevault.exceptions import NoteNotFound
from notevault.note_store.base import NoteStore, SortBy, filter_and_sort


class LocalNoteStore(NoteStore):
    """Local note store that saves notes to a JSON file."""

    def __init__(self, filepath: str | Path | None = None) -> None:
        """Initialize LocalNoteStore.

        Args:
            filepath: Path to note store file. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, creates empty store in memory only.
        """
        self._filepath = str(filepath) if filepath else None
        self._notes: dict[str, Note] = {}

        if self._filepath and Path(self._filepath).exists():
            with open(self._filepath, "r") as f:
                data = json.load(f)
            self._notes = {
                note_id: Note.model_validate(note_data)
                for note_id, note_data in data["notes"].items()
            }
            logger.info(f"Loaded {len(self._notes)} notes from {self._filepath}")

    def get_note(self, owner: str, note_id: str) -> Note:
        """Get a note owned by ``owner``."""
        note = self._notes.get(note_id)
        if note is None or note.owner != owner:
            raise NoteNotFound(f"Note {note_id} not found")
        return note

    def list_notes(
        self, owner: str, *, search: str = "", sort_by: SortBy = "updated_desc"
    ) -> List[Note]:
        """List the notes of an owner, newest update first by default."""
        owned = [note for note in self._notes.values() if note.owner == owner]
        return filter_and_sort(owned, search=search, sort_by=sort_by)

    def add_note(self, note: Note) -> None:
        """Add a new note to the store."""
        if note.id in self._notes:
            raise ValueError(f"Note {note.id} already exists")
        self._notes[note.id] = note

    def update_note(self, note: Note) -> None:
        """Replace an existing note."""
        self.get_note(note.owner, note.id)
        self._notes[note.id] = note

    def delete_note(self, owner: str, note_id: str) -> None:
        """Delete a note."""
        self.get_note(owner, note_id)
        del self._notes[note_id]

    def save(self, filepath: str | None = None) -> None:
        """Save the note store to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = filepath or self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )

        data = {
            "notes": {
                note_id: note.model_dump(mode="json") for note_id, note in self._notes.items()
            }
        }
        with open(str(save_path), "w") as f:
            json.dump(data, f)
