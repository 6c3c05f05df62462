from typing import List, Literal, Protocol

from notevault.domain.note import Note

SortBy = Literal["updated_desc", "updated_asc", "created_desc", "created_asc"]


def filter_and_sort(
    notes: List[Note], search: str = "", sort_by: SortBy = "updated_desc"
) -> List[Note]:
    """Filter notes by a case-insensitive title substring and sort them."""
    needle = search.lower()
    matching = [note for note in notes if needle in note.title.lower()]
    field, _, direction = sort_by.partition("_")
    return sorted(
        matching,
        key=lambda note: getattr(note, f"{field}_at"),
        reverse=direction == "desc",
    )


class NoteStore(Protocol):
    """Protocol for note persistence implementations."""

    def get_note(self, owner: str, note_id: str) -> Note:
        """Get a note owned by ``owner``. Raises NoteNotFound if missing."""
        ...

    def list_notes(
        self, owner: str, *, search: str = "", sort_by: SortBy = "updated_desc"
    ) -> List[Note]:
        """List the notes of an owner."""
        ...

    def add_note(self, note: Note) -> None:
        """Add a new note to the store."""
        ...

    def update_note(self, note: Note) -> None:
        """Replace an existing note."""
        ...

    def delete_note(self, owner: str, note_id: str) -> None:
        """Delete a note. Raises NoteNotFound if missing."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the note store to disk."""
        ...
