from tests.fakes.fake_note_store import FakeNoteStore
from tests.fakes.fake_object_store import FakeObjectStore

__all__ = ["FakeNoteStore", "FakeObjectStore"]
