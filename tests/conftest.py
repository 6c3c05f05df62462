import os

os.environ.setdefault("AUTH_USERNAME", "admin")
os.environ.setdefault("AUTH_PASSWORD", "password")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from notevault.api import create_app  # noqa: E402
from notevault.crypto.cipher import Cipher  # noqa: E402
from notevault.domain.note import Note  # noqa: E402
from notevault.domain.stored_object import StoredObject  # noqa: E402
from notevault.services.notes import NoteService  # noqa: E402
from tests.fakes import FakeNoteStore, FakeObjectStore  # noqa: E402

# Key derivation at full strength is slow; service and API tests use fewer rounds.
FAST_ITERATIONS = 1_000


@pytest.fixture
def fast_cipher() -> Cipher:
    return Cipher(iterations=FAST_ITERATIONS)


@pytest.fixture
def sealed_body(fast_cipher: Cipher) -> str:
    return fast_cipher.seal("<p>secret</p>", "correct-horse").to_json()


@pytest.fixture
def test_notes(sealed_body: str) -> dict[str, Note]:
    return {
        "note1": Note(
            id="note1",
            owner="admin",
            title="Shopping list",
            content='<p>Milk</p><p><img src="" data-note-path="admin/note1/a.png" alt="Attached image" /></p>',
            image_paths=["admin/note1/a.png"],
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 3, tzinfo=timezone.utc),
        ),
        "note2": Note(
            id="note2",
            owner="admin",
            title="Diary",
            content=sealed_body,
            protected=True,
            created_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 2, tzinfo=timezone.utc),
        ),
        "note3": Note(
            id="note3",
            owner="someone-else",
            title="Not yours",
            content="<p>hidden</p>",
        ),
    }


@pytest.fixture
def test_objects() -> dict[str, StoredObject]:
    return {
        "admin/note1/a.png": StoredObject(
            path="admin/note1/a.png", content=b"fake image data", content_type="image/png"
        ),
    }


@pytest.fixture
def fake_note_store(test_notes: dict[str, Note]) -> FakeNoteStore:
    return FakeNoteStore(test_notes)


@pytest.fixture
def fake_object_store(test_objects: dict[str, StoredObject]) -> FakeObjectStore:
    return FakeObjectStore(test_objects)


@pytest.fixture
def note_service(
    fake_note_store: FakeNoteStore, fake_object_store: FakeObjectStore, fast_cipher: Cipher
) -> NoteService:
    return NoteService(
        note_store=fake_note_store,
        object_store=fake_object_store,
        cipher=fast_cipher,
        signed_url_ttl=3600,
    )


@pytest.fixture
def test_client(
    fake_note_store: FakeNoteStore, fake_object_store: FakeObjectStore, fast_cipher: Cipher
) -> TestClient:
    """Create test client with fake implementations."""
    app = create_app(
        note_store=fake_note_store, object_store=fake_object_store, cipher=fast_cipher
    )
    client = TestClient(app)
    client.auth = ("admin", "password")
    return client
