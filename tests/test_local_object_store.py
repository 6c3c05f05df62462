"""Tests for LocalObjectStore functionality."""

import json
import tempfile
from pathlib import Path

import pytest

from notevault.exceptions import ExpiredSignedUrl, InvalidSignedUrl, ObjectExists
from notevault.object_store.local import LocalObjectStore


@pytest.fixture
def store() -> LocalObjectStore:
    store = LocalObjectStore(signing_secret="test-secret", base_url="https://notes.test/")
    store.upload("alice/n1/a.png", b"fake image content", "image/png")
    return store


def test_upload_and_download(store: LocalObjectStore) -> None:
    stored = store.download("alice/n1/a.png")

    assert stored.content == b"fake image content"
    assert stored.content_type == "image/png"
    assert store.get_paths() == ["alice/n1/a.png"]


def test_upload_does_not_overwrite(store: LocalObjectStore) -> None:
    with pytest.raises(ObjectExists):
        store.upload("alice/n1/a.png", b"other", "image/png")
    assert store.download("alice/n1/a.png").content == b"fake image content"


def test_download_missing_object(store: LocalObjectStore) -> None:
    with pytest.raises(KeyError, match="Object missing.png not found"):
        store.download("missing.png")


def test_signed_url_round_trip(store: LocalObjectStore) -> None:
    url = store.signed_url("alice/n1/a.png", expires_in=3600)

    assert url is not None
    assert url.startswith("https://notes.test/api/objects/"), "Base URL should not double slashes"
    token = url.rsplit("/", 1)[-1]
    assert store.verify_token(token) == "alice/n1/a.png"


def test_signed_url_for_missing_object(store: LocalObjectStore) -> None:
    assert store.signed_url("missing.png", expires_in=3600) is None


def test_signed_urls_differ_per_path(store: LocalObjectStore) -> None:
    store.upload("alice/n1/b.png", b"b", "image/png")

    assert store.signed_url("alice/n1/a.png", 60) != store.signed_url("alice/n1/b.png", 60)


def test_expired_token(store: LocalObjectStore) -> None:
    url = store.signed_url("alice/n1/a.png", expires_in=-1)
    assert url is not None

    with pytest.raises(ExpiredSignedUrl):
        store.verify_token(url.rsplit("/", 1)[-1])


def test_tampered_token(store: LocalObjectStore) -> None:
    url = store.signed_url("alice/n1/a.png", expires_in=3600)
    assert url is not None
    token = url.rsplit("/", 1)[-1]

    with pytest.raises(InvalidSignedUrl):
        store.verify_token(("B" if token[0] == "A" else "A") + token[1:])


def test_token_from_another_secret(store: LocalObjectStore) -> None:
    other = LocalObjectStore(signing_secret="other-secret")
    other.upload("alice/n1/a.png", b"x", "image/png")
    url = other.signed_url("alice/n1/a.png", 3600)
    assert url is not None

    with pytest.raises(InvalidSignedUrl):
        store.verify_token(url.rsplit("/", 1)[-1])


def test_save_and_load_functionality(store: LocalObjectStore) -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        filepath = Path(temp_dir) / "objects.json"
        store.save(filepath=str(filepath))

        with open(filepath, "r") as f:
            data = json.load(f)
        assert "alice/n1/a.png" in data["objects"], "Should save the object"
        assert isinstance(data["objects"]["alice/n1/a.png"]["content"], str), (
            "Content should be stored as base64 text"
        )

        loaded = LocalObjectStore(filepath=filepath, signing_secret="test-secret")
        assert loaded.download("alice/n1/a.png").content == b"fake image content"


def test_save_without_filepath(store: LocalObjectStore) -> None:
    with pytest.raises(ValueError, match="No filepath provided and no default filepath set"):
        store.save()
