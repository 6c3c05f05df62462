import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from loguru import logger

from notevault.domain.stored_object import StoredObject
from notevault.exceptions import ExpiredSignedUrl, InvalidSignedUrl, ObjectExists
from notevault.object_store.base import ObjectStore

SIGNED_URL_SALT = "notevault.objects"


class LocalObjectStore(ObjectStore):
    """Local object store that saves uploads to a JSON file.

    Signed URLs point at ``{base_url}/api/objects/{token}``, where the token is
    an ``itsdangerous`` signature over the object path and validity window.
    """

    def __init__(
        self,
        filepath: str | Path | None = None,
        *,
        signing_secret: str,
        base_url: str = "",
    ) -> None:
        """Initialize LocalObjectStore.

        Args:
            filepath: Path to object store file. If provided and exists, will auto-load.
                     If provided and doesn't exist, will save to this path when save() is called.
                     If not provided, creates empty store in memory only.
            signing_secret: Secret used to sign URL tokens.
            base_url: Prefix of issued URLs, e.g. ``https://notes.example.com``.
        """
        self._filepath = str(filepath) if filepath else None
        self._serializer = URLSafeTimedSerializer(signing_secret, salt=SIGNED_URL_SALT)
        self._base_url = base_url.rstrip("/")
        self._objects: dict[str, StoredObject] = {}

        if self._filepath and Path(self._filepath).exists():
            with open(self._filepath, "r") as f:
                data = json.load(f)
            self._objects = {
                path: StoredObject(**object_data) for path, object_data in data["objects"].items()
            }

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Store bytes under a path without overwriting."""
        if path in self._objects:
            raise ObjectExists(f"Object {path} already exists")
        self._objects[path] = StoredObject(path=path, content=content, content_type=content_type)
        logger.info(f"Stored object {path} ({len(content)} bytes)")

    def download(self, path: str) -> StoredObject:
        """Get an object by its path."""
        if path not in self._objects:
            raise KeyError(f"Object {path} not found")
        return self._objects[path]

    def signed_url(self, path: str, expires_in: int) -> Optional[str]:
        """Issue a time-limited URL for an object."""
        if path not in self._objects:
            logger.warning(f"Cannot sign URL for missing object {path}")
            return None
        token = self._serializer.dumps({"p": path, "e": expires_in})
        return f"{self._base_url}/api/objects/{token}"

    def verify_token(self, token: str) -> str:
        """Return the path of a valid, unexpired signed URL token."""
        try:
            data, issued_at = self._serializer.loads(token, return_timestamp=True)
        except BadSignature as e:
            raise InvalidSignedUrl("Invalid signed URL") from e

        age = (datetime.now(timezone.utc) - issued_at).total_seconds()
        if age > data["e"]:
            raise ExpiredSignedUrl("Signed URL has expired")
        return data["p"]

    def get_paths(self) -> List[str]:
        """Get all paths stored in the object store."""
        return list(self._objects.keys())

    def save(self, filepath: str | None = None) -> None:
        """Save the object store to a JSON file.

        Args:
            filepath: Path to save to. If not provided, uses the filepath from initialization.
        """
        save_path = filepath or self._filepath
        if not save_path:
            raise ValueError(
                "No filepath provided and no default filepath set during initialization"
            )

        data = {"objects": {path: obj.model_dump() for path, obj in self._objects.items()}}
        with open(str(save_path), "w") as f:
            json.dump(data, f)
