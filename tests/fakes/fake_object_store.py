from typing import Dict, List, Optional

from notevault.domain.stored_object import StoredObject
from notevault.exceptions import InvalidSignedUrl, ObjectExists
from notevault.object_store.base import ObjectStore


class FakeObjectStore(ObjectStore):
    """Fake object store issuing predictable URLs."""

    def __init__(
        self,
        objects: Dict[str, StoredObject] | None = None,
        unavailable: set[str] | None = None,
    ) -> None:
        self._objects = objects or {}
        self._unavailable = unavailable or set()

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        if path in self._objects:
            raise ObjectExists(f"Object {path} already exists")
        self._objects[path] = StoredObject(path=path, content=content, content_type=content_type)

    def download(self, path: str) -> StoredObject:
        if path not in self._objects:
            raise KeyError(f"Object {path} not found")
        return self._objects[path]

    def signed_url(self, path: str, expires_in: int) -> Optional[str]:
        """Return ``https://objects.test/<path>?ttl=<expires_in>`` for known paths."""
        if path not in self._objects or path in self._unavailable:
            return None
        return f"https://objects.test/{path}?ttl={expires_in}"

    def verify_token(self, token: str) -> str:
        if token not in self._objects:
            raise InvalidSignedUrl("Invalid signed URL")
        return token

    def get_paths(self) -> List[str]:
        return list(self._objects.keys())

    def save(self, filepath: str | None = None) -> None:
        pass
