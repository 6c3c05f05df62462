from typing import List, Optional, Protocol

from notevault.domain.stored_object import StoredObject


class ObjectStore(Protocol):
    """Protocol for object storage implementations."""

    def upload(self, path: str, content: bytes, content_type: str) -> None:
        """Store bytes under a path. Raises ObjectExists if the path is taken."""
        ...

    def download(self, path: str) -> StoredObject:
        """Get an object by its path."""
        ...

    def signed_url(self, path: str, expires_in: int) -> Optional[str]:
        """Issue a URL valid for ``expires_in`` seconds, or None if the object is missing."""
        ...

    def verify_token(self, token: str) -> str:
        """Return the path a signed URL token was issued for."""
        ...

    def get_paths(self) -> List[str]:
        """Get all paths stored in the object store."""
        ...

    def save(self, filepath: str | None = None) -> None:
        """Save the object store to disk."""
        ...
