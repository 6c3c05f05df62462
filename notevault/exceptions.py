"""Error kinds raised by notevault."""


class NotevaultError(Exception):
    """Base class for all notevault errors."""


class EmptyPassword(NotevaultError, ValueError):
    """Raised when sealing is requested without a password."""


class MalformedPayload(NotevaultError, ValueError):
    """Raised when a value does not structurally match a sealed payload."""


class IncorrectPasswordOrCorruptPayload(NotevaultError):
    """Raised when decryption fails.

    A wrong password and a corrupted ciphertext are indistinguishable without an
    authentication tag, so both surface as this single error.
    """


class AuthenticationFailed(IncorrectPasswordOrCorruptPayload):
    """Raised when an authenticated payload fails tag verification."""


class NoResolvableReferences(NotevaultError):
    """Raised by a strict rewrite when none of the given paths has a URL."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = paths
        super().__init__(f"No resolved URL for any of {len(paths)} image path(s)")


class NoteNotFound(NotevaultError, KeyError):
    """Raised when a note does not exist for the given owner."""


class ObjectExists(NotevaultError):
    """Raised when uploading to a path that is already taken."""


class InvalidSignedUrl(NotevaultError):
    """Raised when a signed URL token fails verification."""


class ExpiredSignedUrl(InvalidSignedUrl):
    """Raised when a signed URL token is past its validity window."""
