"""Short-lived password holder for an editing session."""

from types import TracebackType


class UnlockCredentials:
    """Keeps the password a note was unlocked with for re-sealing on save.

    One instance belongs to one editing session. Use it as a context manager to
    guarantee the password is dropped when the session ends.
    """

    def __init__(self) -> None:
        self._password: str | None = None

    def set(self, password: str) -> None:
        self._password = password or None

    def get(self) -> str | None:
        return self._password

    def clear(self) -> None:
        self._password = None

    @property
    def is_set(self) -> bool:
        return self._password is not None

    def __enter__(self) -> "UnlockCredentials":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.clear()

    def __repr__(self) -> str:
        return f"UnlockCredentials(is_set={self.is_set})"
