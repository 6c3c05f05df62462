"""Note domain models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, model_validator

from notevault.crypto.cipher import is_sealed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(BaseModel):
    """Represents a stored note.

    Attributes:
        id: Unique identifier of the note.
        owner: Identifier of the user the note belongs to.
        title: Note title.
        content: HTML body, or the JSON form of a sealed payload when protected.
        protected: Whether the body is password protected.
        image_paths: Object storage paths of attached images, in display order.
        created_at: Creation timestamp (UTC).
        updated_at: Last save timestamp (UTC).
    """

    id: str
    owner: str
    title: str
    content: str = ""
    protected: bool = False
    image_paths: list[str] = []
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_protection(self) -> "Note":
        if is_sealed(self.content) != self.protected:
            state = "sealed" if self.protected else "plaintext"
            raise ValueError(f"Note {self.id} content must be {state}")
        return self


class HydratedContent(BaseModel):
    """A note body with image markers pointing at fresh signed URLs.

    ``unresolved`` lists referenced paths for which no URL could be issued, so
    callers can tell "nothing to resolve" apart from "attachments unavailable".
    """

    content: str
    image_paths: list[str]
    image_urls: list[str]
    unresolved: list[str] = []
