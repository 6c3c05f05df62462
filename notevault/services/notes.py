"""Note lifecycle: sealing on save, unlocking, image uploads and hydration."""

import uuid
from pathlib import PurePosixPath
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel

from notevault.crypto.cipher import Cipher, is_sealed
from notevault.crypto.credentials import UnlockCredentials
from notevault.domain.note import HydratedContent, Note, utcnow
from notevault.exceptions import (
    EmptyPassword,
    IncorrectPasswordOrCorruptPayload,
    MalformedPayload,
)
from notevault.hydration.hydrator import ReferenceHydrator
from notevault.note_store.base import NoteStore, SortBy
from notevault.object_store.base import ObjectStore


class UploadedFile(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class UploadResult(BaseModel):
    """Outcome of an image upload.

    Attributes:
        image_paths: All image paths of the note after the upload.
        image_urls: Signed URLs for the paths that could be resolved.
        new_paths: Paths created by this upload.
        markers: HTML snippets embedding the new images, to append to the body.
    """

    image_paths: List[str]
    image_urls: List[str]
    new_paths: List[str]
    markers: str


def object_path(owner: str, note_id: str, filename: str) -> str:
    """Build a fresh, permanent path identifier for an uploaded file."""
    extension = PurePosixPath(filename).suffix.lstrip(".") or "bin"
    return f"{owner}/{note_id}/{uuid.uuid4()}.{extension}"


class NoteService:
    """Coordinates the cipher and hydrator with the storage collaborators."""

    def __init__(
        self,
        *,
        note_store: NoteStore,
        object_store: ObjectStore,
        cipher: Cipher | None = None,
        signed_url_ttl: int = 60 * 60,
        autosave: bool = False,
    ) -> None:
        self._note_store = note_store
        self._object_store = object_store
        self._cipher = cipher or Cipher()
        self._signed_url_ttl = signed_url_ttl
        self._autosave = autosave

    def _persist(self) -> None:
        if self._autosave:
            self._note_store.save()
            self._object_store.save()

    def _stored_content(self, content: str, protected: bool, password: Optional[str]) -> str:
        body = ReferenceHydrator.clear_urls(content)
        if not protected:
            return body
        if not password:
            raise EmptyPassword("Password required to encrypt")
        return self._cipher.seal(body, password).to_json()

    def list_notes(
        self, owner: str, *, search: str = "", sort_by: SortBy = "updated_desc"
    ) -> List[Note]:
        return self._note_store.list_notes(owner, search=search, sort_by=sort_by)

    def get_note(self, owner: str, note_id: str) -> Note:
        return self._note_store.get_note(owner, note_id)

    def create_note(
        self,
        owner: str,
        *,
        title: str,
        content: str = "",
        protected: bool = False,
        password: Optional[str] = None,
        credentials: Optional[UnlockCredentials] = None,
    ) -> Note:
        """Create a note, sealing its body when protection is requested.

        Raises:
            ValueError: If the title is blank.
            EmptyPassword: If protection is requested without a password.
        """
        if not title.strip():
            raise ValueError("Title is required")
        if protected and not password:
            raise EmptyPassword("Set a password for protected note")

        note = Note(
            id=str(uuid.uuid4()),
            owner=owner,
            title=title,
            content=self._stored_content(content, protected, password),
            protected=protected,
        )
        self._note_store.add_note(note)
        if credentials is not None and password:
            credentials.set(password)
        self._persist()
        logger.info(f"Created note {note.id} (protected={protected})")
        return note

    def save_note(
        self,
        owner: str,
        note_id: str,
        *,
        title: str,
        content: str,
        protected: bool,
        password: Optional[str] = None,
        credentials: Optional[UnlockCredentials] = None,
    ) -> Note:
        """Save an edited note.

        A protected note is re-sealed with ``password`` when given, otherwise
        with the password it was unlocked with in this editing session.
        A session password must still open the stored payload, so a stale or
        mistyped one cannot re-key the note.

        Raises:
            ValueError: If the title is blank.
            EmptyPassword: If protection is requested and no password is available.
            IncorrectPasswordOrCorruptPayload: If the session password does not
                open the stored payload.
            NoteNotFound: If the note does not exist.
        """
        if not title.strip():
            raise ValueError("Title is required")
        note = self._note_store.get_note(owner, note_id)
        if protected and not password and not note.protected:
            raise EmptyPassword("Set a password for protected note")

        if protected and not password and credentials is not None:
            password = credentials.get()
            if password:
                try:
                    self._cipher.open(note.content, password)
                except IncorrectPasswordOrCorruptPayload:
                    credentials.clear()
                    logger.warning(f"Session password does not open note {note_id}")
                    raise

        updated = Note.model_validate(
            {
                **note.model_dump(),
                "title": title,
                "content": self._stored_content(content, protected, password),
                "protected": protected,
                "updated_at": utcnow(),
            }
        )
        self._note_store.update_note(updated)
        if credentials is not None and protected and password:
            credentials.set(password)
        self._persist()
        logger.info(f"Saved note {note_id} (protected={protected})")
        return updated

    def unlock_note(
        self,
        owner: str,
        note_id: str,
        password: str,
        credentials: Optional[UnlockCredentials] = None,
    ) -> str:
        """Return the plaintext body of a note.

        On success the password is kept in ``credentials`` so the note can be
        re-sealed on save without asking again. A failed attempt leaves the
        stored payload untouched.

        Raises:
            MalformedPayload: If the stored payload is not a sealed payload.
            IncorrectPasswordOrCorruptPayload: If the password is wrong.
        """
        note = self._note_store.get_note(owner, note_id)
        if not note.protected:
            return note.content
        if not is_sealed(note.content):
            raise MalformedPayload("Note payload is invalid")

        plaintext = self._cipher.open(note.content, password)
        if credentials is not None:
            credentials.set(password)
        logger.info(f"Unlocked note {note_id}")
        return plaintext

    def resolve_urls(self, paths: List[str]) -> List[str]:
        """Issue a signed URL per path; unresolvable paths map to an empty string."""
        return [self._object_store.signed_url(path, self._signed_url_ttl) or "" for path in paths]

    def hydrate(self, owner: str, note_id: str, content: str) -> HydratedContent:
        """Point the image markers of a plaintext body at fresh signed URLs."""
        note = self._note_store.get_note(owner, note_id)
        urls = self.resolve_urls(note.image_paths)
        hydrated = ReferenceHydrator.rewrite(content, note.image_paths, urls)
        unresolved = ReferenceHydrator.unresolved_paths(content, note.image_paths, urls)
        if unresolved:
            logger.warning(f"Note {note_id} has {len(unresolved)} unresolved image(s)")
        return HydratedContent(
            content=hydrated,
            image_paths=note.image_paths,
            image_urls=[url for url in urls if url],
            unresolved=unresolved,
        )

    def upload_images(self, owner: str, note_id: str, files: List[UploadedFile]) -> UploadResult:
        """Store uploaded images and append their paths to the note.

        Raises:
            ValueError: If no files were given.
            NoteNotFound: If the note does not exist.
            ObjectExists: If a generated path is already taken.
        """
        if not files:
            raise ValueError("No files uploaded")
        note = self._note_store.get_note(owner, note_id)

        new_paths = []
        for file in files:
            path = object_path(owner, note_id, file.filename)
            self._object_store.upload(path, file.content, file.content_type)
            new_paths.append(path)

        updated = note.model_copy(
            update={"image_paths": [*note.image_paths, *new_paths], "updated_at": utcnow()}
        )
        self._note_store.update_note(updated)
        self._persist()

        urls = self.resolve_urls(updated.image_paths)
        logger.info(f"Uploaded {len(new_paths)} image(s) to note {note_id}")
        return UploadResult(
            image_paths=updated.image_paths,
            image_urls=[url for url in urls if url],
            new_paths=new_paths,
            markers=self.attach_markers("", updated.image_paths, urls, note.image_paths),
        )

    @staticmethod
    def attach_markers(
        content: str, paths: List[str], urls: List[str], known_paths: List[str]
    ) -> str:
        """Append a marker for every path not in ``known_paths`` that has a URL."""
        snippets = [
            ReferenceHydrator.build_marker(path, url)
            for path, url in zip(paths, urls)
            if url and path not in known_paths
        ]
        return content + "".join(snippets)

    def delete_note(self, owner: str, note_id: str) -> None:
        self._note_store.delete_note(owner, note_id)
        self._persist()
        logger.info(f"Deleted note {note_id}")
