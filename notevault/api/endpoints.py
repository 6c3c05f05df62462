from typing import Any, List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from loguru import logger
from starlette.concurrency import run_in_threadpool

from notevault.api.auth import verify_credentials
from notevault.api.schemas import NoteCreate, NoteUpdate, UnlockRequest, UploadResponse
from notevault.crypto.credentials import UnlockCredentials
from notevault.domain.note import Note
from notevault.exceptions import (
    ExpiredSignedUrl,
    IncorrectPasswordOrCorruptPayload,
    InvalidSignedUrl,
    MalformedPayload,
    NoteNotFound,
)
from notevault.note_store.base import SortBy
from notevault.object_store.base import ObjectStore
from notevault.services.notes import NoteService, UploadedFile


def _note_response(service: NoteService, owner: str, note: Note) -> dict[str, Any]:
    """Serialize a note, hydrating its body when it is not sealed."""
    data = note.model_dump(mode="json")
    if note.protected:
        data.update(image_urls=[], unresolved=[])
        return data
    hydrated = service.hydrate(owner, note.id, note.content)
    data.update(
        content=hydrated.content,
        image_urls=hydrated.image_urls,
        unresolved=hydrated.unresolved,
    )
    return data


def _create_notes_endpoints(router: APIRouter, service: NoteService) -> None:  # noqa: C901
    @router.get("/api/notes")
    async def list_notes(
        search: str = "",
        sort_by: SortBy = "updated_desc",
        owner: str = Depends(verify_credentials),
    ):
        notes = service.list_notes(owner, search=search, sort_by=sort_by)
        return [note.model_dump(mode="json") for note in notes]

    @router.post("/api/notes")
    async def create_note(payload: NoteCreate, owner: str = Depends(verify_credentials)):
        try:
            note = await run_in_threadpool(
                service.create_note,
                owner,
                title=payload.title,
                content=payload.content,
                protected=payload.protected,
                password=payload.password,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return _note_response(service, owner, note)

    @router.get("/api/notes/{note_id}")
    async def get_note(note_id: str, owner: str = Depends(verify_credentials)):
        try:
            note = service.get_note(owner, note_id)
        except NoteNotFound as e:
            raise HTTPException(status_code=404, detail="Note not found") from e
        return _note_response(service, owner, note)

    @router.patch("/api/notes/{note_id}")
    async def update_note(
        note_id: str, payload: NoteUpdate, owner: str = Depends(verify_credentials)
    ):
        with UnlockCredentials() as credentials:
            if payload.unlock_password:
                credentials.set(payload.unlock_password)
            try:
                note = await run_in_threadpool(
                    service.save_note,
                    owner,
                    note_id,
                    title=payload.title,
                    content=payload.content,
                    protected=payload.protected,
                    password=payload.password,
                    credentials=credentials,
                )
            except NoteNotFound as e:
                raise HTTPException(status_code=404, detail="Note not found") from e
            except MalformedPayload as e:
                logger.error(f"Stored payload of note {note_id} is malformed")
                raise HTTPException(status_code=422, detail="Note payload is invalid") from e
            except IncorrectPasswordOrCorruptPayload as e:
                raise HTTPException(status_code=403, detail="Incorrect password") from e
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
        return _note_response(service, owner, note)

    @router.delete("/api/notes/{note_id}")
    async def delete_note(note_id: str, owner: str = Depends(verify_credentials)):
        try:
            service.delete_note(owner, note_id)
        except NoteNotFound as e:
            raise HTTPException(status_code=404, detail="Note not found") from e
        return {"deleted": note_id}

    @router.post("/api/notes/{note_id}/unlock")
    async def unlock_note(
        note_id: str, payload: UnlockRequest, owner: str = Depends(verify_credentials)
    ):
        try:
            plaintext = await run_in_threadpool(
                service.unlock_note, owner, note_id, payload.password
            )
        except NoteNotFound as e:
            raise HTTPException(status_code=404, detail="Note not found") from e
        except MalformedPayload as e:
            logger.error(f"Stored payload of note {note_id} is malformed")
            raise HTTPException(status_code=422, detail="Note payload is invalid") from e
        except IncorrectPasswordOrCorruptPayload as e:
            # Wrong password and corrupted data get the same answer.
            raise HTTPException(status_code=403, detail="Incorrect password") from e
        return service.hydrate(owner, note_id, plaintext).model_dump()

    @router.post("/api/notes/{note_id}/images", response_model=UploadResponse)
    async def upload_images(
        note_id: str,
        files: List[UploadFile] = File(default=[]),  # noqa: B008
        owner: str = Depends(verify_credentials),
    ):
        uploads = [
            UploadedFile(
                filename=file.filename or "upload",
                content=await file.read(),
                content_type=file.content_type or "application/octet-stream",
            )
            for file in files
        ]
        try:
            result = service.upload_images(owner, note_id, uploads)
        except NoteNotFound as e:
            raise HTTPException(status_code=404, detail="Note not found") from e
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return UploadResponse(
            image_paths=result.image_paths,
            image_urls=result.image_urls,
            markers=result.markers,
        )


def _create_object_endpoint(object_store: ObjectStore, max_age: int):
    """Create the signed URL endpoint handler."""

    async def get_object(token: str):
        try:
            path = object_store.verify_token(token)
            stored = object_store.download(path)
        except ExpiredSignedUrl as e:
            raise HTTPException(status_code=410, detail="Signed URL has expired") from e
        except InvalidSignedUrl as e:
            logger.warning("Rejected object request with an invalid signature")
            raise HTTPException(status_code=403, detail="Invalid signed URL") from e
        except KeyError as e:
            raise HTTPException(status_code=404, detail="Object not found") from e

        return Response(
            content=stored.content,
            media_type=stored.content_type,
            headers={"Cache-Control": f"private, max-age={max_age}"},
        )

    return get_object


def get_endpoints_router(
    *,
    service: NoteService,
    object_store: ObjectStore,
    signed_url_ttl: int,
) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health_check():
        return {"status": "healthy"}

    _create_notes_endpoints(router, service)
    router.get("/api/objects/{token}")(_create_object_endpoint(object_store, signed_url_ttl))

    return router
