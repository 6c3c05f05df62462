from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from notevault.api.endpoints import get_endpoints_router
from notevault.config import settings
from notevault.crypto.cipher import Cipher
from notevault.note_store.base import NoteStore
from notevault.object_store.base import ObjectStore
from notevault.services.notes import NoteService


def create_app(
    *,
    note_store: NoteStore,
    object_store: ObjectStore,
    cipher: Cipher | None = None,
    autosave: bool = False,
) -> FastAPI:
    """Create FastAPI app."""
    app = FastAPI()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    service = NoteService(
        note_store=note_store,
        object_store=object_store,
        cipher=cipher or Cipher(iterations=settings.kdf_iterations, scheme=settings.cipher_scheme),
        signed_url_ttl=settings.signed_url_ttl_seconds,
        autosave=autosave,
    )
    app.include_router(
        router=get_endpoints_router(
            service=service,
            object_store=object_store,
            signed_url_ttl=settings.signed_url_ttl_seconds,
        )
    )

    return app
