import sys

from loguru import logger

from notevault.api import create_app
from notevault.config import settings
from notevault.note_store.local import LocalNoteStore
from notevault.object_store.local import LocalObjectStore

logger.configure(handlers=[{"sink": sys.stderr, "level": settings.log_level}])

logger.info(f"Loading notes from {settings.local_note_store_path}")
note_store = LocalNoteStore(settings.local_note_store_path)
object_store = LocalObjectStore(
    settings.local_object_store_path,
    signing_secret=settings.url_signing_secret,
    base_url=settings.public_base_url,
)
app = create_app(note_store=note_store, object_store=object_store, autosave=True)
