"""Stored object domain models."""

import base64
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, PlainSerializer


class StoredObject(BaseModel):
    """Represents an uploaded file held by the object store.

    Attributes:
        path: The permanent path identifier of the object.
        content: The object bytes, encoded as base64 when serialized.
        content_type: The MIME type given at upload time.
    """

    path: str
    content: Annotated[
        bytes,
        BeforeValidator(lambda x: base64.b64decode(x) if isinstance(x, str) else x),
        PlainSerializer(lambda x: base64.b64encode(x).decode(), return_type=str),
    ]
    content_type: str = "application/octet-stream"
