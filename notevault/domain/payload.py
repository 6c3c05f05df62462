"""Sealed payload domain model."""

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LEGACY_VERSION = 1
AEAD_VERSION = 2
DEFAULT_ITERATIONS = 100_000
MAX_ITERATIONS = 10_000_000


class SealedPayload(BaseModel):
    """Password-protected note body as persisted.

    Attributes:
        ct: Ciphertext, base64 encoded.
        iv: Initialization vector (or GCM nonce), hex encoded.
        s: PBKDF2 salt, hex encoded.
        v: Scheme version. Absent on legacy AES-CBC payloads.
        i: PBKDF2 iteration count. Absent when it is the default of 100,000.
    """

    model_config = ConfigDict(frozen=True)

    ct: str = Field(min_length=1)
    iv: str = Field(min_length=1)
    s: str = Field(min_length=1)
    v: Literal[1, 2] | None = None
    i: int | None = Field(default=None, ge=1, le=MAX_ITERATIONS)

    @property
    def version(self) -> int:
        return self.v or LEGACY_VERSION

    @property
    def iterations(self) -> int:
        return self.i or DEFAULT_ITERATIONS

    def to_json(self) -> str:
        """Serialize to the compact JSON string stored as note content."""
        return json.dumps(self.model_dump(exclude_none=True), separators=(",", ":"))
