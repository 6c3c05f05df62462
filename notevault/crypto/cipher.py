"""Password-based encryption of note bodies.

A body is sealed with a key derived from the note password through
PBKDF2-HMAC-SHA256 using a fresh random salt, then encrypted with AES-256 under
a fresh random IV. The salt and IV travel with the ciphertext in a
:class:`SealedPayload`, so nothing but the password is needed to open it again.

Two schemes are supported:

* ``cbc`` (version 1): AES-CBC with PKCS#7 padding. This is the legacy wire
  format ``{"ct", "iv", "s"}``. It has no authentication tag, so a wrong password
  and a tampered ciphertext both surface as
  :class:`IncorrectPasswordOrCorruptPayload`.
* ``gcm`` (version 2): AES-GCM with a 12-byte nonce stored in ``iv``. Tag
  verification failures raise :class:`AuthenticationFailed`.

A payload sealed with a non-default iteration count records it in ``i``;
opening always uses the count stored with the payload.
"""

import base64
import binascii
import json
import os
from typing import Literal

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher as _AESCipher
from cryptography.hazmat.primitives.ciphers import algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from loguru import logger
from pydantic import ValidationError

from notevault.domain.payload import (
    AEAD_VERSION,
    DEFAULT_ITERATIONS,
    MAX_ITERATIONS,
    SealedPayload,
)
from notevault.exceptions import (
    AuthenticationFailed,
    EmptyPassword,
    IncorrectPasswordOrCorruptPayload,
    MalformedPayload,
)

KDF_ITERATIONS = DEFAULT_ITERATIONS
KEY_LENGTH = 32
SALT_LENGTH = 16
IV_LENGTH = 16
NONCE_LENGTH = 12

Scheme = Literal["cbc", "gcm"]


def derive_key(password: str, salt: bytes, iterations: int = KDF_ITERATIONS) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


def parse_payload(value: str | SealedPayload) -> SealedPayload:
    """Parse the stored form of a sealed payload.

    Raises:
        MalformedPayload: If the value is not JSON or lacks a non-empty
            ``ct``, ``iv`` or ``s`` field.
    """
    if isinstance(value, SealedPayload):
        return value
    try:
        data = json.loads(value)
    except (TypeError, ValueError) as e:
        raise MalformedPayload("Payload is not valid JSON") from e
    if not isinstance(data, dict):
        raise MalformedPayload("Payload must be a JSON object")
    try:
        return SealedPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedPayload("Payload is missing ct, iv or s, or has invalid fields") from e


def is_sealed(value: str) -> bool:
    """Best-effort check that a string holds a sealed payload.

    Only decides whether opening is worth attempting; it does not validate the
    field encodings.
    """
    try:
        data = json.loads(value)
    except (TypeError, ValueError):
        return False
    if not isinstance(data, dict):
        return False
    return all(isinstance(data.get(k), str) and data[k] for k in ("ct", "iv", "s"))


class Cipher:
    """Seals and opens note bodies with a password."""

    def __init__(self, iterations: int = KDF_ITERATIONS, scheme: Scheme = "cbc") -> None:
        if scheme not in ("cbc", "gcm"):
            raise ValueError(f"Unknown cipher scheme: {scheme}")
        if not 1 <= iterations <= MAX_ITERATIONS:
            raise ValueError(f"Iteration count out of range: {iterations}")
        self.iterations = iterations
        self.scheme = scheme

    def seal(self, plaintext: str, password: str) -> SealedPayload:
        """Encrypt ``plaintext`` with a key derived from ``password``.

        Every call draws a new salt and IV, so sealing the same text twice with
        the same password yields different payloads.

        Raises:
            EmptyPassword: If ``password`` is empty.
        """
        if not password:
            raise EmptyPassword("A password is required to seal a note")

        salt = os.urandom(SALT_LENGTH)
        key = derive_key(password, salt, self.iterations)
        data = plaintext.encode("utf-8")

        if self.scheme == "gcm":
            iv = os.urandom(NONCE_LENGTH)
            ciphertext = AESGCM(key).encrypt(iv, data, None)
            version: int | None = AEAD_VERSION
        else:
            iv = os.urandom(IV_LENGTH)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(data) + padder.finalize()
            encryptor = _AESCipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
            version = None

        logger.debug(f"Sealed {len(data)} bytes with scheme {self.scheme}")
        return SealedPayload(
            ct=base64.b64encode(ciphertext).decode("ascii"),
            iv=iv.hex(),
            s=salt.hex(),
            v=version,
            i=None if self.iterations == KDF_ITERATIONS else self.iterations,
        )

    def open(self, payload: str | SealedPayload, password: str) -> str:
        """Decrypt a sealed payload back to its plaintext.

        Args:
            payload: A :class:`SealedPayload` or its JSON string form.
            password: The password the payload was sealed with.

        Raises:
            MalformedPayload: If the payload is structurally invalid.
            IncorrectPasswordOrCorruptPayload: If the password is wrong or the
                ciphertext was damaged.
            AuthenticationFailed: For authenticated payloads whose tag does not
                verify. Subclass of ``IncorrectPasswordOrCorruptPayload``.
        """
        sealed = parse_payload(payload)
        try:
            ciphertext = base64.b64decode(sealed.ct, validate=True)
            iv = bytes.fromhex(sealed.iv)
            salt = bytes.fromhex(sealed.s)
        except (binascii.Error, ValueError) as e:
            raise MalformedPayload("Payload fields are not correctly encoded") from e

        expected_iv = NONCE_LENGTH if sealed.version == AEAD_VERSION else IV_LENGTH
        if len(iv) != expected_iv or not salt or not ciphertext:
            raise MalformedPayload("Payload fields have invalid lengths")

        key = derive_key(password, salt, sealed.iterations)
        if sealed.version == AEAD_VERSION:
            try:
                data = AESGCM(key).decrypt(iv, ciphertext, None)
            except InvalidTag as e:
                logger.warning("Authenticated payload failed verification")
                raise AuthenticationFailed("Incorrect password") from e
        else:
            data = self._decrypt_cbc(key, iv, ciphertext)

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IncorrectPasswordOrCorruptPayload("Incorrect password") from e

    @staticmethod
    def _decrypt_cbc(key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
        try:
            decryptor = _AESCipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise IncorrectPasswordOrCorruptPayload("Incorrect password") from e


_default_cipher = Cipher()


def seal(plaintext: str, password: str) -> SealedPayload:
    """Seal with the default legacy scheme."""
    return _default_cipher.seal(plaintext, password)


def open_payload(payload: str | SealedPayload, password: str) -> str:
    """Open a payload with the iteration count recorded in it."""
    return _default_cipher.open(payload, password)

