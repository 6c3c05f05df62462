from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Basic auth settings
    auth_username: str
    auth_password: str

    # Signed URL settings
    url_signing_secret: str = "your-super-secret-signing-key-change-in-production"
    signed_url_ttl_seconds: int = 60 * 60
    public_base_url: str = ""

    # Storage settings
    local_note_store_path: str = "data/notes.json"
    local_object_store_path: str = "data/objects.json"

    # Encryption settings
    kdf_iterations: int = 100_000
    cipher_scheme: Literal["cbc", "gcm"] = "cbc"

    log_level: str = "INFO"  # Can be DEBUG, INFO, WARNING, ERROR, CRITICAL


settings = Settings()  # type: ignore
