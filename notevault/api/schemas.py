from typing import List, Optional

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str
    content: str = ""
    protected: bool = False
    password: Optional[str] = None


class NoteUpdate(BaseModel):
    title: str
    content: str
    protected: bool
    password: Optional[str] = Field(
        default=None, description="New password to seal the note with"
    )
    unlock_password: Optional[str] = Field(
        default=None, description="Password the note was unlocked with in this editing session"
    )


class UnlockRequest(BaseModel):
    password: str


class UploadResponse(BaseModel):
    image_paths: List[str]
    image_urls: List[str]
    markers: str
