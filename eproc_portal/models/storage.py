# eproc_portal/models/storage.py

from typing import List, Optional

from pydantic import BaseModel, Field


class UploadResult(BaseModel):
    path: str = Field(..., description="Object key inside the documents bucket.")
    signed_url: str = Field(..., description="Time-limited retrieval URL.")


class SignedUrlRequest(BaseModel):
    path: str = Field(..., min_length=1)
    expires_in: Optional[int] = Field(None, ge=1, le=60 * 60 * 24 * 7, description="Lifetime in seconds.")


class SignedUrlResponse(BaseModel):
    signed_url: str


class DeleteFileRequest(BaseModel):
    path: str = Field(..., min_length=1)


class FileListResponse(BaseModel):
    folder: str
    paths: List[str] = Field(default_factory=list)
