"""
Pydantic models for archived images and remote files.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class RemoteFile(BaseModel):
    """A file entry in the store, with its optimistic-concurrency token."""
    name: str
    path: str
    sha: str
    size: int = 0


class ImageArchiveEntry(BaseModel):
    """An original upload kept alongside the derived drawing."""
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    path: str
    raw_url: str = Field(..., alias="rawUrl")


class ArchivedImageListing(BaseModel):
    """One row of GET /images."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    path: str
    size: int
    raw_url: str = Field(..., alias="rawUrl")
    sha: Optional[str] = None
