"""Core models for request/response handling."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from toolkit.core.errors import ToolkitError


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    PYDANTIC = "pydantic"
    JSONABLE = "jsonable"


class UploadFile:
    """Container for uploaded files from multipart/form-data requests."""

    __slots__ = ("files",)

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = files or {}

    def __bool__(self) -> bool:
        return bool(self.files)

    def __iter__(self):
        return iter(self.files.items())

    def get(self, name: str) -> bytes | None:
        """Get file bytes by client filename."""
        return self.files.get(name)

    def keys(self) -> list[str]:
        """Get all client filenames."""
        return list(self.files.keys())


class UploadedFile(BaseModel):
    """A multipart part persisted to disk."""

    model_config = ConfigDict(frozen=True)

    new_name: str
    original_name: str
    size_bytes: int = Field(ge=0)
    content_type: str


@dataclass(frozen=True, slots=True)
class UploadBatch:
    """Files stored by one upload call plus the error that stopped it, if any.

    ``files`` keeps everything written before a failure so callers can decide
    whether to retain or delete it.
    """

    files: list[UploadedFile] = field(default_factory=list)
    error: ToolkitError | OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class JSONEnvelope(BaseModel):
    """Uniform response wrapper. ``error`` is True when the request failed."""

    error: bool = False
    message: str = ""
    data: Any = None

    def to_payload(self) -> dict[str, Any]:
        """Wire representation, ``data`` omitted when absent."""
        payload: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload
