"""Data models for the uploader."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SessionState(Enum):
    """Lifecycle state of a multipart upload session."""

    INITIATED = "initiated"
    UPLOADING = "uploading"
    COMPLETING = "completing"
    COMPLETED = "completed"
    ABORTING = "aborting"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.ABORTED)


@dataclass(frozen=True)
class UploadTarget:
    """Where an upload session writes its object."""

    space_name: str
    endpoint_url: str
    key: str
    content_type: str


@dataclass(frozen=True)
class PartDescriptor:
    """A contiguous byte range of the source file uploaded as one part."""

    part_number: int
    offset: int
    length: int
    is_last_part: bool

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class UploadStatus:
    """Progress snapshot emitted by the upload coordinator."""

    part_number: int
    estimated_parts: int
    bytes_uploaded: int
    total_bytes: int


@dataclass(frozen=True)
class UploadFailure:
    """Informational failure event; carries no control-flow meaning."""

    message: str
    exception: Optional[BaseException] = None


@dataclass
class UploadResult:
    """Summary of a finished upload, as rendered by reporters."""

    upload_id: str
    key: str
    space_name: str
    parts: int
    total_bytes: int
    duration_seconds: float = 0.0
