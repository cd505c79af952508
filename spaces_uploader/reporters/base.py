"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spaces_uploader.models import UploadFailure, UploadResult, UploadStatus


class UploadReporter(ABC):
    """Abstract base class for upload event reporters."""

    @abstractmethod
    def on_progress(self, status: "UploadStatus") -> None:
        """Called before the first part and after each completed part."""
        pass

    @abstractmethod
    def on_failure(self, failure: "UploadFailure") -> None:
        """Called for each failed attempt and when a session is aborted."""
        pass

    @abstractmethod
    def on_upload_complete(self, result: "UploadResult") -> None:
        """Called when an upload finished successfully."""
        pass

    @abstractmethod
    def on_cleanup_complete(self, space_name: str, aborted: int) -> None:
        """Called when stale uploads have been cleaned up."""
        pass
