"""
Spaces Uploader.

Uploads large files to S3-compatible object stores (DigitalOcean Spaces by
default) as sequential multipart uploads, with per-part retries and
all-or-nothing completion.
"""

__version__ = "1.0.0"

from spaces_uploader.credentials import KeyManager
from spaces_uploader.uploader import (
    PartUploadError,
    SpacesUploadManager,
    UploadError,
)

__all__ = [
    "KeyManager",
    "PartUploadError",
    "SpacesUploadManager",
    "UploadError",
    "__version__",
]
