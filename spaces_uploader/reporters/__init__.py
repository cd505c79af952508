"""Reporter modules for rendering upload events."""

from .base import UploadReporter
from .console import ConsoleReporter
from .json_reporter import JsonReporter

__all__ = ["UploadReporter", "ConsoleReporter", "JsonReporter"]
