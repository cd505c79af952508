"""Tests for data models."""

import dataclasses

import pytest
from spaces_uploader.models import (
    PartDescriptor,
    SessionState,
    UploadFailure,
    UploadResult,
    UploadStatus,
    UploadTarget,
)


class TestSessionState:
    """Tests for SessionState enum."""

    def test_state_values(self):
        assert [s.value for s in SessionState] == [
            "initiated",
            "uploading",
            "completing",
            "completed",
            "aborting",
            "aborted",
        ]

    def test_terminal_states(self):
        terminal = {s for s in SessionState if s.is_terminal}
        assert terminal == {SessionState.COMPLETED, SessionState.ABORTED}


class TestUploadTarget:
    """Tests for UploadTarget dataclass."""

    def test_is_immutable(self):
        target = UploadTarget("space", "https://nyc3.digitaloceanspaces.com", "key", "text/plain")

        with pytest.raises(dataclasses.FrozenInstanceError):
            target.key = "other"


class TestPartDescriptor:
    """Tests for PartDescriptor dataclass."""

    def test_end(self):
        assert PartDescriptor(2, 6, 4, True).end == 10

    def test_is_immutable(self):
        part = PartDescriptor(1, 0, 4, False)

        with pytest.raises(dataclasses.FrozenInstanceError):
            part.length = 5


class TestEvents:
    """Tests for event dataclasses."""

    def test_upload_status_equality(self):
        assert UploadStatus(1, 2, 3, 4) == UploadStatus(1, 2, 3, 4)

    def test_failure_exception_optional(self):
        failure = UploadFailure("aborted")

        assert failure.exception is None

    def test_upload_result_default_duration(self):
        result = UploadResult("id", "key", "space", 1, 10)

        assert result.duration_seconds == 0.0
