"""Tests for events.py module."""

from spaces_uploader.events import EventChannel
from spaces_uploader.models import UploadStatus


class TestEventChannel:
    """Tests for EventChannel."""

    def test_emit_without_subscribers_is_noop(self):
        channel = EventChannel("progress")

        channel.emit(UploadStatus(0, 1, 0, 10))

        assert len(channel) == 0

    def test_delivers_to_every_subscriber_in_order(self):
        channel = EventChannel("progress")
        first, second = [], []
        channel.subscribe(first.append)
        channel.subscribe(second.append)

        for n in range(3):
            channel.emit(n)

        assert first == [0, 1, 2]
        assert second == [0, 1, 2]

    def test_subscribe_as_decorator(self):
        channel = EventChannel("failure")
        seen = []

        @channel.subscribe
        def handler(event):
            seen.append(event)

        channel.emit("x")

        assert seen == ["x"]

    def test_unsubscribe(self):
        channel = EventChannel("progress")
        seen = []
        channel.subscribe(seen.append)
        channel.unsubscribe(seen.append)

        channel.emit(1)

        assert seen == []

    def test_unsubscribe_unknown_handler_is_ignored(self):
        channel = EventChannel("progress")

        channel.unsubscribe(print)

    def test_raising_handler_does_not_stop_others(self):
        channel = EventChannel("progress")
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        channel.subscribe(broken)
        channel.subscribe(seen.append)

        channel.emit(1)

        assert seen == [1]
