"""Test cases for deriving special events from classified entries."""

from datetime import datetime

import pytest

from vrchat_log_watcher.events.base import (
    DownloadEvent,
    LogEntry,
    PlayerEvent,
    WorldJoinEvent,
    WorldLeaveEvent,
)
from vrchat_log_watcher.events.types import EventType, Severity
from vrchat_log_watcher.location import AccessType, ParsedLocation
from vrchat_log_watcher.log_monitor.extractor import (
    SpecialEventExtractor,
    is_world_leave,
    match_download,
    match_player_event,
    match_world_join,
)
from vrchat_log_watcher.log_monitor.parser import classify_line


def make_entry(topic, content, severity=Severity.DEBUG) -> LogEntry:
    return LogEntry(
        timestamp=datetime(2023, 1, 2, 13, 14, 15),
        severity=severity,
        payload=f"[{topic}] {content}",
        topic=topic,
        content=content,
    )


@pytest.fixture
def extractor():
    return SpecialEventExtractor()


class TestContentPatterns:
    """Test each content pattern on its own."""

    def test_match_download(self):
        assert (
            match_download("Attempting to load String from URL 'http://x/y'")
            == "http://x/y"
        )
        assert (
            match_download("Attempting to load image from URL 'https://a.b/c.png'")
            == "https://a.b/c.png"
        )
        assert match_download("Attempting to load video from URL 'http://x'") is None

    def test_match_world_join(self):
        assert match_world_join("Joining wrld_abc:123") == "wrld_abc:123"
        assert match_world_join("Joining or Creating Room: Home") is None

    def test_is_world_leave(self):
        assert is_world_leave("Unloading scenes")
        assert not is_world_leave("Unloading scenes now")

    def test_match_player_event_with_user_id(self):
        match = match_player_event("OnPlayerJoined Alice (usr_123)")

        assert match is not None
        assert match.event_type == EventType.PLAYER_JOINED
        assert match.user.username == "Alice"
        assert match.user.user_id == "usr_123"

    def test_match_player_event_without_user_id(self):
        match = match_player_event("OnPlayerLeft Bob")

        assert match is not None
        assert match.event_type == EventType.PLAYER_LEFT
        assert match.user.username == "Bob"
        assert match.user.user_id is None

    def test_match_player_event_name_with_spaces(self):
        match = match_player_event("OnPlayerJoined Some Body (usr_9)")

        assert match.user.username == "Some Body"
        assert match.user.user_id == "usr_9"

    def test_match_player_event_other_content(self):
        assert match_player_event("OnPlayerJoinComplete Alice") is None


class TestDownloadEvents:
    def test_string_download(self, extractor):
        event = extractor.extract(
            make_entry(
                "String Download", "Attempting to load String from URL 'http://x/y'"
            )
        )

        assert isinstance(event, DownloadEvent)
        assert event.event_type == EventType.STRING_LOAD
        assert event.url == "http://x/y"
        assert event.topic == "String Download"
        assert event.severity is Severity.DEBUG

    def test_image_download(self, extractor):
        event = extractor.extract(
            make_entry(
                "Image Download",
                "Attempting to load image from URL 'https://img.example/a.png'",
            )
        )

        assert isinstance(event, DownloadEvent)
        assert event.event_type == EventType.IMAGE_LOAD
        assert event.url == "https://img.example/a.png"

    def test_download_from_real_line(self, extractor):
        entry = classify_line(
            "2023.01.02 13:14:15 Debug      -  [String Download] "
            "Attempting to load String from URL 'https://pastebin.com/raw/abc'"
        )

        event = extractor.extract(entry)

        assert event.event_type == EventType.STRING_LOAD
        assert event.url == "https://pastebin.com/raw/abc"


class TestWorldEvents:
    def test_world_join(self, extractor):
        event = extractor.extract(
            make_entry("Behaviour", "Joining wrld_abc:12345~region(eu)")
        )

        assert isinstance(event, WorldJoinEvent)
        assert event.event_type == EventType.JOIN
        assert event.location == "wrld_abc:12345~region(eu)"
        assert event.instance == ParsedLocation(
            world_id="wrld_abc",
            instance_name="12345",
            access_type=AccessType.PUBLIC,
            region="eu",
        )

    def test_world_join_unparseable_location(self, extractor):
        event = extractor.extract(make_entry("Behaviour", "Joining wrld_abc"))

        assert isinstance(event, WorldJoinEvent)
        assert event.instance is None

    def test_world_join_with_injected_parser(self):
        seen = []

        def location_parser(location):
            seen.append(location)
            return None

        extractor = SpecialEventExtractor(location_parser=location_parser)
        event = extractor.extract(make_entry("Behaviour", "Joining wrld_x:1"))

        assert seen == ["wrld_x:1"]
        assert event.instance is None

    def test_world_join_parser_failure_is_logged(self, caplog):
        def location_parser(location):
            raise RuntimeError("boom")

        extractor = SpecialEventExtractor(location_parser=location_parser)
        event = extractor.extract(make_entry("Behaviour", "Joining wrld_x:1"))

        assert isinstance(event, WorldJoinEvent)
        assert event.instance is None
        assert "Location parser failed for wrld_x:1" in caplog.text

    def test_world_leave(self, extractor):
        event = extractor.extract(make_entry("Behaviour", "Unloading scenes"))

        assert isinstance(event, WorldLeaveEvent)
        assert event.event_type == EventType.LEAVE


class TestPlayerEvents:
    def test_player_joined_with_id(self, extractor):
        event = extractor.extract(
            make_entry("Behaviour", "OnPlayerJoined Alice (usr_123)")
        )

        assert isinstance(event, PlayerEvent)
        assert event.event_type == EventType.PLAYER_JOINED
        assert event.user.model_dump(exclude_none=True) == {
            "username": "Alice",
            "user_id": "usr_123",
        }

    def test_player_joined_without_id(self, extractor):
        event = extractor.extract(make_entry("Behaviour", "OnPlayerJoined Bob"))

        assert event.event_type == EventType.PLAYER_JOINED
        assert event.user.model_dump(exclude_none=True) == {"username": "Bob"}

    def test_player_left(self, extractor):
        event = extractor.extract(
            make_entry("Behaviour", "OnPlayerLeft Alice (usr_123)")
        )

        assert event.event_type == EventType.PLAYER_LEFT
        assert event.user.username == "Alice"


class TestNoEvent:
    @pytest.mark.parametrize(
        "severity", [Severity.WARNING, Severity.ERROR, "log"]
    )
    def test_only_debug_entries_are_eligible(self, extractor, severity):
        entry = make_entry("Behaviour", "OnPlayerJoined Alice", severity=severity)

        assert extractor.extract(entry) is None

    def test_entry_without_topic(self, extractor):
        entry = classify_line("2023.01.02 13:14:15 Debug - Unloading scenes")

        assert extractor.extract(entry) is None

    def test_unknown_topic(self, extractor):
        assert extractor.extract(make_entry("Network", "Unloading scenes")) is None

    def test_download_topic_with_other_content(self, extractor):
        entry = make_entry("Image Download", "Finished loading image")

        assert extractor.extract(entry) is None

    def test_behaviour_with_other_content(self, extractor):
        entry = make_entry("Behaviour", "Entering Room: Home")

        assert extractor.extract(entry) is None
