"""Stage 2 parser: derive world, player and download events from LogEntry."""

import re
from typing import Callable, NamedTuple, Optional

from ..events.base import (
    DerivedEvent,
    DownloadEvent,
    LogEntry,
    PlayerEvent,
    PlayerUser,
    WorldJoinEvent,
    WorldLeaveEvent,
)
from ..events.types import EventType, Severity
from ..location import ParsedLocation, parse_location
from ..logger import log_exception

LocationParser = Callable[[str], Optional[ParsedLocation]]

DOWNLOAD_TOPICS = {
    "String Download": EventType.STRING_LOAD,
    "Image Download": EventType.IMAGE_LOAD,
}
BEHAVIOUR_TOPIC = "Behaviour"

DOWNLOAD_PATTERN = re.compile(
    r"^Attempting to load (?:image|String) from URL '(?P<url>[^']+)'"
)
PLAYER_PATTERN = re.compile(
    r"^OnPlayer(?P<action>Joined|Left) (?P<username>.+?)(?: \((?P<user_id>[^()]*)\))?$"
)

JOIN_PREFIX = "Joining "
WORLD_JOIN_PREFIX = JOIN_PREFIX + "wrld_"
WORLD_LEAVE_CONTENT = "Unloading scenes"


class PlayerMatch(NamedTuple):
    event_type: EventType
    user: PlayerUser


def match_download(content: str) -> Optional[str]:
    """Return the URL of a download attempt."""
    match = DOWNLOAD_PATTERN.match(content)
    return match.group("url") if match else None


def match_world_join(content: str) -> Optional[str]:
    """Return the location string of a world join."""
    if not content.startswith(WORLD_JOIN_PREFIX):
        return None
    return content[len(JOIN_PREFIX) :]


def is_world_leave(content: str) -> bool:
    return content == WORLD_LEAVE_CONTENT


def match_player_event(content: str) -> Optional[PlayerMatch]:
    """Return the event type and user of an OnPlayerJoined/OnPlayerLeft line."""
    if not content.startswith(("OnPlayerJoined ", "OnPlayerLeft ")):
        return None
    match = PLAYER_PATTERN.match(content)
    if not match:
        return None

    event_type = (
        EventType.PLAYER_JOINED
        if match.group("action") == "Joined"
        else EventType.PLAYER_LEFT
    )
    return PlayerMatch(
        event_type=event_type,
        user=PlayerUser(
            username=match.group("username"),
            user_id=match.group("user_id") or None,
        ),
    )


class SpecialEventExtractor:
    """Derives at most one event from a LogEntry, first matching rule wins."""

    def __init__(self, location_parser: LocationParser = parse_location):
        """Initialize extractor.

        Args:
            location_parser: Turns a location string into a ParsedLocation,
                or None when it cannot be parsed
        """
        self.location_parser = location_parser

    def extract(self, entry: LogEntry) -> Optional[DerivedEvent]:
        if entry.severity != Severity.DEBUG or entry.content is None:
            return None

        topic, content = entry.topic, entry.content

        if topic in DOWNLOAD_TOPICS:
            url = match_download(content)
            if url is not None:
                return DownloadEvent.from_entry(
                    entry, event_type=DOWNLOAD_TOPICS[topic], url=url
                )

        if topic != BEHAVIOUR_TOPIC:
            return None

        location = match_world_join(content)
        if location is not None:
            return WorldJoinEvent.from_entry(
                entry, location=location, instance=self._parse_location(location)
            )

        if is_world_leave(content):
            return WorldLeaveEvent.from_entry(entry)

        player = match_player_event(content)
        if player is not None:
            return PlayerEvent.from_entry(
                entry, event_type=player.event_type, user=player.user
            )

        return None

    @log_exception("Location parser failed for {location}")
    def _parse_location(self, location: str) -> Optional[ParsedLocation]:
        return self.location_parser(location)
