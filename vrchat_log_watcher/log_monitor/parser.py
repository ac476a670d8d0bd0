"""Stage 1 parser: raw VRChat log lines to LogEntry."""

import re
from datetime import datetime
from typing import NamedTuple, Optional, Union

from ..events.base import LogEntry
from ..events.types import Severity

# 2023.01.01 12:00:00 Debug      -  [Behaviour] OnPlayerJoined Alice (usr_123)
LINE_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}\.\d{2}\.\d{2} \d{2}:\d{2}:\d{2}) "
    r"(?P<severity>[A-Za-z]+)\s+-\s+(?P<payload>.*)$"
)

# [String Download] Attempting to load String from URL '...'
TOPIC_PATTERN = re.compile(r"^\[(?P<topic>[A-Za-z0-9 ]+)\] (?P<content>.+)$")

TIMESTAMP_FORMAT = "%Y.%m.%d %H:%M:%S"


class LineMatch(NamedTuple):
    timestamp: str
    severity: str
    payload: str


def match_line(line: str) -> Optional[LineMatch]:
    """Split a line into timestamp, severity word and payload text."""
    match = LINE_PATTERN.match(line)
    if not match:
        return None
    return LineMatch(
        timestamp=match.group("timestamp"),
        severity=match.group("severity"),
        payload=match.group("payload"),
    )


def parse_timestamp(text: str) -> Optional[datetime]:
    """Parse ``YYYY.MM.DD HH:MM:SS`` as naive local time."""
    try:
        return datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError:
        return None


def normalize_severity(word: str) -> Union[Severity, str]:
    """Map a severity word to Severity, passing unknown words through lower-cased."""
    word = word.lower()
    if word == "error":
        return Severity.ERROR
    try:
        return Severity(word)
    except ValueError:
        return word


def split_topic(payload: str) -> Optional[tuple[str, str]]:
    """Split ``[Topic] content`` into (topic, content)."""
    match = TOPIC_PATTERN.match(payload)
    if not match:
        return None
    return match.group("topic"), match.group("content")


def classify_line(line: str) -> Optional[LogEntry]:
    """Parse a raw line, returning None for anything that is not a log entry."""
    parts = match_line(line)
    if parts is None:
        return None

    timestamp = parse_timestamp(parts.timestamp)
    payload = parts.payload.strip()
    if timestamp is None or not payload:
        return None

    topic = content = None
    split = split_topic(payload)
    if split is not None:
        topic, content = split

    return LogEntry(
        timestamp=timestamp,
        severity=normalize_severity(parts.severity),
        payload=payload,
        topic=topic,
        content=content,
    )


class LineClassifier:
    """Turns raw lines into LogEntry objects."""

    def classify(self, line: str) -> Optional[LogEntry]:
        return classify_line(line)
