"""Event type definitions."""

from enum import Enum


class EventType(str, Enum):
    """Every event name published by the log watcher."""

    # Every tailed line, unparsed
    RAW = "raw"

    # Every classified line
    DATA = "data"

    # One event per known severity
    DEBUG = "debug"
    WARNING = "warning"
    ERR = "err"

    # Derived events
    STRING_LOAD = "stringLoad"
    IMAGE_LOAD = "imageLoad"
    JOIN = "join"
    LEAVE = "leave"
    PLAYER_JOINED = "playerJoined"
    PLAYER_LEFT = "playerLeft"


class Severity(str, Enum):
    """Normalized severity of a log line."""

    DEBUG = "debug"
    WARNING = "warning"
    ERROR = "err"


SEVERITY_EVENTS: dict[Severity, EventType] = {
    Severity.DEBUG: EventType.DEBUG,
    Severity.WARNING: EventType.WARNING,
    Severity.ERROR: EventType.ERR,
}
