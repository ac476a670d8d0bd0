"""Event payload models."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..location import ParsedLocation
from .types import EventType, Severity


class RawLine(BaseModel):
    """Payload of the raw event: one tailed line before parsing."""

    model_config = ConfigDict(frozen=True)

    line: str
    log_file: Optional[Path] = Field(default=None, description="File being tailed")
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LogEntry(BaseModel):
    """A classified log line."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(..., description="Time written in the log line")
    severity: Union[Severity, str] = Field(
        ..., description="Known severity, or the lower-cased word when unknown"
    )
    payload: str = Field(..., description="Trimmed text after the severity")
    topic: Optional[str] = Field(default=None, description="Bracketed topic")
    content: Optional[str] = Field(default=None, description="Text after the topic")

    @field_validator("severity")
    @classmethod
    def _coerce_severity(cls, value: Union[Severity, str]) -> Union[Severity, str]:
        try:
            return Severity(value)
        except ValueError:
            return value

    @model_validator(mode="after")
    def _check_topic_content(self) -> "LogEntry":
        if (self.topic is None) != (self.content is None):
            raise ValueError("topic and content must be set together")
        return self


class DerivedEvent(LogEntry):
    """A LogEntry recognised as a higher level event."""

    event_type: EventType

    @classmethod
    def from_entry(cls, entry: LogEntry, **fields):
        return cls(**entry.model_dump(), **fields)


class DownloadEvent(DerivedEvent):
    """Fired when a string or image download starts."""

    event_type: Literal[EventType.STRING_LOAD, EventType.IMAGE_LOAD]
    url: str = Field(..., description="Requested URL")


class WorldJoinEvent(DerivedEvent):
    """Fired when the local user starts joining a world instance."""

    event_type: Literal[EventType.JOIN] = EventType.JOIN
    location: str = Field(..., description="Raw location string")
    instance: Optional[ParsedLocation] = Field(
        default=None, description="Parsed location, None when unparseable"
    )


class WorldLeaveEvent(DerivedEvent):
    """Fired when the current world is unloaded."""

    event_type: Literal[EventType.LEAVE] = EventType.LEAVE


class PlayerUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    user_id: Optional[str] = None


class PlayerEvent(DerivedEvent):
    """Fired when a player joins or leaves the current instance."""

    event_type: Literal[EventType.PLAYER_JOINED, EventType.PLAYER_LEFT]
    user: PlayerUser


# Payload class accepted by each event type
PAYLOAD_TYPES: dict[EventType, type[BaseModel]] = {
    EventType.RAW: RawLine,
    EventType.DATA: LogEntry,
    EventType.DEBUG: LogEntry,
    EventType.WARNING: LogEntry,
    EventType.ERR: LogEntry,
    EventType.STRING_LOAD: DownloadEvent,
    EventType.IMAGE_LOAD: DownloadEvent,
    EventType.JOIN: WorldJoinEvent,
    EventType.LEAVE: WorldLeaveEvent,
    EventType.PLAYER_JOINED: PlayerEvent,
    EventType.PLAYER_LEFT: PlayerEvent,
}
