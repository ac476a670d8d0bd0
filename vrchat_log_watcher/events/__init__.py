"""
Event system for the VRChat log watcher.

Provides the typed payload models and the synchronous event bus that
parsed log lines are published through.
"""

from .base import (
    DerivedEvent,
    DownloadEvent,
    LogEntry,
    PlayerEvent,
    PlayerUser,
    RawLine,
    WorldJoinEvent,
    WorldLeaveEvent,
)
from .bus import EventBus
from .types import EventType, Severity

__all__ = [
    "DerivedEvent",
    "DownloadEvent",
    "EventBus",
    "EventType",
    "LogEntry",
    "PlayerEvent",
    "PlayerUser",
    "RawLine",
    "Severity",
    "WorldJoinEvent",
    "WorldLeaveEvent",
]
