"""Parser for VRChat instance location strings.

A location looks like ``wrld_<uuid>:<instance>~<tag>~<tag>...`` where each tag
is either ``name(value)`` or a bare flag, for example::

    wrld_4cf554b4-430c-4f8f-b53e-1f294eed230b:73964~private(usr_c1a8b3e4)~canRequestInvite~region(eu)~nonce(ab12)
"""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

_TAG_RE = re.compile(r"^(?P<name>[A-Za-z]+)(?:\((?P<value>[^()]*)\))?$")


class AccessType(str, Enum):
    """Who may join an instance."""

    PUBLIC = "public"
    FRIENDS_PLUS = "friends+"
    FRIENDS = "friends"
    INVITE_PLUS = "invite+"
    INVITE = "invite"
    GROUP = "group"


class ParsedLocation(BaseModel):
    """Structured form of an instance location string."""

    world_id: str = Field(..., description="World identifier (wrld_...)")
    instance_name: str = Field(..., description="Instance name or number")
    access_type: AccessType = Field(default=AccessType.PUBLIC)
    owner_id: Optional[str] = Field(
        default=None, description="User or group owning the instance"
    )
    region: Optional[str] = None
    group_access_type: Optional[str] = None
    nonce: Optional[str] = None
    strict: bool = False


def parse_location(location: str) -> Optional[ParsedLocation]:
    """Parse a location string, returning None when it is not one."""
    world_id, sep, instance = location.strip().partition(":")
    if not sep or not world_id.startswith("wrld_") or not instance:
        return None

    instance_name, *raw_tags = instance.split("~")
    if not instance_name:
        return None

    tags: dict[str, Optional[str]] = {}
    for raw_tag in raw_tags:
        match = _TAG_RE.match(raw_tag)
        if match is None:
            return None
        tags[match.group("name")] = match.group("value")

    access_type = AccessType.PUBLIC
    owner_id = None
    if "group" in tags:
        access_type = AccessType.GROUP
        owner_id = tags["group"]
    elif "private" in tags:
        access_type = (
            AccessType.INVITE_PLUS if "canRequestInvite" in tags else AccessType.INVITE
        )
        owner_id = tags["private"]
    elif "friends" in tags:
        access_type = AccessType.FRIENDS
        owner_id = tags["friends"]
    elif "hidden" in tags:
        access_type = AccessType.FRIENDS_PLUS
        owner_id = tags["hidden"]

    return ParsedLocation(
        world_id=world_id,
        instance_name=instance_name,
        access_type=access_type,
        owner_id=owner_id,
        region=tags.get("region"),
        group_access_type=tags.get("groupAccessType"),
        nonce=tags.get("nonce"),
        strict="strict" in tags,
    )
