"""
Display utilities for member names
"""
from typing import Optional

import models


def get_member_display_name(member: Optional[models.GroupMember]) -> str:
    """
    Get the display name for a group member.
    Placeholder (dummy) members are marked so they are not mistaken for a
    joined person. Ids no longer on the roster fall back to a generic label.

    Args:
        member: The GroupMember row, or None if the id is not on the roster

    Returns:
        Display name string
    """
    if not member:
        return "Unknown Member"

    base_name = (member.name or "").strip() or "Member"

    if member.kind == "dummy":
        return f"{base_name} (dummy)"

    return base_name
