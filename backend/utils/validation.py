"""Validation utilities for group lookups, member references and dates."""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session

import models
from utils.errors import NotFoundError, ValidationError


def get_group_or_404(db: Session, group_id: int) -> models.Group:
    """Get a group by ID or raise NotFoundError."""
    group = db.query(models.Group).filter(models.Group.id == group_id).first()
    if not group:
        raise NotFoundError("Group not found")
    return group


def get_group_members(db: Session, group_id: int) -> dict[str, models.GroupMember]:
    """Member registry for a group, keyed by member id in roster order."""
    members = db.query(models.GroupMember).filter(
        models.GroupMember.group_id == group_id
    ).order_by(models.GroupMember.id).all()
    return {m.member_id: m for m in members}


def verify_group_members(db: Session, group_id: int, member_ids: Iterable[str], role: str = "Member") -> None:
    """Raise ValidationError if any id is not on the group's roster."""
    roster = get_group_members(db, group_id)
    for member_id in member_ids:
        if member_id not in roster:
            raise ValidationError(f"{role} with ID {member_id} is not a member of this group")


def normalize_date(date_str: Optional[str]) -> str:
    """Normalize date string to YYYY-MM-DD format, defaulting to today."""
    if not date_str:
        return date.today().isoformat()
    # If it's already YYYY-MM-DD format, return as-is
    if len(date_str) == 10 and date_str[4] == '-' and date_str[7] == '-':
        return date_str
    # Handle ISO format with time component (e.g., 2025-12-27T00:00:00.000Z)
    if 'T' in date_str:
        return date_str.split('T')[0]
    return date_str
