"""Shared request dependencies."""

from typing import Annotated, Optional
from fastapi import Header


async def get_acting_member_id(
    x_member_id: Annotated[Optional[str], Header()] = None
) -> Optional[str]:
    """
    The member on whose behalf the request is made, taken from X-Member-Id.

    Recorded as the creator of expenses and settlement records. Identity is
    established upstream; nothing is verified here.
    """
    if x_member_id is None:
        return None
    return x_member_id.strip() or None
