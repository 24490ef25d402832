"""
Core Utilities

Shared helpers used across the application.
"""
import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a string UUID4 for primary keys and session tokens."""
    return str(uuid.uuid4())
