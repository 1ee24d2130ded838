"""Shared model types"""
from datetime import datetime, timezone
from typing import Union
from uuid import uuid4

# Typed extension map for free-form side-channel data on activities/achievements
MetadataValue = Union[str, int, float, bool, None]
Metadata = dict[str, MetadataValue]


def new_id() -> str:
    """Generate a record ID"""
    return str(uuid4())


def utc_now() -> datetime:
    """Default factory for record timestamps"""
    return datetime.now(timezone.utc)


