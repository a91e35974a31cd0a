"""Profile record type definitions for document store operations."""

from datetime import datetime
from typing import TypedDict


class Profile(TypedDict, total=False):
    """Row of the users table.

    One row per identity, keyed by the identity's id. Everything but the
    key is optional because rows are built up through merge-writes.
    """

    id: str
    age: str
    hobbies: str
    skills: str
    photo_url: str | None
    voice_url: str | None
    updated_at: datetime


class ProfileWrite(TypedDict, total=False):
    """Fields of a merge-write.

    Keys that are absent keep their stored value; they are never written
    as null.
    """

    age: str
    hobbies: str
    skills: str
    photo_url: str
    voice_url: str
