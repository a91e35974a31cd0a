"""Database model type definitions."""

from src.models.profile import Profile, ProfileWrite

__all__ = [
    "Profile",
    "ProfileWrite",
]
