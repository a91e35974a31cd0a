"""Per-request context for the profile workflow."""

from dataclasses import dataclass, field

from src.schemas.auth import UserContext
from src.services.controls import Control
from src.services.media_capture import AudioClip, PendingPhoto

SAVE_LABEL = "Save & View Dashboard"
SAVE_BUSY_LABEL = "Saving..."
DELETE_LABEL = "Logout & Delete Account"
DELETE_BUSY_LABEL = "Deleting Account..."


@dataclass
class ProfileSession:
    """Everything one profile page holds between user actions.

    Passed explicitly to every workflow operation; pending media lives only
    as long as this object.
    """

    user: UserContext | None
    photo: PendingPhoto | None = None
    clip: AudioClip | None = None
    save: Control = field(default_factory=lambda: Control(label=SAVE_LABEL))
    delete: Control = field(default_factory=lambda: Control(label=DELETE_LABEL))

    def clear_pending_media(self) -> None:
        """Drop pending media after it has been saved."""
        self.photo = None
        self.clip = None
