"""Profile Pydantic schemas for API request/response models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProfileRecord(BaseModel):
    """Profile record as the client sees it.

    Media URL keys match the frontend names. Unset URLs are omitted from
    responses rather than sent as null.
    """

    model_config = ConfigDict(from_attributes=True)

    age: str = Field(default="", description="Age, kept as entered")
    hobbies: str = Field(default="", description="Free-text hobbies")
    skills: str = Field(default="", description="Free-text skills")
    photoURL: str | None = Field(default=None, description="URL of the profile photo")
    voiceURL: str | None = Field(default=None, description="URL of the voice intro")

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ProfileRecord":
        """Build from a users table row."""
        return cls(
            age=row.get("age") or "",
            hobbies=row.get("hobbies") or "",
            skills=row.get("skills") or "",
            photoURL=row.get("photo_url"),
            voiceURL=row.get("voice_url"),
        )


class ProfileLoadResponse(BaseModel):
    """What the landing page needs to render the profile form.

    When ``redirectTo`` is set the user already has a profile and nothing
    else is populated.
    """

    model_config = ConfigDict(from_attributes=True)

    welcome: str | None = Field(default=None, description="Welcome text for the signed-in user")
    profile: ProfileRecord | None = Field(default=None, description="Form field values and media URLs")
    showVoicePlayback: bool | None = Field(default=None, description="Whether the voice playback widget is shown")
    redirectTo: str | None = Field(default=None, description="Page to go to instead of the form")


class ProfileSaveResponse(BaseModel):
    """Result of a successful save."""

    model_config = ConfigDict(from_attributes=True)

    message: str = Field(description="Success message")
    saved: ProfileRecord = Field(description="Fields written by this save")
    redirectTo: str = Field(description="Results page to navigate to")


class DeleteAccountRequest(BaseModel):
    """Explicit yes/no answer to the deletion prompt."""

    model_config = ConfigDict(from_attributes=True)

    confirm: bool = Field(default=False, description="True only if the user confirmed permanent deletion")


class DeleteAccountResponse(BaseModel):
    """Result of an account deletion request."""

    model_config = ConfigDict(from_attributes=True)

    deleted: bool = Field(description="Whether the account was deleted")
    message: str | None = Field(default=None, description="Confirmation shown to the user")
    redirectTo: str | None = Field(default=None, description="Page to replace the current one with")


class PhotoPreviewResponse(BaseModel):
    """Local preview of a selected photo."""

    model_config = ConfigDict(from_attributes=True)

    dataURL: str = Field(description="data: URL for the preview image; never uploaded")
