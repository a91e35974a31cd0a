"""Local media capture: photo previews and voice recording.

Nothing here touches the network. Captured media stays pending until the
profile is saved. ``VoiceRecorder`` models the browser-side recorder and
its controls; the API receives its output as chunk parts and rebuilds the
clip with ``AudioClip.from_chunks``.
"""

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Protocol

from src.api.middleware.error_handler import ErrorCode, ServiceError, ValidationError
from src.services.controls import Control

logger = logging.getLogger(__name__)

VOICE_CONTENT_TYPE = "audio/webm"
MICROPHONE_DENIED_MESSAGE = "Could not access microphone. Please check permissions."


class MicrophoneAccessError(ServiceError):
    """The user or the platform refused microphone access."""

    def __init__(self) -> None:
        super().__init__(MICROPHONE_DENIED_MESSAGE, code=ErrorCode.MICROPHONE_DENIED)


def to_data_url(content: bytes, content_type: str) -> str:
    """Encode bytes as a ``data:`` URL for previews and local playback."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


@dataclass
class PendingPhoto:
    """A selected image file that has not been uploaded yet."""

    filename: str
    content_type: str
    content: bytes

    def __post_init__(self) -> None:
        if not self.content_type.startswith("image/"):
            raise ValidationError(f"Unsupported photo type: {self.content_type}")
        # Only the last path segment is kept, so the object stays under the user prefix
        self.filename = PurePosixPath(self.filename.replace("\\", "/")).name
        if self.filename in ("", ".."):
            raise ValidationError("Photo file name is required")

    def to_data_url(self) -> str:
        """Preview source for the image widget; never what gets uploaded."""
        return to_data_url(self.content, self.content_type)


@dataclass
class AudioClip:
    """A finished voice recording held in memory."""

    content: bytes
    content_type: str = VOICE_CONTENT_TYPE

    @classmethod
    def from_chunks(cls, chunks: list[bytes], content_type: str = VOICE_CONTENT_TYPE) -> "AudioClip":
        """Concatenate recorder chunks in arrival order."""
        return cls(content=b"".join(chunks), content_type=content_type)

    @property
    def playback_url(self) -> str:
        """Local playback source for the recording."""
        return to_data_url(self.content, self.content_type)


class MicrophoneSource(Protocol):
    """Grants access to an audio input."""

    async def request_access(self) -> None:
        """Ask for microphone access; raise PermissionError when denied."""
        ...


class RecorderState(str, Enum):
    """Voice recorder states."""

    IDLE = "idle"
    RECORDING = "recording"


@dataclass
class VoiceRecorder:
    """Records a voice intro into an in-memory buffer.

    Start disables the record control and enables the stop control; stop
    does the inverse and reveals playback.
    """

    source: MicrophoneSource
    record_control: Control = field(default_factory=lambda: Control(label="Record"))
    stop_control: Control = field(default_factory=lambda: Control(label="Stop", enabled=False))
    state: RecorderState = RecorderState.IDLE
    chunks: list[bytes] = field(default_factory=list)
    clip: AudioClip | None = None
    playback_url: str | None = None
    playback_visible: bool = False

    async def start(self) -> None:
        """Request the microphone and begin buffering.

        Raises:
            MicrophoneAccessError: Access was denied; the recorder stays idle.
        """
        try:
            await self.source.request_access()
        except PermissionError as e:
            logger.error("Microphone access error: %s", e)
            raise MicrophoneAccessError() from e

        self.chunks = []
        self.clip = None
        self.state = RecorderState.RECORDING
        self.record_control.enabled = False
        self.stop_control.enabled = True

    def push_chunk(self, chunk: bytes) -> None:
        """Buffer one chunk of recorded audio."""
        if self.state is RecorderState.RECORDING and chunk:
            self.chunks.append(chunk)

    def stop(self) -> AudioClip | None:
        """Finish recording and expose the clip for playback.

        Returns:
            AudioClip | None: The clip, or None if nothing was recording.
        """
        if self.state is not RecorderState.RECORDING:
            return None

        self.clip = AudioClip.from_chunks(self.chunks)
        self.playback_url = self.clip.playback_url
        self.playback_visible = True
        self.state = RecorderState.IDLE
        self.record_control.enabled = True
        self.stop_control.enabled = False
        return self.clip
