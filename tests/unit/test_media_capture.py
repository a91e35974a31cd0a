"""Unit tests for local media capture."""

import base64

import pytest

from src.api.middleware.error_handler import ErrorCode, ValidationError
from src.services.controls import Control
from src.services.media_capture import (
    MICROPHONE_DENIED_MESSAGE,
    AudioClip,
    MicrophoneAccessError,
    PendingPhoto,
    RecorderState,
    VoiceRecorder,
)


class GrantingMicrophone:
    async def request_access(self) -> None:
        return None


class DenyingMicrophone:
    async def request_access(self) -> None:
        raise PermissionError("Permission denied")


class TestPendingPhoto:
    """Tests for PendingPhoto."""

    def test_preview_is_data_url(self) -> None:
        photo = PendingPhoto(filename="me.png", content_type="image/png", content=b"\x89PNG")

        assert photo.to_data_url() == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    def test_rejects_non_images(self) -> None:
        with pytest.raises(ValidationError):
            PendingPhoto(filename="notes.txt", content_type="text/plain", content=b"hello")

    @pytest.mark.parametrize(
        ("filename", "expected"),
        [
            ("../../other-user/me.png", "me.png"),
            ("/etc/me.png", "me.png"),
            ("C:\\Users\\me\\photo.jpg", "photo.jpg"),
        ],
    )
    def test_filename_keeps_only_last_segment(self, filename: str, expected: str) -> None:
        photo = PendingPhoto(filename=filename, content_type="image/png", content=b"png")

        assert photo.filename == expected

    @pytest.mark.parametrize("filename", ["..", "/", "."])
    def test_rejects_filename_without_a_name(self, filename: str) -> None:
        with pytest.raises(ValidationError):
            PendingPhoto(filename=filename, content_type="image/png", content=b"png")


class TestControl:
    """Tests for Control.busy."""

    def test_restores_label_after_error(self) -> None:
        control = Control(label="Save & View Dashboard")

        with pytest.raises(RuntimeError):
            with control.busy("Saving..."):
                assert control.enabled is False
                assert control.label == "Saving..."
                raise RuntimeError("boom")

        assert control.enabled is True
        assert control.label == "Save & View Dashboard"


class TestVoiceRecorder:
    """Tests for the VoiceRecorder state machine."""

    @pytest.mark.asyncio
    async def test_record_then_stop(self) -> None:
        recorder = VoiceRecorder(source=GrantingMicrophone())

        await recorder.start()
        assert recorder.state is RecorderState.RECORDING
        assert recorder.record_control.enabled is False
        assert recorder.stop_control.enabled is True

        recorder.push_chunk(b"abc")
        recorder.push_chunk(b"def")
        clip = recorder.stop()

        assert clip == AudioClip(content=b"abcdef", content_type="audio/webm")
        assert recorder.playback_visible is True
        assert recorder.playback_url.startswith("data:audio/webm;base64,")
        assert recorder.record_control.enabled is True
        assert recorder.stop_control.enabled is False

    @pytest.mark.asyncio
    async def test_denied_microphone_stays_idle(self) -> None:
        recorder = VoiceRecorder(source=DenyingMicrophone())

        with pytest.raises(MicrophoneAccessError) as exc_info:
            await recorder.start()

        assert exc_info.value.code is ErrorCode.MICROPHONE_DENIED
        assert exc_info.value.message == MICROPHONE_DENIED_MESSAGE
        assert recorder.state is RecorderState.IDLE
        assert recorder.record_control.enabled is True
        assert recorder.stop_control.enabled is False

    @pytest.mark.asyncio
    async def test_restart_discards_previous_buffer(self) -> None:
        recorder = VoiceRecorder(source=GrantingMicrophone())
        await recorder.start()
        recorder.push_chunk(b"old")
        recorder.stop()

        await recorder.start()
        recorder.push_chunk(b"new")

        assert recorder.stop().content == b"new"

    def test_stop_when_idle_returns_none(self) -> None:
        assert VoiceRecorder(source=GrantingMicrophone()).stop() is None

    def test_chunks_ignored_when_idle(self) -> None:
        recorder = VoiceRecorder(source=GrantingMicrophone())
        recorder.push_chunk(b"stray")

        assert recorder.chunks == []
