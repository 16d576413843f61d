"""Microphone capture using sounddevice, buffering fragments for one session."""

import numpy as np
import sounddevice as sd
import structlog

from tutor_dashboard.recording.encoder import assemble_wav

logger = structlog.get_logger()


class MediaCapture:
    """Captures microphone audio into an in-memory fragment buffer.

    The sounddevice callback runs on the audio thread; it only appends
    copies to the buffer, which the event loop reads after ``release()``.

    Args:
        sample_rate: Audio sample rate in Hz.
        channels: Number of audio channels.
        chunk_size: Number of samples per fragment.
        device: Input device index (None for default).
    """

    def __init__(
        self,
        sample_rate: int = 24000,
        channels: int = 1,
        chunk_size: int = 2400,
        device: int | None = None,
    ):
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self.device = device
        self.fragments: list[np.ndarray] = []
        self._stream: sd.InputStream | None = None

    @property
    def active(self) -> bool:
        return self._stream is not None

    def _audio_callback(
        self,
        indata: np.ndarray,
        frames: int,
        time_info: object,
        status: sd.CallbackFlags,
    ) -> None:
        """Sounddevice callback - buffers a copy of each fragment."""
        if status:
            logger.warning("audio_capture_status", status=str(status))
        self.fragments.append(indata.copy().flatten())

    def acquire(self) -> None:
        """Open the input device and start buffering.

        Raises:
            sounddevice.PortAudioError: If the device is unavailable or denied.
        """
        if self._stream is not None:
            return
        stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            blocksize=self.chunk_size,
            device=self.device,
            callback=self._audio_callback,
        )
        stream.start()
        self._stream = stream
        logger.info("media_capture_acquired", sample_rate=self.sample_rate, device=self.device)

    def release(self) -> None:
        """Stop and close the input device. Safe to call when not acquired."""
        if self._stream is None:
            return
        self._stream.stop()
        self._stream.close()
        self._stream = None
        logger.info("media_capture_released", fragments=len(self.fragments))

    def assemble(self) -> bytes:
        """Join buffered fragments into one WAV payload (``b""`` if empty)."""
        return assemble_wav(self.fragments, self.sample_rate, self.channels)

    def clear(self) -> None:
        """Drop all buffered fragments."""
        self.fragments = []
