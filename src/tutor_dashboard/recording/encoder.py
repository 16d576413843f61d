"""Audio payload encoding: PCM16 WAV assembly and base64 data URIs."""

import base64
import io
import wave
from collections.abc import Sequence

import numpy as np

WAV_MIME_TYPE = "audio/wav"
WAV_HEADER_BYTES = 44


def float_to_pcm16(audio: np.ndarray) -> bytes:
    """Convert float32 audio in [-1.0, 1.0] to little-endian PCM16 bytes."""
    clipped = np.clip(audio, -1.0, 1.0)
    return (clipped * 32767).astype(np.int16).tobytes()


def assemble_wav(
    fragments: Sequence[np.ndarray],
    sample_rate: int = 24000,
    channels: int = 1,
) -> bytes:
    """Join captured fragments into one WAV file.

    Args:
        fragments: Float32 audio chunks in capture order.
        sample_rate: Audio sample rate in Hz.
        channels: Number of audio channels.

    Returns:
        WAV bytes, or ``b""`` when no samples were captured.
    """
    non_empty = [f for f in fragments if f.size]
    if not non_empty:
        return b""
    audio = np.concatenate(non_empty)
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(sample_rate)
        wf.writeframes(float_to_pcm16(audio))
    return buffer.getvalue()


def to_data_uri(payload: bytes, mime_type: str = WAV_MIME_TYPE) -> str:
    """Encode a payload as ``data:<mime>;base64,<data>``."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def from_data_uri(data_uri: str) -> tuple[str, bytes]:
    """Decode a base64 data URI.

    Returns:
        ``(mime_type, payload)``.

    Raises:
        ValueError: If the URI is not a base64 data URI with a MIME type.
    """
    if not data_uri.startswith("data:") or "," not in data_uri:
        raise ValueError("Not a data URI")
    header, encoded = data_uri[5:].split(",", 1)
    mime_type, _, encoding = header.partition(";")
    if encoding != "base64" or not mime_type:
        raise ValueError("Data URI must carry a MIME type and use base64 encoding")
    return mime_type, base64.b64decode(encoded, validate=True)


def split_wav(payload: bytes, max_bytes: int) -> list[bytes]:
    """Cut a WAV file into consecutive WAV files of at most ``max_bytes`` each.

    Payloads already within the limit are returned unchanged as one segment.

    Raises:
        ValueError: If ``max_bytes`` cannot hold a header plus one frame.
        wave.Error: If a payload over the limit is not a PCM WAV file.
    """
    if len(payload) <= max_bytes:
        return [payload]
    segments = []
    with wave.open(io.BytesIO(payload), "rb") as source:
        params = source.getparams()
        frame_size = params.sampwidth * params.nchannels
        frames_per_segment = (max_bytes - WAV_HEADER_BYTES) // frame_size
        if frames_per_segment <= 0:
            raise ValueError(f"Segment limit too small: {max_bytes} bytes")
        while True:
            frames = source.readframes(frames_per_segment)
            if not frames:
                break
            buffer = io.BytesIO()
            with wave.open(buffer, "wb") as segment:
                segment.setparams(params)
                segment.writeframes(frames)
            segments.append(buffer.getvalue())
    return segments
