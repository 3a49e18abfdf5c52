# ABOUTME: Decoded speech output: raw 16-bit little-endian PCM plus its sample rate and channel count.
# ABOUTME: samples() gives normalized floats per channel; to_wav() wraps the PCM for playback.

import base64
import io
import sys
import wave
from array import array
from dataclasses import dataclass

from core.config import SPEECH_CHANNELS, SPEECH_SAMPLE_RATE


def decode_inline_audio(data: bytes | str) -> bytes:
    """Inline data arrives as bytes from the SDK, or as base64 text from raw JSON."""
    if isinstance(data, str):
        return base64.b64decode(data)
    return data


@dataclass(frozen=True)
class SpeechAudio:
    pcm: bytes
    sample_rate: int = SPEECH_SAMPLE_RATE
    channels: int = SPEECH_CHANNELS

    @property
    def frame_count(self) -> int:
        return len(self.pcm) // (2 * self.channels)

    @property
    def duration_seconds(self) -> float:
        return self.frame_count / self.sample_rate

    def samples(self) -> list[list[float]]:
        """Per-channel samples scaled to [-1.0, 1.0) by dividing by 32768."""
        ints = array("h")
        ints.frombytes(self.pcm[: self.frame_count * 2 * self.channels])
        if sys.byteorder == "big":
            ints.byteswap()
        return [
            [ints[i * self.channels + c] / 32768.0 for i in range(self.frame_count)]
            for c in range(self.channels)
        ]

    def to_wav(self) -> bytes:
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wav:
            wav.setnchannels(self.channels)
            wav.setsampwidth(2)
            wav.setframerate(self.sample_rate)
            wav.writeframes(self.pcm[: self.frame_count * 2 * self.channels])
        return buf.getvalue()
