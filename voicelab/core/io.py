import io
import logging
import struct

import numpy as np
import soundfile as sf
import torch

from voicelab.core.errors import DecodeError
from voicelab.core.types import SampleBuffer

logger = logging.getLogger(__name__)

WAV_HEADER_SIZE = 44
PCM_FORMAT_TAG = 1
BITS_PER_SAMPLE = 16


def float_to_int16(samples: np.ndarray) -> np.ndarray:
    """
    Clamp to [-1, 1] then scale asymmetrically: negatives by 32768, the rest by 32767.
    Uses the full signed range without overflow.
    """
    data = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    scaled = np.where(data < 0, data * 32768.0, data * 32767.0)
    return np.round(scaled).astype("<i2")


def encode_wav(buffer: SampleBuffer) -> bytes:
    """Serialize a SampleBuffer as a canonical 44-byte-header 16-bit PCM WAV."""
    channels = buffer.num_channels
    block_align = channels * (BITS_PER_SAMPLE // 8)
    data_size = buffer.length * block_align

    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        16,
        PCM_FORMAT_TAG,
        channels,
        buffer.sample_rate,
        buffer.sample_rate * block_align,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )
    # (channels, length) -> (length, channels) interleaves frames in channel order
    frames = float_to_int16(buffer.to_numpy()).T
    return header + np.ascontiguousarray(frames).tobytes()


class AudioIO:
    @staticmethod
    def decode(data: bytes) -> SampleBuffer:
        """
        Decodes encoded audio bytes (any container libsndfile reads) into a SampleBuffer.
        Raises DecodeError when the bytes are unreadable or hold no samples.
        """
        if not data:
            raise DecodeError("Empty audio payload")
        try:
            samples, sample_rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except (sf.LibsndfileError, RuntimeError, TypeError, ValueError) as exc:
            logger.debug("soundfile rejected %d bytes: %s", len(data), exc)
            raise DecodeError(f"Unable to decode audio: {exc}") from exc
        if samples.shape[0] == 0:
            raise DecodeError("Decoded audio contains no samples")
        # soundfile returns (frames, channels)
        return SampleBuffer(torch.from_numpy(np.ascontiguousarray(samples.T)), sample_rate)

    @staticmethod
    def load(path: str) -> SampleBuffer:
        with open(path, "rb") as f:
            return AudioIO.decode(f.read())

    @staticmethod
    def to_bytes(buffer: SampleBuffer) -> bytes:
        """Returns WAV bytes (for API responses)."""
        return encode_wav(buffer)

    @staticmethod
    def save_wav(buffer: SampleBuffer, path: str, normalize: bool = False):
        """
        Saves a buffer to a WAV file. normalize=True scales the global peak to full
        scale first; silent buffers are written as-is.
        """
        if normalize:
            peak = float(torch.max(torch.abs(buffer.samples))) if buffer.length else 0.0
            if peak > 0:
                buffer = buffer.with_samples(buffer.samples / peak)
        with open(path, "wb") as f:
            f.write(encode_wav(buffer))
