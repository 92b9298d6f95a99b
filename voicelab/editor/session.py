"""
Stateful audio editing session: one live buffer plus a bounded undo history.
Operations are all-or-nothing: either a new buffer + history entry is produced,
or buffer and history are left as they were. Not safe for concurrent callers.
"""
import logging
import math
import os
import time
from collections import deque
from typing import List, Optional

import torch

from voicelab.core.errors import DecodeError, InvalidRangeError, NoAudioLoadedError, SilentAudioError
from voicelab.core.io import AudioIO, encode_wav
from voicelab.core.types import EditHistoryEntry, SampleBuffer

logger = logging.getLogger(__name__)

HISTORY_SIZE_FALLBACK = 10


def _history_size_from_env() -> int:
    raw = os.environ.get("VOICELAB_HISTORY_SIZE")
    if raw is None:
        return HISTORY_SIZE_FALLBACK
    try:
        size = int(raw)
    except ValueError:
        size = 0
    if size < 1:
        logger.warning(
            "Ignoring VOICELAB_HISTORY_SIZE=%r (need a positive integer), using %d",
            raw, HISTORY_SIZE_FALLBACK,
        )
        return HISTORY_SIZE_FALLBACK
    return size


DEFAULT_HISTORY_SIZE = _history_size_from_env()

FADE_DIRECTIONS = ("in", "out")


def seconds_to_sample(seconds: float, sample_rate: int) -> int:
    """floor(seconds * rate), tolerant of float noise (duration * rate lands on length)."""
    return int(math.floor(round(seconds * sample_rate, 6)))


class AudioEditor:
    def __init__(self, max_history: int = DEFAULT_HISTORY_SIZE):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self._buffer: Optional[SampleBuffer] = None
        self._history: deque = deque(maxlen=max_history)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._buffer is not None

    @property
    def buffer(self) -> Optional[SampleBuffer]:
        return self._buffer

    @property
    def duration(self) -> float:
        return self._buffer.duration if self._buffer is not None else 0.0

    @property
    def history(self) -> List[EditHistoryEntry]:
        return list(self._history)

    def _require_buffer(self) -> SampleBuffer:
        if self._buffer is None:
            raise NoAudioLoadedError()
        return self._buffer

    def _push(self, blob: bytes, action: str) -> None:
        self._history.append(EditHistoryEntry(blob=blob, timestamp=time.monotonic(), action=action))

    def _commit(self, new_buffer: SampleBuffer, action: str) -> bytes:
        # Encode before touching state so a failure leaves the session unchanged
        blob = encode_wav(new_buffer)
        self._buffer = new_buffer
        self._push(blob, action)
        logger.debug("%s -> %d ch x %d samples", action, new_buffer.num_channels, new_buffer.length)
        return blob

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, data: bytes) -> SampleBuffer:
        """
        Decode `data` and make it the live buffer. On DecodeError the session is Empty:
        no buffer and no history.
        """
        try:
            decoded = AudioIO.decode(data)
        except DecodeError:
            self.close()
            raise
        self._buffer = decoded
        self._push(bytes(data), "Load")
        return decoded

    def load_buffer(self, buffer: SampleBuffer) -> None:
        """Load already-decoded audio; history records its WAV encoding."""
        self._commit(buffer, "Load")

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def trim(self, start: float, end: float) -> bytes:
        """Keep [floor(start*sr), floor(end*sr)) on every channel."""
        buf = self._require_buffer()
        start_sample = seconds_to_sample(start, buf.sample_rate)
        end_sample = seconds_to_sample(end, buf.sample_rate)
        if end_sample - start_sample <= 0:
            raise InvalidRangeError(f"Empty trim range: {start}s..{end}s")
        if start_sample < 0 or end_sample > buf.length:
            raise InvalidRangeError(
                f"Trim range {start}s..{end}s outside buffer of {buf.duration:.3f}s"
            )
        return self._commit(buf.with_samples(buf.samples[:, start_sample:end_sample].clone()), "Trim")

    def adjust_volume(self, multiplier: float) -> bytes:
        """
        Multiply every sample, hard-clipping at +/-1. 0.5 = 50%, 2.0 = 200%.
        A negative multiplier also flips polarity.
        """
        buf = self._require_buffer()
        if not math.isfinite(multiplier):
            raise ValueError(f"Volume multiplier must be finite, got {multiplier}")
        return self._commit(buf.with_samples(torch.clamp(buf.samples * multiplier, -1.0, 1.0)), "Volume")

    def fade(self, direction: str, duration: float) -> bytes:
        """
        Linear fade over floor(duration*sr) samples.
        in: gain i/n for i < n. out: gain (length-i)/n for i > length-n.
        """
        buf = self._require_buffer()
        if direction not in FADE_DIRECTIONS:
            raise ValueError(f"Fade direction must be 'in' or 'out', got {direction!r}")
        fade_samples = int(math.floor(duration * buf.sample_rate))
        if fade_samples < 0:
            raise ValueError(f"Fade duration must be non-negative, got {duration}")

        n = buf.length
        gain = torch.ones(n, dtype=torch.float64)
        if fade_samples > 0:
            i = torch.arange(n, dtype=torch.float64)
            if direction == "in":
                mask = i < fade_samples
                gain[mask] = i[mask] / fade_samples
            else:
                mask = i > n - fade_samples
                gain[mask] = (n - i[mask]) / fade_samples
        out = (buf.samples.double() * gain).float()
        return self._commit(buf.with_samples(out), f"Fade {direction}")

    def reverse(self) -> bytes:
        buf = self._require_buffer()
        return self._commit(buf.with_samples(torch.flip(buf.samples, dims=[-1])), "Reverse")

    def normalize(self) -> bytes:
        """
        Scale so the global peak (all channels) hits full scale.
        Raises SilentAudioError on silence instead of dividing by zero.
        """
        buf = self._require_buffer()
        peak = float(torch.max(torch.abs(buf.samples))) if buf.length else 0.0
        if peak == 0.0:
            raise SilentAudioError("Cannot normalize silent audio (peak is 0)")
        return self.adjust_volume(1.0 / peak)

    def export(self) -> bytes:
        """WAV of the live buffer; history untouched."""
        return encode_wav(self._require_buffer())

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def undo(self) -> Optional[bytes]:
        """
        Drop the newest history entry and return the blob before it, or None with
        fewer than two entries or when Empty. The live buffer is restored by decoding
        that blob.
        """
        if self._buffer is None or len(self._history) < 2:
            return None
        previous = self._history[-2]
        restored = AudioIO.decode(previous.blob)
        self._history.pop()
        self._buffer = restored
        return previous.blob

    def close(self) -> None:
        """Release the buffer and clear history (back to Empty)."""
        self._buffer = None
        self._history.clear()
