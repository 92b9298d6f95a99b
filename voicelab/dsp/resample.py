"""
Playback-rate resampling: read the input at `rate` samples per output sample.
Duration and pitch move together (no pitch preservation).
"""
import math

import torch

from voicelab.core.types import SampleBuffer


def render_playback_rate(buffer: SampleBuffer, rate: float) -> SampleBuffer:
    """
    Output length is floor(length / rate). Output sample k linearly interpolates
    the input at position k * rate; reads past the last sample are zero.
    """
    if rate <= 0 or not math.isfinite(rate):
        raise ValueError(f"playback rate must be positive and finite, got {rate}")

    n_in = buffer.length
    n_out = int(math.floor(n_in / rate))
    if n_out <= 0 or n_in == 0:
        return buffer.with_samples(torch.zeros(buffer.num_channels, max(n_out, 0)))

    src = buffer.samples.double()
    # Pad one zero so idx + 1 is always addressable
    padded = torch.nn.functional.pad(src, (0, 1))
    pos = torch.arange(n_out, dtype=torch.float64) * rate
    idx = torch.floor(pos).long()
    frac = pos - idx
    in_range = idx < n_in
    idx = torch.clamp(idx, max=n_in)
    nxt = torch.clamp(idx + 1, max=n_in)

    out = padded[:, idx] * (1.0 - frac) + padded[:, nxt] * frac
    out = out * in_range
    return buffer.with_samples(out.float())


def time_stretch(buffer: SampleBuffer, factor: float) -> SampleBuffer:
    """Speed change by `factor` (1.25 = 25% faster and shorter)."""
    return render_playback_rate(buffer, factor)


def pitch_ratio(semitones: float) -> float:
    return 2.0 ** (semitones / 12.0)


def pitch_shift(buffer: SampleBuffer, semitones: float) -> SampleBuffer:
    """
    Naive pitch shift via playback rate 2^(semitones/12). Also changes duration.
    """
    return render_playback_rate(buffer, pitch_ratio(semitones))
