"""
Biquad filter stages using torchaudio's lfilter.
Coefficients follow the Audio EQ Cookbook as specified for Web Audio BiquadFilterNode:
peaking/shelf gain via A = 10^(gain/40), shelves at slope S = 1, highpass Q read in dB.
A stage is plain data (FilterStage); apply_stage is the one function that renders it.
"""
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import torch
import torchaudio.functional as F

logger = logging.getLogger(__name__)


class FilterKind(str, Enum):
    PEAKING = "peaking"
    LOWSHELF = "lowshelf"
    HIGHSHELF = "highshelf"
    HIGHPASS = "highpass"


@dataclass(frozen=True)
class FilterStage:
    kind: FilterKind
    frequency_hz: float
    q: float = 1.0
    gain_db: float = 0.0
    name: Optional[str] = None


def _clamp_frequency(frequency_hz: float, sample_rate: int) -> float:
    # Keep within (0, Nyquist)
    nyquist = sample_rate / 2.0
    clamped = min(max(float(frequency_hz), 1.0), nyquist - 1.0)
    if clamped != frequency_hz:
        logger.debug("filter frequency %.1f Hz clamped to %.1f Hz (sr=%d)", frequency_hz, clamped, sample_rate)
    return clamped


def biquad_coefficients(stage: FilterStage, sample_rate: int) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
    """
    Returns ((b0, b1, b2), (1, a1, a2)) normalized by a0.
    """
    f0 = _clamp_frequency(stage.frequency_hz, sample_rate)
    w0 = 2.0 * math.pi * f0 / sample_rate
    cos_w0 = math.cos(w0)
    sin_w0 = math.sin(w0)
    A = 10.0 ** (stage.gain_db / 40.0)

    if stage.kind == FilterKind.PEAKING:
        q = max(stage.q, 1e-4)
        alpha = sin_w0 / (2.0 * q)
        b = (1.0 + alpha * A, -2.0 * cos_w0, 1.0 - alpha * A)
        a = (1.0 + alpha / A, -2.0 * cos_w0, 1.0 - alpha / A)
    elif stage.kind == FilterKind.LOWSHELF:
        alpha = sin_w0 / 2.0 * math.sqrt(2.0)
        k = 2.0 * math.sqrt(A) * alpha
        b = (
            A * ((A + 1) - (A - 1) * cos_w0 + k),
            2.0 * A * ((A - 1) - (A + 1) * cos_w0),
            A * ((A + 1) - (A - 1) * cos_w0 - k),
        )
        a = (
            (A + 1) + (A - 1) * cos_w0 + k,
            -2.0 * ((A - 1) + (A + 1) * cos_w0),
            (A + 1) + (A - 1) * cos_w0 - k,
        )
    elif stage.kind == FilterKind.HIGHSHELF:
        alpha = sin_w0 / 2.0 * math.sqrt(2.0)
        k = 2.0 * math.sqrt(A) * alpha
        b = (
            A * ((A + 1) + (A - 1) * cos_w0 + k),
            -2.0 * A * ((A - 1) + (A + 1) * cos_w0),
            A * ((A + 1) + (A - 1) * cos_w0 - k),
        )
        a = (
            (A + 1) - (A - 1) * cos_w0 + k,
            2.0 * ((A - 1) - (A + 1) * cos_w0),
            (A + 1) - (A - 1) * cos_w0 - k,
        )
    elif stage.kind == FilterKind.HIGHPASS:
        # Q is a resonance in dB for pass filters
        alpha = sin_w0 / (2.0 * 10.0 ** (stage.q / 20.0))
        b = ((1.0 + cos_w0) / 2.0, -(1.0 + cos_w0), (1.0 + cos_w0) / 2.0)
        a = (1.0 + alpha, -2.0 * cos_w0, 1.0 - alpha)
    else:
        raise ValueError(f"Unsupported filter kind: {stage.kind}")

    a0 = a[0]
    return (b[0] / a0, b[1] / a0, b[2] / a0), (1.0, a[1] / a0, a[2] / a0)


def apply_stage(waveform: torch.Tensor, sample_rate: int, stage: FilterStage) -> torch.Tensor:
    """
    Render one biquad stage over the full waveform (..., time). Output is not clamped.
    """
    if waveform.shape[-1] == 0:
        return waveform.clone()
    b, a = biquad_coefficients(stage, sample_rate)
    # lfilter is run in float64 to keep high-Q stages stable
    x = waveform.double()
    b_coeffs = torch.tensor(b, dtype=x.dtype, device=x.device)
    a_coeffs = torch.tensor(a, dtype=x.dtype, device=x.device)
    y = F.lfilter(x, a_coeffs, b_coeffs, clamp=False)
    return y.to(waveform.dtype)


class Filter:
    @staticmethod
    def peaking(waveform: torch.Tensor, sample_rate: int, center_freq: float, gain_db: float, q: float = 1.0) -> torch.Tensor:
        """Peaking EQ. gain_db: positive = boost, negative = cut."""
        return apply_stage(waveform, sample_rate, FilterStage(FilterKind.PEAKING, center_freq, q, gain_db))

    @staticmethod
    def lowshelf(waveform: torch.Tensor, sample_rate: int, corner_freq: float, gain_db: float) -> torch.Tensor:
        return apply_stage(waveform, sample_rate, FilterStage(FilterKind.LOWSHELF, corner_freq, 1.0, gain_db))

    @staticmethod
    def highshelf(waveform: torch.Tensor, sample_rate: int, corner_freq: float, gain_db: float) -> torch.Tensor:
        return apply_stage(waveform, sample_rate, FilterStage(FilterKind.HIGHSHELF, corner_freq, 1.0, gain_db))

    @staticmethod
    def highpass(waveform: torch.Tensor, sample_rate: int, cutoff_freq: float, q: float = 0.0) -> torch.Tensor:
        """
        HighPass biquad. q is in dB (0 dB is a linear Q of 1.0).
        """
        return apply_stage(waveform, sample_rate, FilterStage(FilterKind.HIGHPASS, cutoff_freq, q))
