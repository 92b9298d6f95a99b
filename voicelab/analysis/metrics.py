"""
Acoustic metrics for voice samples.
Every function takes one channel (1-D tensor) and is pure. Empty input yields 0.0
rather than NaN/inf. These are practical estimators, not research-grade DSP.
"""
import math
from dataclasses import asdict, dataclass
from typing import Dict

import torch

from voicelab.analysis.thresholds import ANALYSIS_THRESHOLDS
from voicelab.core.types import SampleBuffer


@dataclass
class ComparisonMetrics:
    rms: float = 0.0
    peak: float = 0.0
    dynamic_range_db: float = 0.0
    average_pitch_hz: float = 0.0
    spectral_centroid_hz: float = 0.0
    spectral_brightness: float = 0.0
    speaking_rate_wpm: float = 0.0
    pause_ratio: float = 0.0
    average_energy: float = 0.0
    energy_variance: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def _as_1d(audio: torch.Tensor) -> torch.Tensor:
    # float64 keeps long sums stable
    return torch.as_tensor(audio).reshape(-1).double()


# -----------------------------------------------------------------------------
# Level
# -----------------------------------------------------------------------------

def rms(audio: torch.Tensor) -> float:
    x = _as_1d(audio)
    if x.numel() == 0:
        return 0.0
    return float(torch.sqrt(torch.mean(x ** 2)))


def peak(audio: torch.Tensor) -> float:
    x = _as_1d(audio)
    if x.numel() == 0:
        return 0.0
    return float(torch.max(torch.abs(x)))


def dynamic_range_db(audio: torch.Tensor) -> float:
    """
    20*log10(peak / quietest non-silent |sample|). Samples at or below the floor
    (0.001) are ignored; the floor is also the lower bound of the denominator.
    Silence returns 0.0.
    """
    x = torch.abs(_as_1d(audio))
    floor = ANALYSIS_THRESHOLDS["dynamic_range_floor"]
    p = float(torch.max(x)) if x.numel() else 0.0
    if p <= 0:
        return 0.0
    audible = x[x > floor]
    quietest = float(torch.min(audible)) if audible.numel() else floor
    return 20.0 * math.log10(p / max(quietest, floor))


def average_energy(audio: torch.Tensor) -> float:
    x = _as_1d(audio)
    if x.numel() == 0:
        return 0.0
    return float(torch.mean(torch.abs(x)))


def energy_variance(audio: torch.Tensor) -> float:
    """Standard deviation of |sample| around average_energy."""
    x = torch.abs(_as_1d(audio))
    if x.numel() == 0:
        return 0.0
    return float(torch.sqrt(torch.mean((x - torch.mean(x)) ** 2)))


def pause_ratio(audio: torch.Tensor) -> float:
    """Fraction of samples with |x| < 0.01."""
    x = _as_1d(audio)
    if x.numel() == 0:
        return 0.0
    threshold = ANALYSIS_THRESHOLDS["pause_amplitude"]
    return float(torch.mean((torch.abs(x) < threshold).double()))


# -----------------------------------------------------------------------------
# Pitch
# -----------------------------------------------------------------------------

def _autocorrelation(x: torch.Tensor, max_lag: int) -> torch.Tensor:
    """r[k] = sum_i x[i] * x[i + k] for k < max_lag, via zero-padded FFT."""
    n = x.numel()
    n_fft = 1 << max(1, (2 * n - 1).bit_length())
    spectrum = torch.fft.rfft(x, n=n_fft)
    r = torch.fft.irfft(spectrum.real ** 2 + spectrum.imag ** 2, n=n_fft)
    out = torch.zeros(max_lag, dtype=x.dtype)
    k = min(max_lag, n)
    out[:k] = r[:k]
    return out


def estimate_pitch(audio: torch.Tensor, sample_rate: int) -> float:
    """
    Autocorrelation pitch over lags for 50-500 Hz. The lag with the largest
    positive correlation wins (shortest lag on ties); when no lag correlates
    positively the shortest lag is reported. O(n log n) via FFT.
    """
    x = _as_1d(audio)
    min_period = max(1, int(sample_rate // ANALYSIS_THRESHOLDS["pitch_max_hz"]))
    max_period = max(min_period + 1, int(sample_rate // ANALYSIS_THRESHOLDS["pitch_min_hz"]))
    if x.numel() == 0:
        return sample_rate / min_period

    r = _autocorrelation(x, max_period)
    candidates = r[min_period:max_period]
    # FFT rounding noise must not register as a positive correlation
    tolerance = 1e-12 * max(float(r[0]), 1e-300)
    best = int(torch.argmax(candidates))
    if float(candidates[best]) <= tolerance:
        return sample_rate / min_period
    return sample_rate / (min_period + best)


# -----------------------------------------------------------------------------
# Spectral
# -----------------------------------------------------------------------------

def spectral_centroid(audio: torch.Tensor, sample_rate: int) -> float:
    """
    Time-domain centroid proxy: the first min(2048, n) |samples| are weighted by
    i * sample_rate / 2048 as if they were bin magnitudes. Not an FFT centroid;
    kept for continuity with previously recorded metrics.
    """
    x = _as_1d(audio)
    frame = ANALYSIS_THRESHOLDS["centroid_frame"]
    mags = torch.abs(x[:frame])
    total = float(torch.sum(mags))
    if total <= 0:
        return 0.0
    freqs = torch.arange(mags.numel(), dtype=torch.float64) * sample_rate / frame
    return float(torch.sum(freqs * mags)) / total


def spectral_centroid_fft(audio: torch.Tensor, sample_rate: int, n_fft: int = 2048, hop_length: int = 512) -> float:
    """
    True spectral centroid from the average STFT magnitude: sum(mag * freq) / sum(mag).
    """
    x = _as_1d(audio)
    if x.numel() == 0:
        return 0.0
    if x.numel() < n_fft:
        avg_mag = torch.abs(torch.fft.rfft(x * torch.hann_window(x.numel(), dtype=x.dtype), n=n_fft))
    else:
        window = torch.hann_window(n_fft, dtype=x.dtype)
        stft = torch.stft(x.view(1, -1), n_fft=n_fft, hop_length=hop_length, window=window, return_complex=True)
        avg_mag = torch.mean(torch.abs(stft).squeeze(0), dim=1)
    freqs = torch.fft.rfftfreq(n_fft, 1.0 / sample_rate).to(avg_mag.dtype)
    total = float(torch.sum(avg_mag))
    if total <= 0:
        return 0.0
    return float(torch.sum(avg_mag * freqs)) / total


def spectral_brightness(audio: torch.Tensor) -> float:
    """Energy of first differences over signal energy (high-frequency proxy)."""
    x = _as_1d(audio)
    total = float(torch.sum(x ** 2))
    if x.numel() < 2 or total <= 0:
        return 0.0
    diffs = x[1:] - x[:-1]
    return float(torch.sum(diffs ** 2)) / total


# -----------------------------------------------------------------------------
# Temporal
# -----------------------------------------------------------------------------

def speaking_rate(audio: torch.Tensor, sample_rate: int) -> float:
    """
    Words per minute from syllable onsets: 100ms windows whose RMS rises above
    0.02 count as onsets; two syllables per word.
    """
    x = _as_1d(audio)
    n = x.numel()
    window = int(math.floor(sample_rate * ANALYSIS_THRESHOLDS["syllable_window_s"]))
    if n == 0 or window <= 0:
        return 0.0

    n_windows = -(-n // window)
    padded = torch.nn.functional.pad(x, (0, n_windows * window - n))
    # Partial last window still divides by the nominal window size
    energy = torch.sqrt(torch.sum(padded.view(n_windows, window) ** 2, dim=1) / window)
    above = energy > ANALYSIS_THRESHOLDS["syllable_energy"]
    onsets = int(above[0]) + int(torch.sum(above[1:] & ~above[:-1]))

    minutes = n / sample_rate / 60.0
    words = onsets / ANALYSIS_THRESHOLDS["syllables_per_word"]
    return max(0.0, words / minutes)


# -----------------------------------------------------------------------------
# Aggregate
# -----------------------------------------------------------------------------

def analyze_channel(audio: torch.Tensor, sample_rate: int) -> ComparisonMetrics:
    return ComparisonMetrics(
        rms=rms(audio),
        peak=peak(audio),
        dynamic_range_db=dynamic_range_db(audio),
        average_pitch_hz=estimate_pitch(audio, sample_rate),
        spectral_centroid_hz=spectral_centroid(audio, sample_rate),
        spectral_brightness=spectral_brightness(audio),
        speaking_rate_wpm=speaking_rate(audio, sample_rate),
        pause_ratio=pause_ratio(audio),
        average_energy=average_energy(audio),
        energy_variance=energy_variance(audio),
    )


def analyze_buffer(buffer: SampleBuffer) -> ComparisonMetrics:
    """Metrics on the first channel. Zero-length buffers give all-zero metrics."""
    if buffer.length == 0:
        return ComparisonMetrics()
    return analyze_channel(buffer.channel(0), buffer.sample_rate)
