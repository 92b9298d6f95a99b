"""
A/B voice comparison: per-metric differences, weighted similarity, recommendation text,
preference scoring and waveform overviews.
"""
import logging
import math
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

import torch

from voicelab.analysis.metrics import ComparisonMetrics, analyze_buffer
from voicelab.analysis.thresholds import (
    PREFERENCE_RULES,
    RECOMMENDATION_THRESHOLDS,
    SIMILARITY_EPSILON,
    SIMILARITY_WEIGHTS,
)
from voicelab.core.types import SampleBuffer

logger = logging.getLogger(__name__)

METRIC_LABELS = {
    "rms": "RMS Level",
    "peak": "Peak Level",
    "dynamic_range_db": "Dynamic Range",
    "average_pitch_hz": "Average Pitch",
    "spectral_centroid_hz": "Spectral Centroid",
    "spectral_brightness": "Brightness",
    "speaking_rate_wpm": "Speaking Rate",
    "pause_ratio": "Pause Ratio",
    "average_energy": "Average Energy",
    "energy_variance": "Energy Variance",
}

SIMILAR_MESSAGE = "Both samples are very similar in characteristics"


@dataclass
class ComparisonResult:
    metrics_a: ComparisonMetrics
    metrics_b: ComparisonMetrics
    differences: Dict[str, float]
    similarity: float
    recommendation: str
    name_a: str = "Sample A"
    name_b: str = "Sample B"
    waveform_a: Optional[List[float]] = field(default=None, repr=False)
    waveform_b: Optional[List[float]] = field(default=None, repr=False)

    def to_dict(self) -> dict:
        out = {
            "name_a": self.name_a,
            "name_b": self.name_b,
            "metrics_a": self.metrics_a.to_dict(),
            "metrics_b": self.metrics_b.to_dict(),
            "differences": dict(self.differences),
            "similarity": self.similarity,
            "recommendation": self.recommendation,
        }
        if self.waveform_a is not None:
            out["waveform_a"] = self.waveform_a
            out["waveform_b"] = self.waveform_b
        return out


def percent_diff(a: float, b: float) -> float:
    """Signed difference of b relative to the mean of a and b, in percent."""
    if a == 0 and b == 0:
        return 0.0
    mean = (a + b) / 2.0
    if mean == 0:
        # Opposite signs cancel; report the raw swing rather than dividing by zero
        return math.copysign(200.0, b - a) if b != a else 0.0
    return (b - a) / mean * 100.0


def _closeness(a: float, b: float, eps: float) -> float:
    return 1.0 - min(1.0, abs(a - b) / max(a, b, eps))


def similarity_score(metrics_a: ComparisonMetrics, metrics_b: ComparisonMetrics) -> float:
    """Weighted closeness over six metrics, scaled to 0-100."""
    total = 0.0
    for name, weight in SIMILARITY_WEIGHTS.items():
        total += weight * _closeness(
            getattr(metrics_a, name), getattr(metrics_b, name), SIMILARITY_EPSILON[name]
        )
    return total * 100.0


def generate_recommendation(
    metrics_a: ComparisonMetrics,
    metrics_b: ComparisonMetrics,
    differences: Dict[str, float],
    name_a: str = "Sample A",
    name_b: str = "Sample B",
) -> str:
    t = RECOMMENDATION_THRESHOLDS
    notes: List[str] = []

    def greater_of(metric: str) -> str:
        return name_a if getattr(metrics_a, metric) > getattr(metrics_b, metric) else name_b

    if abs(differences["rms"]) > t["rms_diff_pct"]:
        notes.append(f"{greater_of('rms')} is significantly louder")
    if abs(differences["average_pitch_hz"]) > t["pitch_diff_pct"]:
        notes.append(f"{greater_of('average_pitch_hz')} has a higher pitch")
    if abs(differences["spectral_brightness"]) > t["brightness_diff_pct"]:
        notes.append(f"{greater_of('spectral_brightness')} sounds brighter/crisper")
    if abs(differences["speaking_rate_wpm"]) > t["speaking_rate_diff_pct"]:
        notes.append(f"{greater_of('speaking_rate_wpm')} has a faster speaking pace")

    ratio = t["expressiveness_ratio"]
    if metrics_a.energy_variance > metrics_b.energy_variance * ratio:
        notes.append(f"{name_a} is more expressive/dynamic")
    elif metrics_b.energy_variance > metrics_a.energy_variance * ratio:
        notes.append(f"{name_b} is more expressive/dynamic")

    if not notes:
        return SIMILAR_MESSAGE
    return ". ".join(notes) + "."


def generate_waveform_data(buffer: SampleBuffer, width: int) -> List[float]:
    """
    Channel 0 reduced to `width` buckets of mean |amplitude|.
    Samples past width * (n // width) are not shown.
    """
    if width <= 0:
        raise ValueError(f"width must be positive, got {width}")
    x = torch.abs(buffer.channel(0).double())
    per_bucket = x.numel() // width
    if per_bucket == 0:
        return [0.0] * width
    buckets = x[: per_bucket * width].view(width, per_bucket)
    return [float(v) for v in torch.mean(buckets, dim=1)]


class VoiceComparator:
    """Runs the analysis engine over two samples and scores them against each other."""

    def analyze_sample(self, buffer: SampleBuffer) -> ComparisonMetrics:
        return analyze_buffer(buffer)

    def compare(
        self,
        sample_a: SampleBuffer,
        sample_b: SampleBuffer,
        name_a: str = "Sample A",
        name_b: str = "Sample B",
        waveform_width: Optional[int] = None,
    ) -> ComparisonResult:
        metrics_a = self.analyze_sample(sample_a)
        metrics_b = self.analyze_sample(sample_b)

        differences = {
            f.name: percent_diff(getattr(metrics_a, f.name), getattr(metrics_b, f.name))
            for f in fields(ComparisonMetrics)
        }
        similarity = similarity_score(metrics_a, metrics_b)
        recommendation = generate_recommendation(metrics_a, metrics_b, differences, name_a, name_b)
        logger.info("compared %s vs %s: similarity %.1f", name_a, name_b, similarity)

        result = ComparisonResult(
            metrics_a=metrics_a,
            metrics_b=metrics_b,
            differences=differences,
            similarity=similarity,
            recommendation=recommendation,
            name_a=name_a,
            name_b=name_b,
        )
        if waveform_width:
            result.waveform_a = generate_waveform_data(sample_a, waveform_width)
            result.waveform_b = generate_waveform_data(sample_b, waveform_width)
        return result

    def generate_waveform_data(self, buffer: SampleBuffer, width: int) -> List[float]:
        return generate_waveform_data(buffer, width)


# -----------------------------------------------------------------------------
# Single-sample scoring and display helpers
# -----------------------------------------------------------------------------

def preference_score(metrics: ComparisonMetrics) -> float:
    """Heuristic quality score for one sample, 0-100 (base 50)."""
    r = PREFERENCE_RULES
    step = r["step"]
    score = r["base"]

    lo, hi = r["dynamic_range_good"]
    if lo < metrics.dynamic_range_db < hi:
        score += step
    elif metrics.dynamic_range_db < r["dynamic_range_poor_max"]:
        score -= step

    for metric, key in (
        ("rms", "rms_good"),
        ("average_pitch_hz", "pitch_natural"),
        ("speaking_rate_wpm", "speaking_rate_good"),
        ("energy_variance", "energy_variance_good"),
    ):
        lo, hi = r[key]
        if lo < getattr(metrics, metric) < hi:
            score += step

    return max(0.0, min(100.0, score))


def metric_label(key: str) -> str:
    return METRIC_LABELS.get(key, key)


def format_metric(key: str, value: float) -> str:
    """Human-readable rendering of one metric value."""
    if key in ("rms", "peak"):
        if value <= 0:
            return "-inf dB"
        return f"{20 * math.log10(value):.1f} dB"
    if key == "dynamic_range_db":
        return f"{value:.1f} dB"
    if key == "average_pitch_hz":
        return f"{value:.0f} Hz"
    if key == "spectral_centroid_hz":
        return f"{value / 1000:.1f} kHz"
    if key in ("spectral_brightness", "pause_ratio", "average_energy"):
        return f"{value * 100:.1f}%"
    if key == "speaking_rate_wpm":
        return f"{value:.0f} WPM"
    if key == "energy_variance":
        return f"{value * 100:.2f}%"
    return f"{value:.2f}"
