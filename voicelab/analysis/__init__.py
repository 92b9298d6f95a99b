"""
Voice analysis: per-sample acoustic metrics and A/B comparison.
"""
from voicelab.analysis.metrics import ComparisonMetrics, analyze_buffer
from voicelab.analysis.compare import (
    ComparisonResult,
    VoiceComparator,
    generate_waveform_data,
    percent_diff,
    preference_score,
)

__all__ = [
    "ComparisonMetrics",
    "ComparisonResult",
    "VoiceComparator",
    "analyze_buffer",
    "generate_waveform_data",
    "percent_diff",
    "preference_score",
]
