"""
FilterGraph: an ordered series chain of biquad stages rendered offline.
Each stage consumes the previous stage's full output. No feedback paths.
"""
from typing import Iterable, List, Tuple

from voicelab.core.types import SampleBuffer
from voicelab.dsp.filters import FilterKind, FilterStage, apply_stage

# Formant centres (Hz) and fixed peaking gains (dB)
FORMANT_BANDS = ((500.0, 6.0), (1500.0, 4.0), (2500.0, 3.0))
FORMANT_Q = 5.0


class FilterGraph:
    def __init__(self, stages: Iterable[FilterStage] = ()):
        self.stages: Tuple[FilterStage, ...] = tuple(stages)

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def __repr__(self) -> str:
        names = [s.name or s.kind.value for s in self.stages]
        return f"FilterGraph({' -> '.join(names)})"

    def render(self, buffer: SampleBuffer) -> SampleBuffer:
        """Fold the buffer through every stage left to right. Returns a new buffer."""
        x = buffer.samples.clone()
        for stage in self.stages:
            x = apply_stage(x, buffer.sample_rate, stage)
        return buffer.with_samples(x)


def formant_graph(shift_percent: float) -> FilterGraph:
    """Three peaking resonances at 500/1500/2500 Hz scaled by (1 + shift/100)."""
    ratio = 1.0 + shift_percent / 100.0
    stages: List[FilterStage] = [
        FilterStage(FilterKind.PEAKING, freq * ratio, FORMANT_Q, gain, name=f"formant{i + 1}")
        for i, (freq, gain) in enumerate(FORMANT_BANDS)
    ]
    return FilterGraph(stages)


def tonal_graph(
    resonance: float,
    breathiness: float,
    brightness: float,
    warmth: float,
    nasality: float,
) -> FilterGraph:
    """
    Fixed 5-stage tonal chain. Stage order is significant:
    warmth -> resonance -> brightness -> nasality -> breathiness.
    All inputs are 0..100.
    """
    return FilterGraph([
        FilterStage(FilterKind.LOWSHELF, 200.0, 1.0, warmth / 100 * 12 - 6, name="warmth"),
        FilterStage(FilterKind.PEAKING, 1000.0, 2 + resonance / 100 * 8, resonance / 100 * 8, name="resonance"),
        FilterStage(FilterKind.HIGHSHELF, 4000.0, 1.0, brightness / 100 * 12 - 6, name="brightness"),
        FilterStage(FilterKind.PEAKING, 2500.0, 10.0, nasality / 100 * 10, name="nasality"),
        FilterStage(FilterKind.HIGHPASS, 8000 - breathiness / 100 * 6000, 0.5, name="breathiness"),
    ])
