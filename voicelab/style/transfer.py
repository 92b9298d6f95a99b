"""
Style transfer: StyleParameters -> resampling stages + fixed biquad chains.
Order is fixed: time-stretch -> pitch-shift -> formant-shift -> tonal chain.
Deterministic; no randomness.
"""
import logging

from voicelab.core.types import SampleBuffer
from voicelab.dsp.graph import formant_graph, tonal_graph
from voicelab.dsp.resample import pitch_shift, time_stretch
from voicelab.style.params import StyleParameters, out_of_range_fields

logger = logging.getLogger(__name__)


class StyleTransfer:
    @staticmethod
    def apply_style(buffer: SampleBuffer, params: StyleParameters) -> SampleBuffer:
        """
        Render `buffer` through the style described by `params`. Returns a new buffer.
        Resampling stages are skipped at their neutral values; the tonal chain always runs.
        """
        outside = out_of_range_fields(params)
        if outside:
            logger.warning("Style parameters outside recommended range: %s", outside)

        x = buffer
        if params.time_stretch != 1.0:
            x = time_stretch(x, params.time_stretch)
        if params.pitch_shift != 0:
            x = pitch_shift(x, params.pitch_shift)
        if params.formant_shift != 0:
            x = formant_graph(params.formant_shift).render(x)

        tonal = tonal_graph(
            resonance=params.resonance,
            breathiness=params.breathiness,
            brightness=params.brightness,
            warmth=params.warmth,
            nasality=params.nasality,
        )
        return tonal.render(x)

    @classmethod
    def blend_styles(
        cls,
        buffer: SampleBuffer,
        style_a: StyleParameters,
        style_b: StyleParameters,
        blend: float,
    ) -> SampleBuffer:
        """
        blend: 0 (all style_a) to 100 (all style_b).
        """
        if not 0.0 <= blend <= 100.0:
            raise ValueError(f"blend must be within [0, 100], got {blend}")
        return cls.apply_style(buffer, style_a.blend(style_b, blend / 100.0))
