"""
Tests for voicelab/dsp: biquad stages, filter graphs, playback-rate resampling.
Run from project root: python -m pytest tests/test_filters.py -v
"""
import sys
import os
import math

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np
import pytest
import torch

from voicelab.core.types import SampleBuffer
from voicelab.dsp.filters import Filter, FilterKind, FilterStage, apply_stage, biquad_coefficients
from voicelab.dsp.graph import FORMANT_BANDS, FilterGraph, formant_graph, tonal_graph
from voicelab.dsp.resample import pitch_ratio, pitch_shift, render_playback_rate, time_stretch

SR = 48000


def _sine(freq: float, seconds: float = 0.5, sr: int = SR) -> torch.Tensor:
    t = torch.arange(int(seconds * sr), dtype=torch.float64) / sr
    return (0.25 * torch.sin(2 * math.pi * freq * t)).float().unsqueeze(0)


def _tail_rms(x: torch.Tensor) -> float:
    tail = x[..., x.shape[-1] // 2:].double()
    return float(torch.sqrt(torch.mean(tail ** 2)))


# -----------------------------------------------------------------------------
# Biquad stages
# -----------------------------------------------------------------------------

def test_coefficients_are_normalized():
    for kind in FilterKind:
        b, a = biquad_coefficients(FilterStage(kind, 1000.0, 1.0, 6.0), SR)
        assert a[0] == 1.0
        assert all(math.isfinite(c) for c in b + a)


def test_zero_gain_peaking_is_transparent():
    x = _sine(440.0)
    y = Filter.peaking(x, SR, 1000.0, 0.0, q=2.0)
    torch.testing.assert_close(y, x, atol=1e-6, rtol=0)


def test_peaking_boost_at_centre():
    x = _sine(1000.0)
    y = Filter.peaking(x, SR, 1000.0, 6.0, q=2.0)
    ratio = _tail_rms(y) / _tail_rms(x)
    assert ratio == pytest.approx(10 ** (6.0 / 20.0), rel=0.02)


def test_peaking_cut_at_centre():
    x = _sine(1000.0)
    y = Filter.peaking(x, SR, 1000.0, -12.0, q=2.0)
    ratio = _tail_rms(y) / _tail_rms(x)
    assert ratio == pytest.approx(10 ** (-12.0 / 20.0), rel=0.03)


def test_lowshelf_scales_dc():
    x = torch.full((1, SR // 2), 0.25)
    y = Filter.lowshelf(x, SR, 200.0, 6.0)
    assert float(y[0, -1]) == pytest.approx(0.25 * 10 ** (6.0 / 20.0), rel=1e-3)


def test_highshelf_leaves_dc():
    x = torch.full((1, SR // 2), 0.25)
    y = Filter.highshelf(x, SR, 4000.0, 6.0)
    assert float(y[0, -1]) == pytest.approx(0.25, rel=1e-3)


def test_highshelf_boosts_highs():
    x = _sine(15000.0)
    y = Filter.highshelf(x, SR, 4000.0, 6.0)
    assert _tail_rms(y) > 1.5 * _tail_rms(x)


def test_highpass_blocks_dc():
    x = torch.full((1, SR // 2), 0.5)
    y = Filter.highpass(x, SR, 500.0)
    assert abs(float(y[0, -1])) < 1e-4


def test_highpass_passes_highs():
    x = _sine(12000.0)
    y = Filter.highpass(x, SR, 500.0)
    assert _tail_rms(y) == pytest.approx(_tail_rms(x), rel=0.02)


def test_output_is_not_clamped():
    x = torch.full((1, SR // 4), 0.9)
    y = Filter.lowshelf(x, SR, 200.0, 12.0)
    assert float(y.max()) > 1.0


def test_frequency_above_nyquist_is_clamped():
    x = _sine(440.0, sr=16000)
    y = Filter.peaking(x, 16000, 30000.0, 6.0, q=5.0)
    assert torch.isfinite(y).all()
    y = Filter.highpass(x, 16000, 0.0)
    assert torch.isfinite(y).all()


def test_empty_waveform_passes_through():
    y = apply_stage(torch.zeros(2, 0), SR, FilterStage(FilterKind.PEAKING, 1000.0, 1.0, 6.0))
    assert y.shape == (2, 0)


def test_stage_keeps_channel_shape_and_dtype():
    x = torch.stack([_sine(300.0)[0], _sine(900.0)[0]])
    y = apply_stage(x, SR, FilterStage(FilterKind.LOWSHELF, 200.0, 1.0, 3.0))
    assert y.shape == x.shape
    assert y.dtype == torch.float32


# -----------------------------------------------------------------------------
# Filter graphs
# -----------------------------------------------------------------------------

def test_empty_graph_is_identity_copy():
    buf = SampleBuffer(_sine(440.0), SR)
    out = FilterGraph().render(buf)
    assert out is not buf
    assert torch.equal(out.samples, buf.samples)


def test_graph_matches_sequential_stages():
    buf = SampleBuffer(_sine(700.0), SR)
    graph = tonal_graph(resonance=60, breathiness=30, brightness=70, warmth=40, nasality=20)
    expected = buf.samples
    for stage in graph.stages:
        expected = apply_stage(expected, SR, stage)
    torch.testing.assert_close(graph.render(buf).samples, expected)


def test_graph_render_does_not_mutate_input():
    buf = SampleBuffer(_sine(700.0), SR)
    snapshot = buf.samples.clone()
    formant_graph(15.0).render(buf)
    assert torch.equal(buf.samples, snapshot)


def test_formant_graph_scales_centres():
    graph = formant_graph(20.0)
    assert len(graph) == 3
    for stage, (freq, gain) in zip(graph, FORMANT_BANDS):
        assert stage.kind == FilterKind.PEAKING
        assert stage.frequency_hz == pytest.approx(freq * 1.2)
        assert stage.gain_db == gain
        assert stage.q == 5.0


def test_tonal_graph_order_and_mapping():
    graph = tonal_graph(resonance=50, breathiness=20, brightness=50, warmth=50, nasality=30)
    assert [s.name for s in graph] == ["warmth", "resonance", "brightness", "nasality", "breathiness"]
    warmth, resonance, brightness, nasality, breathiness = graph.stages

    assert warmth.kind == FilterKind.LOWSHELF and warmth.frequency_hz == 200.0
    assert warmth.gain_db == pytest.approx(0.0)
    assert resonance.frequency_hz == 1000.0
    assert resonance.q == pytest.approx(6.0)
    assert resonance.gain_db == pytest.approx(4.0)
    assert brightness.kind == FilterKind.HIGHSHELF and brightness.gain_db == pytest.approx(0.0)
    assert nasality.frequency_hz == 2500.0 and nasality.q == 10.0
    assert nasality.gain_db == pytest.approx(3.0)
    assert breathiness.kind == FilterKind.HIGHPASS
    assert breathiness.frequency_hz == pytest.approx(6800.0)


def test_tonal_graph_extremes():
    graph = tonal_graph(resonance=0, breathiness=100, brightness=100, warmth=0, nasality=100)
    assert graph.stages[0].gain_db == pytest.approx(-6.0)
    assert graph.stages[2].gain_db == pytest.approx(6.0)
    assert graph.stages[3].gain_db == pytest.approx(10.0)
    assert graph.stages[4].frequency_hz == pytest.approx(2000.0)


def test_graph_repr_lists_stage_names():
    assert repr(formant_graph(0.0)) == "FilterGraph(formant1 -> formant2 -> formant3)"


# -----------------------------------------------------------------------------
# Playback-rate resampling
# -----------------------------------------------------------------------------

@pytest.mark.parametrize("rate", [0.5, 0.8, 1.0, 1.25, 2.0, 3.7])
def test_output_length_is_floor(rate):
    buf = SampleBuffer(torch.rand(2, 1001), SR)
    out = render_playback_rate(buf, rate)
    assert out.length == int(np.floor(1001 / rate))
    assert out.num_channels == 2
    assert out.sample_rate == SR


def test_unit_rate_is_identity():
    buf = SampleBuffer(torch.rand(1, 500) - 0.5, SR)
    assert torch.equal(render_playback_rate(buf, 1.0).samples, buf.samples)


def test_double_rate_takes_every_other_sample():
    buf = SampleBuffer(torch.arange(10, dtype=torch.float32).unsqueeze(0) / 10, SR)
    out = render_playback_rate(buf, 2.0)
    torch.testing.assert_close(out.samples, buf.samples[:, ::2])


def test_half_rate_interpolates_linearly():
    buf = SampleBuffer(torch.tensor([[0.0, 0.1, 0.2, 0.3]]), SR)
    out = render_playback_rate(buf, 0.5)
    torch.testing.assert_close(
        out.samples,
        torch.tensor([[0.0, 0.05, 0.1, 0.15, 0.2, 0.25, 0.3, 0.15]]),
    )


@pytest.mark.parametrize("rate", [0.0, -1.0, float("inf"), float("nan")])
def test_invalid_rate_raises(rate):
    buf = SampleBuffer(torch.zeros(1, 10), SR)
    with pytest.raises(ValueError):
        render_playback_rate(buf, rate)


def test_time_stretch_shortens():
    buf = SampleBuffer(torch.zeros(1, SR), SR)
    assert time_stretch(buf, 1.25).duration == pytest.approx(0.8)


def test_pitch_ratio():
    assert pitch_ratio(0.0) == 1.0
    assert pitch_ratio(12.0) == pytest.approx(2.0)
    assert pitch_ratio(-12.0) == pytest.approx(0.5)


def test_octave_up_halves_duration():
    buf = SampleBuffer(_sine(220.0, seconds=1.0), SR)
    assert pitch_shift(buf, 12.0).length == SR // 2


def test_empty_buffer_resamples_to_empty():
    buf = SampleBuffer(torch.zeros(2, 0), SR)
    out = render_playback_rate(buf, 1.5)
    assert out.samples.shape == (2, 0)
