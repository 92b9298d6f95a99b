"""
Tests for voicelab/analysis/metrics: level, pitch, spectral and temporal estimators.
Run from project root: python -m pytest tests/test_analysis.py -v
"""
import sys
import os
import math

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import numpy as np
import pytest
import torch

from voicelab.analysis.metrics import (
    ComparisonMetrics,
    _autocorrelation,
    analyze_buffer,
    average_energy,
    dynamic_range_db,
    energy_variance,
    estimate_pitch,
    pause_ratio,
    peak,
    rms,
    spectral_brightness,
    spectral_centroid,
    spectral_centroid_fft,
    speaking_rate,
)
from voicelab.core.types import SampleBuffer


def _sine(freq: float, sr: int, seconds: float, amp: float = 0.5) -> torch.Tensor:
    t = torch.arange(int(seconds * sr), dtype=torch.float64) / sr
    return amp * torch.sin(2 * math.pi * freq * t)


# -----------------------------------------------------------------------------
# Silence and empty input
# -----------------------------------------------------------------------------

def test_silent_stereo_second():
    buf = SampleBuffer.silence(2, 1.0, 44100)
    m = analyze_buffer(buf)
    assert m.rms == 0.0
    assert m.peak == 0.0
    assert m.pause_ratio == 1.0
    assert m.dynamic_range_db == 0.0
    assert m.spectral_centroid_hz == 0.0
    assert m.spectral_brightness == 0.0
    assert m.speaking_rate_wpm == 0.0
    assert m.average_energy == 0.0
    assert m.energy_variance == 0.0


def test_silence_reports_shortest_pitch_lag():
    x = torch.zeros(8000)
    assert estimate_pitch(x, 8000) == pytest.approx(8000 / 16)
    assert estimate_pitch(torch.zeros(44100), 44100) == pytest.approx(44100 / 88)


def test_empty_buffer_gives_zero_metrics():
    buf = SampleBuffer(torch.zeros(1, 0), 16000)
    assert analyze_buffer(buf) == ComparisonMetrics()


def test_empty_channel_is_finite():
    x = torch.zeros(0)
    for fn in (rms, peak, dynamic_range_db, average_energy, energy_variance, pause_ratio, spectral_brightness):
        assert fn(x) == 0.0
    assert spectral_centroid(x, 16000) == 0.0
    assert spectral_centroid_fft(x, 16000) == 0.0
    assert speaking_rate(x, 16000) == 0.0


def test_only_first_channel_is_analyzed():
    loud = _sine(200.0, 8000, 0.5).float()
    buf = SampleBuffer(torch.stack([torch.zeros_like(loud), loud]), 8000)
    assert analyze_buffer(buf).rms == 0.0


# -----------------------------------------------------------------------------
# Level
# -----------------------------------------------------------------------------

def test_rms_and_peak_of_square():
    x = torch.tensor([0.5, -0.5, 0.5, -0.5])
    assert rms(x) == pytest.approx(0.5)
    assert peak(x) == pytest.approx(0.5)
    assert average_energy(x) == pytest.approx(0.5)
    assert energy_variance(x) == pytest.approx(0.0)


def test_sine_rms():
    assert rms(_sine(100.0, 8000, 1.0, amp=1.0)) == pytest.approx(1 / math.sqrt(2), rel=1e-3)


def test_energy_variance_is_std_of_magnitudes():
    x = torch.tensor([0.0, 0.2, -0.4, 0.6])
    mags = np.abs(x.numpy().astype(np.float64))
    assert energy_variance(x) == pytest.approx(float(np.std(mags)), rel=1e-6)


def test_dynamic_range_ignores_samples_below_floor():
    x = torch.tensor([1.0, 0.1, 0.0005, 0.0, -0.5], dtype=torch.float64)
    assert dynamic_range_db(x) == pytest.approx(20.0)


def test_dynamic_range_of_constant_is_zero():
    assert dynamic_range_db(torch.full((100,), 0.3)) == pytest.approx(0.0)


def test_pause_ratio_half():
    x = torch.cat([torch.zeros(500), torch.full((500,), 0.5)])
    assert pause_ratio(x) == pytest.approx(0.5)


# -----------------------------------------------------------------------------
# Pitch
# -----------------------------------------------------------------------------

def test_autocorrelation_matches_direct_sum():
    g = torch.Generator().manual_seed(3)
    x = torch.rand(300, generator=g, dtype=torch.float64) - 0.5
    direct = np.correlate(x.numpy(), x.numpy(), mode="full")[299:]
    r = _autocorrelation(x, 400)
    np.testing.assert_allclose(r[:300].numpy(), direct, atol=1e-9)
    assert torch.all(r[300:] == 0)


@pytest.mark.parametrize("freq,sr", [(200.0, 8000), (100.0, 16000), (441.0, 44100)])
def test_pitch_of_sine(freq, sr):
    assert estimate_pitch(_sine(freq, sr, 0.5), sr) == pytest.approx(freq, rel=0.01)


def test_pitch_stays_in_search_band():
    g = torch.Generator().manual_seed(11)
    x = torch.rand(16000, generator=g) - 0.5
    f = estimate_pitch(x, 16000)
    assert 16000 / 320 < f <= 16000 / 32


# -----------------------------------------------------------------------------
# Spectral
# -----------------------------------------------------------------------------

def test_centroid_proxy_of_constant():
    assert spectral_centroid(torch.ones(2048), 2048) == pytest.approx(1023.5)


def test_centroid_proxy_reads_first_frame_only():
    x = torch.cat([torch.ones(2048), torch.full((2048,), 0.9)])
    assert spectral_centroid(x, 2048) == pytest.approx(1023.5)


def test_fft_centroid_of_sine():
    assert spectral_centroid_fft(_sine(1000.0, 16000, 1.0), 16000) == pytest.approx(1000.0, rel=0.05)


def test_fft_centroid_short_input():
    assert spectral_centroid_fft(_sine(2000.0, 16000, 0.05), 16000) == pytest.approx(2000.0, rel=0.1)


def test_fft_centroid_orders_tones():
    low = spectral_centroid_fft(_sine(300.0, 16000, 0.5), 16000)
    high = spectral_centroid_fft(_sine(3000.0, 16000, 0.5), 16000)
    assert low < high


def test_brightness_of_constant_is_zero():
    assert spectral_brightness(torch.full((100,), 0.4)) == 0.0


def test_brightness_of_alternating_signal():
    n = 100
    x = torch.tensor([1.0 if i % 2 == 0 else -1.0 for i in range(n)])
    assert spectral_brightness(x) == pytest.approx(4.0 * (n - 1) / n)


def test_brightness_orders_tones():
    assert spectral_brightness(_sine(3000.0, 16000, 0.2)) > spectral_brightness(_sine(300.0, 16000, 0.2))


# -----------------------------------------------------------------------------
# Speaking rate
# -----------------------------------------------------------------------------

def test_speaking_rate_counts_onsets():
    sr = 8000
    window = 800
    # 20 windows alternating loud/quiet: 10 onsets, 5 words in 2 seconds
    blocks = [torch.full((window,), 0.1 if i % 2 == 0 else 0.0) for i in range(20)]
    x = torch.cat(blocks)
    assert speaking_rate(x, sr) == pytest.approx(150.0)


def test_continuous_tone_is_one_onset():
    sr = 8000
    x = torch.full((sr * 3,), 0.1)
    assert speaking_rate(x, sr) == pytest.approx(0.5 / 3.0 * 60.0)


def test_quiet_audio_has_no_speech():
    assert speaking_rate(torch.full((16000,), 0.01), 8000) == 0.0


def test_metrics_to_dict_keys():
    keys = set(ComparisonMetrics().to_dict())
    assert keys == {
        "rms", "peak", "dynamic_range_db", "average_pitch_hz", "spectral_centroid_hz",
        "spectral_brightness", "speaking_rate_wpm", "pause_ratio", "average_energy", "energy_variance",
    }
