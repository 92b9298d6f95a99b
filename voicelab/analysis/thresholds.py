"""
Default analysis, similarity and recommendation thresholds.
"""
ANALYSIS_THRESHOLDS = {
    "pitch_min_hz": 50.0,
    "pitch_max_hz": 500.0,
    "dynamic_range_floor": 0.001,  # quietest |sample| counted as non-silent
    "centroid_frame": 2048,  # samples used by the time-domain centroid proxy
    "syllable_window_s": 0.1,  # 100ms energy windows
    "syllable_energy": 0.02,  # RMS threshold for a syllable onset
    "syllables_per_word": 2.0,
    "pause_amplitude": 0.01,  # |sample| below this counts as pause
}

SIMILARITY_WEIGHTS = {
    "rms": 0.15,
    "average_pitch_hz": 0.25,
    "spectral_brightness": 0.15,
    "average_energy": 0.15,
    "speaking_rate_wpm": 0.15,
    "energy_variance": 0.15,
}

# Denominator floor per metric: amplitude-like metrics 0.01, Hz/WPM metrics 1
SIMILARITY_EPSILON = {
    "rms": 0.01,
    "average_pitch_hz": 1.0,
    "spectral_brightness": 0.01,
    "average_energy": 0.01,
    "speaking_rate_wpm": 1.0,
    "energy_variance": 0.01,
}

RECOMMENDATION_THRESHOLDS = {
    "rms_diff_pct": 20.0,
    "pitch_diff_pct": 15.0,
    "brightness_diff_pct": 25.0,
    "speaking_rate_diff_pct": 20.0,
    "expressiveness_ratio": 1.3,
}

PREFERENCE_RULES = {
    "base": 50.0,
    "dynamic_range_good": (15.0, 40.0),
    "dynamic_range_poor_max": 10.0,
    "rms_good": (0.1, 0.7),
    "pitch_natural": (80.0, 400.0),
    "speaking_rate_good": (100.0, 200.0),
    "energy_variance_good": (0.02, 0.15),
    "step": 10.0,
}
