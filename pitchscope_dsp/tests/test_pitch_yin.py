import math

import numpy as np
import pytest

from pitchscope_dsp.analysis.pitch_yin import (
    absolute_threshold_search,
    cumulative_mean_normalized_difference,
    difference_function,
    estimate_pitch_precise,
    parabolic_refinement,
)
from pitchscope_dsp.analysis.progress import ProgressReporter
from pitchscope_dsp.core.config import PreciseConfig
from pitchscope_dsp.types.dataclasses import LagRange, PitchEstimate
from pitchscope_dsp.utils.synthetic import sine_wave, square_wave, white_noise


@pytest.mark.parametrize(
    "freq, sr",
    [
        (440.0, 44100),
        (1000.0, 44100),
        (220.0, 16000),
        (100.0, 8000),
        (60.0, 4000),
        (523.25, 22050),
        # périodes longues à haute fréquence d'échantillonnage
        (55.0, 44100),
        (100.0, 44100),
        (220.0, 44100),
        (261.63, 44100),
        (82.41, 48000),
        (330.0, 48000),
    ],
)
def test_sine_within_one_percent(freq, sr):
    x = sine_wave(freq, amplitude=0.8, duration=0.5, sr=sr)
    est = estimate_pitch_precise(x, sr)
    assert est.frequency == pytest.approx(freq, rel=0.01)
    assert est.probability > 0.5


def test_square_wave_fundamental():
    sr = 22050
    x = square_wave(300.0, duration=0.5, sr=sr)
    est = estimate_pitch_precise(x, sr)
    assert est.frequency == pytest.approx(300.0, rel=0.02)


def test_silence_returns_sentinel():
    est = estimate_pitch_precise(np.zeros(44100), 44100)
    assert est == PitchEstimate.undetected()
    assert not math.isnan(est.frequency)


def test_constant_signal_returns_sentinel():
    assert estimate_pitch_precise(np.full(8000, 0.3), 8000) == PitchEstimate(0.0, 0.0)


@pytest.mark.parametrize(
    "samples, sr",
    [
        ([], 44100),
        (np.zeros(0), 44100),
        (np.ones(100), 44100),          # plus court que τ_max
        (sine_wave(440.0, duration=0.1), 0),
        (sine_wave(440.0, duration=0.1), -44100),
        (sine_wave(440.0, duration=0.1), 44100.5),
        (sine_wave(440.0, duration=0.1), None),
        (sine_wave(440.0, duration=0.1), 40),  # plage de lags vide
    ],
)
def test_degenerate_input_never_raises(samples, sr):
    assert estimate_pitch_precise(samples, sr) == PitchEstimate.undetected()


def test_nan_in_buffer_returns_sentinel():
    x = sine_wave(440.0, duration=0.2)
    x[100] = np.nan
    assert estimate_pitch_precise(x, 44100) == PitchEstimate.undetected()


def test_idempotent_and_input_untouched():
    x = sine_wave(330.0, duration=0.3) + 0.05 * white_noise(0.3, seed=3)
    before = x.copy()
    a = estimate_pitch_precise(x, 44100)
    b = estimate_pitch_precise(x, 44100)
    assert a == b
    np.testing.assert_array_equal(x, before)


def test_refinement_beats_integer_lag():
    # période vraie = 100.227 échantillons, entre deux lags entiers
    sr, freq = 44100, 440.0
    x = sine_wave(freq, duration=0.5, sr=sr)
    cfg = PreciseConfig()
    lags = cfg.lag_range(sr)

    cmndf = cumulative_mean_normalized_difference(difference_function(x, lags))
    search = absolute_threshold_search(cmndf, lags)
    integer_freq = sr / search.lag

    est = estimate_pitch_precise(x, sr)
    assert abs(est.frequency - freq) < abs(integer_freq - freq)


def test_progress_hook_reports_percentages_without_changing_result():
    x = sine_wave(440.0, duration=0.5)
    seen = []
    with_hook = estimate_pitch_precise(x, 44100, on_progress=seen.append)
    without = estimate_pitch_precise(x, 44100)

    assert with_hook == without
    # τ ∈ [44, 882) : notifications pour τ = 100, 200, ..., 800
    assert len(seen) == 8
    assert all(isinstance(p, int) and 0 <= p <= 100 for p in seen)
    assert seen == sorted(seen)


def test_raising_progress_hook_is_ignored():
    calls = []

    def hook(p):
        calls.append(p)
        raise RuntimeError("ui gone")

    x = sine_wave(440.0, duration=0.5)
    assert estimate_pitch_precise(x, 44100, on_progress=hook) == estimate_pitch_precise(x, 44100)
    assert len(calls) == 1


def test_cmndf_conventions():
    d = np.array([0.0, 0.0, 4.0, 2.0, 2.0])
    cmndf = cumulative_mean_normalized_difference(d)
    assert cmndf[0] == 1.0
    assert cmndf[1] == 1.0                      # somme cumulée nulle
    assert cmndf[2] == pytest.approx(4.0 * 2 / 4.0)
    assert cmndf[3] == pytest.approx(2.0 * 3 / 6.0)
    assert cmndf[4] == pytest.approx(2.0 * 4 / 8.0)


def test_difference_function_decimation():
    x = np.arange(20, dtype=float)
    lags = LagRange(tau_min=2, tau_max=4)
    d = difference_function(x, lags, decimation=8)
    # i ∈ {0, 8, 16} pour τ=1,2,3 ; (x[i]-x[i+τ])² = τ²
    assert d[0] == 0.0
    assert d[1] == pytest.approx(3 * 1.0)
    assert d[2] == pytest.approx(3 * 4.0)
    assert d[3] == pytest.approx(3 * 9.0)


def test_threshold_search_local_descent_and_escape():
    cmndf = np.ones(30)
    cmndf[10:16] = [0.09, 0.05, 0.03, 0.2, 0.01, 0.0]
    lags = LagRange(tau_min=5, tau_max=30)
    res = absolute_threshold_search(cmndf, lags, threshold=0.1, local_window=10, escape_ratio=1.2)
    # 0.2 > 1.2 × 0.03 → sortie avant les valeurs plus basses
    assert res.lag == 12
    assert res.value == pytest.approx(0.03)
    assert res.below_threshold


def test_threshold_search_window_is_bounded():
    cmndf = np.ones(40)
    cmndf[10:25] = np.linspace(0.09, 0.01, 15)   # décroissance continue
    lags = LagRange(tau_min=5, tau_max=40)
    res = absolute_threshold_search(cmndf, lags, local_window=10, follow_descent=False)
    assert res.lag == 19                          # candidat 10 + 9 lags


def test_threshold_search_follows_descent_past_window():
    cmndf = np.ones(40)
    cmndf[10:25] = np.linspace(0.09, 0.01, 15)
    lags = LagRange(tau_min=5, tau_max=40)
    res = absolute_threshold_search(cmndf, lags, local_window=10)
    assert res.lag == 24
    assert res.value == pytest.approx(0.01)


def test_threshold_search_descent_stops_at_first_rise_past_window():
    cmndf = np.ones(40)
    cmndf[10:22] = np.linspace(0.09, 0.02, 12)   # creux en 21
    cmndf[22] = 0.03
    cmndf[23] = 0.001                              # second creux, hors descente
    lags = LagRange(tau_min=5, tau_max=40)
    res = absolute_threshold_search(cmndf, lags, local_window=10)
    assert res.lag == 21


def test_bounded_window_misses_long_period_dip():
    # 100 Hz à 44.1 kHz : période de 441 lags, premier candidat ≈ 30 lags avant le creux
    sr = 44100
    x = sine_wave(100.0, amplitude=0.8, duration=0.5, sr=sr)
    bounded = estimate_pitch_precise(x, sr, config=PreciseConfig(follow_descent=False))
    followed = estimate_pitch_precise(x, sr)
    assert bounded.frequency > 102.0
    assert followed.frequency == pytest.approx(100.0, rel=0.01)


def test_threshold_search_falls_back_to_global_minimum():
    cmndf = np.full(20, 0.8)
    cmndf[7] = 0.4
    cmndf[12] = 0.3
    res = absolute_threshold_search(cmndf, LagRange(tau_min=3, tau_max=20))
    assert res.lag == 12
    assert not res.below_threshold


def test_parabolic_refinement_rules():
    lags = LagRange(tau_min=2, tau_max=10)
    cmndf = np.ones(10)
    cmndf[4:7] = [0.5, 0.1, 0.3]
    # sommet : 5 - ((0.3-0.5)/2) / (2·(0.5+0.3-0.2)/2) = 5 + 1/6
    assert parabolic_refinement(cmndf, 5, lags) == pytest.approx(5 + 1 / 6)
    # bord de plage : pas de raffinement
    assert parabolic_refinement(cmndf, 2, lags) == 2.0
    assert parabolic_refinement(cmndf, 9, lags) == 9.0
    # courbure nulle
    flat = np.full(10, 0.2)
    assert parabolic_refinement(flat, 5, lags) == 5.0


def test_decimation_is_configurable():
    x = sine_wave(440.0, duration=0.3)
    exact = estimate_pitch_precise(x, 44100, config=PreciseConfig(decimation=1))
    assert exact.frequency == pytest.approx(440.0, rel=0.005)


def test_progress_reporter_counts_calls():
    seen = []
    reporter = ProgressReporter(seen.append)
    lags = LagRange(tau_min=10, tau_max=250)
    difference_function(np.random.default_rng(0).normal(size=1000), lags, progress=reporter)
    assert seen == [38, 79]                        # τ = 100 et τ = 200
    assert reporter.calls == 2


def test_difference_below_min_lag_can_be_left_at_zero():
    x = np.arange(20, dtype=float)
    d = difference_function(x, LagRange(tau_min=2, tau_max=4), full_cumulative_mean=False)
    assert d[1] == 0.0
    assert d[2] > 0.0


def test_partial_cumulative_mean_hides_periods_near_min_lag():
    # sans d[1..τ_min), la CMNDF près de τ_min est écrasée : 1000 Hz → octave basse
    x = sine_wave(1000.0, duration=0.5)
    est = estimate_pitch_precise(x, 44100, config=PreciseConfig(full_cumulative_mean=False))
    assert est.frequency == pytest.approx(500.0, rel=0.01)
