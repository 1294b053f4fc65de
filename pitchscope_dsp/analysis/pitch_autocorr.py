# pitchscope_dsp/analysis/pitch_autocorr.py
"""
Estimateur rapide : autocorrélation normalisée sur fenêtre bornée.

Fenêtre = au plus `window_size` premiers échantillons (troncature, jamais de
padding) ; rien au-delà n'est lu. Premier pic fort dans 80–800 Hz par défaut.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from pitchscope_dsp.analysis.kernels import empty_lag_array, lag_product_means
from pitchscope_dsp.core.config import DEFAULT_FAST_CONFIG, FastConfig
from pitchscope_dsp.core.preprocess import (
    as_sample_buffer,
    validate_sample_rate,
    validate_samples,
)
from pitchscope_dsp.types.dataclasses import LagRange, PeakSearch, PitchEstimate
from pitchscope_dsp.utils.log import debug_trace, get_logger

logger = get_logger(__name__)
ACF_PREFIX = "[ACF]"


def analysis_window(samples: Sequence[float] | np.ndarray, window_size: int) -> np.ndarray:
    """Tronque AVANT toute conversion : l'estimateur ne voit que la fenêtre."""
    y = np.asarray(samples)
    if y.ndim == 2:
        return as_sample_buffer(y[:, :window_size])
    return as_sample_buffer(y[:window_size])


def autocorrelation_function(
    x: np.ndarray,
    tau_max: int,
    stride: int = DEFAULT_FAST_CONFIG.stride,
) -> np.ndarray:
    """acf[τ] pour τ ∈ [0, τ_max) : moyenne de x[i]·x[i+τ], i par pas de `stride`."""
    acf = empty_lag_array(tau_max)
    if acf.size:
        lag_product_means(x, acf, stride)
    return acf


def normalize_autocorrelation(acf: np.ndarray) -> np.ndarray:
    """Divise par acf[0] ; laissé tel quel si acf[0] est nul."""
    if acf.size == 0 or acf[0] == 0.0:
        return acf.copy()
    return acf / acf[0]


def select_peak(
    acf: np.ndarray,
    lags: LagRange,
    peak_floor: float = DEFAULT_FAST_CONFIG.peak_floor,
    early_exit: float = DEFAULT_FAST_CONFIG.early_exit,
) -> PeakSearch:
    """
    Balayage de τ_min à τ_max - 1 : un pic dépasse ses deux voisins et le
    plancher absolu. On garde le plus haut ; arrêt immédiat dès qu'un pic
    dépasse `early_exit`. `lags_scanned` compte les lags inspectés.
    """
    best_tau, best_val = 0, -1.0
    scanned = 0
    start = max(lags.tau_min, 1)
    stop = min(lags.tau_max, acf.size) - 1   # τ+1 doit exister
    for tau in range(start, stop):
        scanned += 1
        v = acf[tau]
        if v > acf[tau - 1] and v > acf[tau + 1] and v > peak_floor and v > best_val:
            best_tau, best_val = tau, float(v)
            if best_val > early_exit:
                return PeakSearch(lag=best_tau, value=best_val, lags_scanned=scanned, early_exit=True)
    if best_tau == 0:
        return PeakSearch(lags_scanned=scanned)
    return PeakSearch(lag=best_tau, value=best_val, lags_scanned=scanned)


def _estimate_fast(
    samples: Sequence[float] | np.ndarray,
    sample_rate: int,
    cfg: FastConfig,
    debug: bool | None,
) -> PitchEstimate:
    sample_rate = validate_sample_rate(sample_rate)
    lags = cfg.lag_range(sample_rate)
    x = analysis_window(samples, cfg.window_size)
    validate_samples(x, sample_rate, lags)

    acf = normalize_autocorrelation(autocorrelation_function(x, lags.tau_max, cfg.stride))
    peak = select_peak(acf, lags, peak_floor=cfg.peak_floor, early_exit=cfg.early_exit)
    if not peak.found:
        debug_trace(logger, ACF_PREFIX, f"no peak above {cfg.peak_floor} ({peak.lags_scanned} lags)", debug)
        return PitchEstimate.undetected()

    result = PitchEstimate(frequency=sample_rate / peak.lag, probability=peak.value)
    debug_trace(
        logger,
        ACF_PREFIX,
        f"τ={peak.lag} acf={peak.value:.3f} early={peak.early_exit} "
        f"scanned={peak.lags_scanned} → {result.frequency:.2f} Hz",
        debug,
    )
    return result


def estimate_pitch_fast(
    samples: Sequence[float] | np.ndarray,
    sample_rate: int,
    config: Optional[FastConfig] = None,
    debug: bool | None = None,
) -> PitchEstimate:
    """
    Estimation basse latence (80–800 Hz par défaut).
    Ne lève jamais : entrée dégénérée ou faute → sentinelle {0, 0}.
    """
    cfg = config or DEFAULT_FAST_CONFIG
    try:
        with np.errstate(all="ignore"):
            result = _estimate_fast(samples, sample_rate, cfg, debug)
    except ValueError as exc:
        logger.debug("%s undetected: %s", ACF_PREFIX, exc)
        return PitchEstimate.undetected()
    except Exception:
        logger.warning("%s pitch estimation failed", ACF_PREFIX, exc_info=True)
        return PitchEstimate.undetected()

    if not result.is_finite:
        return PitchEstimate.undetected()
    return result
