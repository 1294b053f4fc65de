# pitchscope_dsp/analysis/pitch_yin.py
"""
Estimateur précis (famille YIN)
===============================
Fonction de différence décimée → CMNDF → recherche du premier creux sous
le seuil absolu (avec raffinement local) → interpolation parabolique.

Coût dominant : O(len(x) × (τ_max - τ_min) / decimation).
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from pitchscope_dsp.analysis.kernels import (
    cumulative_mean_normalize,
    difference_block,
    empty_lag_array,
)
from pitchscope_dsp.analysis.progress import ProgressHook, ProgressReporter, percent_done
from pitchscope_dsp.core.config import DEFAULT_PRECISE_CONFIG, PreciseConfig
from pitchscope_dsp.core.preprocess import (
    as_sample_buffer,
    validate_sample_rate,
    validate_samples,
)
from pitchscope_dsp.types.dataclasses import LagRange, PitchEstimate, ThresholdSearch
from pitchscope_dsp.utils.log import debug_trace, get_logger

logger = get_logger(__name__)
YIN_PREFIX = "[YIN]"


# ──────────────────────────────────────────────
# ÉTAPES
# ──────────────────────────────────────────────

def difference_function(
    x: np.ndarray,
    lags: LagRange,
    decimation: int = DEFAULT_PRECISE_CONFIG.decimation,
    progress: Optional[ProgressReporter] = None,
    progress_interval: int = DEFAULT_PRECISE_CONFIG.progress_interval,
    full_cumulative_mean: bool = DEFAULT_PRECISE_CONFIG.full_cumulative_mean,
) -> np.ndarray:
    """
    d[τ] pour τ ∈ [τ_min, τ_max), tableau de taille τ_max. Sous τ_min,
    d[τ] est calculé si `full_cumulative_mean` (il ne sert qu'à la moyenne
    cumulée de la CMNDF), sinon laissé à 0. d[0] = 0 toujours.

    Le calcul est découpé en blocs alignés sur les multiples de
    `progress_interval` : après le lag τ tel que τ % interval == 0, le hook
    reçoit le pourcentage de la plage parcourue.
    """
    d = empty_lag_array(lags.tau_max)
    if full_cumulative_mean and lags.tau_min > 1:
        difference_block(x, d, 1, min(lags.tau_min, lags.tau_max), decimation)
    tau = lags.tau_min
    while tau < lags.tau_max:
        report_at = -(-tau // progress_interval) * progress_interval
        stop = min(report_at + 1, lags.tau_max)
        difference_block(x, d, tau, stop, decimation)
        if progress is not None and report_at < lags.tau_max:
            progress(percent_done(report_at, lags.tau_min, lags.tau_max))
        tau = stop
    return d


def cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
    """CMNDF[0] = 1 ; CMNDF[τ] = d[τ]·τ / Σ d[1..τ] (1 si la somme est nulle)."""
    cmndf = empty_lag_array(d.size)
    if d.size:
        cumulative_mean_normalize(d, cmndf)
    return cmndf


def absolute_threshold_search(
    cmndf: np.ndarray,
    lags: LagRange,
    threshold: float = DEFAULT_PRECISE_CONFIG.threshold,
    local_window: int = DEFAULT_PRECISE_CONFIG.local_window,
    escape_ratio: float = DEFAULT_PRECISE_CONFIG.escape_ratio,
    follow_descent: bool = DEFAULT_PRECISE_CONFIG.follow_descent,
) -> ThresholdSearch:
    """
    Premier τ ≥ τ_min avec CMNDF[τ] < seuil, puis descente locale sur
    `local_window` lags (candidat inclus) : on garde le plus bas, et on
    abandonne dès qu'une valeur dépasse escape_ratio × meilleur.
    Avec `follow_descent`, la descente continue au-delà de la fenêtre tant
    que chaque lag améliore le précédent : le creux d'une période longue
    (≈ 7 % de période après le premier candidat) est alors atteint.
    Aucun τ sous le seuil → minimum global sur [τ_min, τ_max).
    """
    for tau in range(lags.tau_min, lags.tau_max):
        if cmndf[tau] < threshold:
            best_tau, best_val = tau, float(cmndf[tau])
            window_stop = tau + local_window
            for i in range(tau + 1, lags.tau_max):
                value = float(cmndf[i])
                if i >= window_stop and not (
                    follow_descent and best_tau == i - 1 and value < best_val
                ):
                    break
                if value < best_val:
                    best_tau, best_val = i, value
                elif value > best_val * escape_ratio:
                    break
            return ThresholdSearch(lag=best_tau, value=best_val, below_threshold=True)

    segment = cmndf[lags.tau_min:lags.tau_max]
    i_rel = int(np.argmin(segment))
    return ThresholdSearch(
        lag=lags.tau_min + i_rel, value=float(segment[i_rel]), below_threshold=False
    )


def parabolic_refinement(cmndf: np.ndarray, tau: int, lags: LagRange) -> float:
    """
    Sommet de la parabole passant par CMNDF[τ-1], CMNDF[τ], CMNDF[τ+1].
    Appliqué seulement si τ est strictement intérieur à la plage, si la
    courbure est non nulle et si le décalage reste < 1 échantillon.
    """
    if not (lags.tau_min < tau < lags.tau_max - 1):
        return float(tau)
    y1, y2, y3 = float(cmndf[tau - 1]), float(cmndf[tau]), float(cmndf[tau + 1])
    a = (y1 + y3 - 2.0 * y2) / 2.0
    if a == 0.0:
        return float(tau)
    b = (y3 - y1) / 2.0
    shift = -b / (2.0 * a)
    if abs(shift) < 1.0:
        return float(tau) + shift
    return float(tau)


# ──────────────────────────────────────────────
# API
# ──────────────────────────────────────────────

def _estimate_precise(
    x: np.ndarray,
    sample_rate: int,
    reporter: ProgressReporter,
    cfg: PreciseConfig,
    debug: bool | None,
) -> PitchEstimate:
    sample_rate = validate_sample_rate(sample_rate)
    lags = cfg.lag_range(sample_rate)
    validate_samples(x, sample_rate, lags)
    if x.size <= lags.tau_max:
        raise ValueError(f"buffer too short: {x.size} samples, need > {lags.tau_max}")

    d = difference_function(
        x,
        lags,
        decimation=cfg.decimation,
        progress=reporter if reporter.active else None,
        progress_interval=cfg.progress_interval,
        full_cumulative_mean=cfg.full_cumulative_mean,
    )
    if not np.any(d[lags.tau_min:lags.tau_max]):
        # silence ou signal constant : aucune périodicité mesurable
        debug_trace(logger, YIN_PREFIX, "zero-energy difference function", debug)
        return PitchEstimate.undetected()

    cmndf = cumulative_mean_normalized_difference(d)
    search = absolute_threshold_search(
        cmndf,
        lags,
        threshold=cfg.threshold,
        local_window=cfg.local_window,
        escape_ratio=cfg.escape_ratio,
        follow_descent=cfg.follow_descent,
    )
    refined = parabolic_refinement(cmndf, search.lag, lags)

    result = PitchEstimate(frequency=sample_rate / refined, probability=1.0 - search.value)
    debug_trace(
        logger,
        YIN_PREFIX,
        f"τ*={search.lag} (refined {refined:.3f}) cmndf={search.value:.4f} "
        f"below_threshold={search.below_threshold} → {result.frequency:.2f} Hz "
        f"p={result.probability:.3f}",
        debug,
    )
    return result


def estimate_pitch_precise(
    samples: Sequence[float] | np.ndarray,
    sample_rate: int,
    on_progress: Optional[ProgressHook] = None,
    config: Optional[PreciseConfig] = None,
    debug: bool | None = None,
) -> PitchEstimate:
    """
    Estime la fondamentale (50–1000 Hz par défaut) d'un buffer mono.

    Parameters
    ----------
    samples : array-like
        Échantillons mono (typiquement dans [-1, 1]). Jamais modifiés.
    sample_rate : int
        Fréquence d'échantillonnage (Hz), entier positif.
    on_progress : callable, optional
        Reçoit un pourcentage 0..100 tous les `progress_interval` lags.
        Aucune garantie d'un appel final à 100.
    config : PreciseConfig, optional
        Réglages ; DEFAULT_PRECISE_CONFIG sinon.

    Returns
    -------
    PitchEstimate
        Jamais d'exception : toute entrée dégénérée ou faute numérique
        donne la sentinelle {0, 0}.
    """
    cfg = config or DEFAULT_PRECISE_CONFIG
    reporter = ProgressReporter(on_progress)
    try:
        x = as_sample_buffer(samples)
        with np.errstate(all="ignore"):
            result = _estimate_precise(x, sample_rate, reporter, cfg, debug)
    except ValueError as exc:
        logger.debug("%s undetected: %s", YIN_PREFIX, exc)
        return PitchEstimate.undetected()
    except Exception:
        logger.warning("%s pitch estimation failed", YIN_PREFIX, exc_info=True)
        return PitchEstimate.undetected()

    if not result.is_finite or result.frequency <= 0.0:
        logger.debug("%s non-finite result %r", YIN_PREFIX, result)
        return PitchEstimate.undetected()
    return result
