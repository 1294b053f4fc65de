# pitchscope_dsp/analysis/background.py
"""
Exécution hors du thread appelant (UI).

Les estimateurs sont des fonctions pures, synchrones, sans état partagé :
on les soumet tels quels à un exécuteur. Pas d'annulation : un appelant
qui renonce abandonne simplement le Future.
"""
from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Dict, Optional, Sequence

import numpy as np

from pitchscope_dsp.analysis.pitch_autocorr import estimate_pitch_fast
from pitchscope_dsp.analysis.pitch_yin import estimate_pitch_precise
from pitchscope_dsp.analysis.progress import ProgressHook
from pitchscope_dsp.core.config import FastConfig, PreciseConfig
from pitchscope_dsp.types.dataclasses import PitchEstimate


def submit_precise(
    executor: Executor,
    samples: Sequence[float] | np.ndarray,
    sample_rate: int,
    on_progress: Optional[ProgressHook] = None,
    config: Optional[PreciseConfig] = None,
) -> "Future[PitchEstimate]":
    return executor.submit(estimate_pitch_precise, samples, sample_rate, on_progress, config)


def submit_fast(
    executor: Executor,
    samples: Sequence[float] | np.ndarray,
    sample_rate: int,
    config: Optional[FastConfig] = None,
) -> "Future[PitchEstimate]":
    return executor.submit(estimate_pitch_fast, samples, sample_rate, config)


def estimate_concurrently(
    samples: Sequence[float] | np.ndarray,
    sample_rate: int,
    on_progress: Optional[ProgressHook] = None,
    precise_config: Optional[PreciseConfig] = None,
    fast_config: Optional[FastConfig] = None,
) -> Dict[str, PitchEstimate]:
    """Lance les deux estimateurs en parallèle sur le même buffer."""
    with ThreadPoolExecutor(max_workers=2) as ex:
        fut_precise = submit_precise(ex, samples, sample_rate, on_progress, precise_config)
        fut_fast = submit_fast(ex, samples, sample_rate, fast_config)

        return {
            "precise": fut_precise.result(),
            "fast": fut_fast.result(),
        }
