# pitchscope_dsp/analysis/progress.py
"""
Notifications de progression de l'estimateur précis.

Le hook est un simple callable synchrone recevant un entier 0..100,
appelé en ligne pendant le calcul. Il est purement informatif : ni ses
exceptions ni sa lenteur relative ne modifient le résultat.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from pitchscope_dsp.utils.log import get_logger

logger = get_logger(__name__)

ProgressHook = Callable[[int], None]


def percent_done(tau: int, tau_min: int, tau_max: int) -> int:
    span = tau_max - tau_min
    if span <= 0:
        return 100
    pct = int(round(100.0 * (tau - tau_min) / span))
    return min(100, max(0, pct))


class ProgressReporter:
    """
    Enveloppe un hook optionnel. Un hook qui lève est journalisé une fois
    puis désactivé pour le reste de l'appel.
    """

    def __init__(self, hook: Optional[ProgressHook]):
        self._hook = hook
        self.calls = 0

    @property
    def active(self) -> bool:
        return self._hook is not None

    def __call__(self, percent: int) -> None:
        if self._hook is None:
            return
        self.calls += 1
        try:
            self._hook(int(percent))
        except Exception:
            logger.warning("progress hook raised, disabling it for this call", exc_info=True)
            self._hook = None


class RateLimitedProgress:
    """
    Hook de progression limité en débit, à placer devant un callback d'UI.

    - valeurs bornées à [0, 100] ;
    - répétitions de la dernière valeur transmise ignorées ;
    - appels plus rapprochés que `min_interval` secondes ignorés,
      sauf 100 qui passe toujours la première fois.
    """

    def __init__(
        self,
        callback: ProgressHook,
        min_interval: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._callback = callback
        self._min_interval = float(min_interval)
        self._clock = clock
        self._last_value: Optional[int] = None
        self._last_time: Optional[float] = None

    def __call__(self, percent: int) -> None:
        value = min(100, max(0, int(percent)))
        if value == self._last_value:
            return
        now = self._clock()
        if (
            value != 100
            and self._last_time is not None
            and now - self._last_time < self._min_interval
        ):
            return
        self._last_value = value
        self._last_time = now
        self._callback(value)
