from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pitchscope_dsp.types.schemas import PitchEstimateModel


@dataclass(frozen=True)
class PitchEstimate:
    frequency: float       # Hz, 0.0 = aucune hauteur détectée
    probability: float     # confiance ; hors [0,1] → signal dégénéré

    @classmethod
    def undetected(cls) -> "PitchEstimate":
        """Sentinelle {0, 0} : pas de hauteur, ou calcul en échec."""
        return cls(frequency=0.0, probability=0.0)

    @property
    def detected(self) -> bool:
        return self.frequency > 0.0

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.frequency) and math.isfinite(self.probability)

    def to_model(self) -> "PitchEstimateModel":
        from pitchscope_dsp.types.schemas import PitchEstimateModel

        return PitchEstimateModel(frequency=self.frequency, probability=self.probability)


@dataclass(frozen=True)
class LagRange:
    tau_min: int   # inclus
    tau_max: int   # exclu

    @property
    def span(self) -> int:
        return self.tau_max - self.tau_min

    @property
    def is_empty(self) -> bool:
        return self.tau_max <= self.tau_min


@dataclass(frozen=True)
class ThresholdSearch:
    lag: int                 # lag entier retenu (τ*)
    value: float             # CMNDF[τ*]
    below_threshold: bool    # False → repli sur le minimum global


@dataclass(frozen=True)
class PeakSearch:
    lag: int = 0             # 0 → aucun pic qualifié
    value: float = 0.0
    lags_scanned: int = 0    # instrumentation : nombre de lags inspectés
    early_exit: bool = False

    @property
    def found(self) -> bool:
        return self.lag > 0
