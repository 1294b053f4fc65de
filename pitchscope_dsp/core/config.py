# pitchscope_dsp/core/config.py
"""
Paramètres de réglage des estimateurs de hauteur.

Toutes les constantes de l'algorithme (seuil YIN, pas de décimation,
fenêtre locale, plancher de pic, ...) sont regroupées ici, avec leurs
valeurs par défaut documentées, pour pouvoir être testées et surchargées.
"""
from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pitchscope_dsp.types.dataclasses import LagRange


# ────────────────────────────────────────────────────────────────────────────
# Estimateur précis (YIN)
# ────────────────────────────────────────────────────────────────────────────
class PreciseConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fmin: float = Field(50.0, gt=0, description="Plus basse fondamentale cherchée (Hz) → τ_max")
    fmax: float = Field(1000.0, gt=0, description="Plus haute fondamentale cherchée (Hz) → τ_min")
    threshold: float = Field(
        0.1, gt=0, le=1.0, description="Seuil absolu sur la CMNDF pour accepter un creux"
    )
    decimation: int = Field(
        8,
        ge=1,
        description=(
            "Pas d'échantillonnage de la somme des différences. "
            "1 = exact mais lent ; 8 = compromis précision/latence par défaut"
        ),
    )
    local_window: int = Field(
        10, ge=1, description="Nombre de lags examinés à partir du premier candidat (inclus)"
    )
    escape_ratio: float = Field(
        1.2, ge=1.0, description="Arrêt du raffinement local si CMNDF > ratio × meilleur"
    )
    follow_descent: bool = Field(
        True,
        description=(
            "Au-delà de `local_window`, poursuit la descente tant que la CMNDF décroît "
            "(périodes longues). False : fenêtre locale strictement bornée"
        ),
    )
    progress_interval: int = Field(
        100, ge=1, description="Cadence (en lags) des notifications de progression"
    )
    full_cumulative_mean: bool = Field(
        True,
        description=(
            "Calcule aussi d[1..τ_min) pour la moyenne cumulée de la CMNDF. "
            "False : d = 0 sous τ_min (les lags proches de τ_min sont alors écrasés)"
        ),
    )

    @model_validator(mode="after")
    def _check_band(self) -> "PreciseConfig":
        if self.fmin >= self.fmax:
            raise ValueError(f"fmin ({self.fmin}) must be < fmax ({self.fmax})")
        return self

    def lag_range(self, sample_rate: int) -> LagRange:
        return lag_range_for(sample_rate, self.fmin, self.fmax)


# ────────────────────────────────────────────────────────────────────────────
# Estimateur rapide (autocorrélation)
# ────────────────────────────────────────────────────────────────────────────
class FastConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    fmin: float = Field(80.0, gt=0, description="Plus basse fondamentale cherchée (Hz)")
    fmax: float = Field(800.0, gt=0, description="Plus haute fondamentale cherchée (Hz)")
    window_size: int = Field(
        4096, ge=1, description="Taille max de la fenêtre d'analyse (troncature, jamais de padding)"
    )
    stride: int = Field(4, ge=1, description="Pas de la moyenne des produits décalés")
    peak_floor: float = Field(0.5, gt=0, le=1.0, description="Valeur minimale d'un pic retenu")
    early_exit: float = Field(
        0.9, gt=0, le=1.0, description="Pic jugé suffisant : arrêt immédiat du balayage"
    )

    @model_validator(mode="after")
    def _check_band(self) -> "FastConfig":
        if self.fmin >= self.fmax:
            raise ValueError(f"fmin ({self.fmin}) must be < fmax ({self.fmax})")
        return self

    def lag_range(self, sample_rate: int) -> LagRange:
        return lag_range_for(sample_rate, self.fmin, self.fmax)


DEFAULT_PRECISE_CONFIG = PreciseConfig()
DEFAULT_FAST_CONFIG = FastConfig()


def lag_range_for(sample_rate: int, fmin: float, fmax: float) -> LagRange:
    """
    τ_max = floor(sr / fmin), τ_min = floor(sr / fmax).
    τ_min est borné à 1 : un lag nul n'est jamais un candidat.
    """
    tau_max = int(math.floor(sample_rate / fmin))
    tau_min = max(1, int(math.floor(sample_rate / fmax)))
    return LagRange(tau_min=tau_min, tau_max=tau_max)
