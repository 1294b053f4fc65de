# pitchscope_dsp/types/schemas.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# ────────────────────────────────────────────────────────────────────────────
# Métadonnées du buffer d'entrée
# ────────────────────────────────────────────────────────────────────────────
class SampleBufferMeta(BaseModel):
    sample_rate: int = Field(..., description="Fréquence d'échantillonnage (Hz)")
    length: int = Field(..., ge=0, description="Nombre d'échantillons (mono)")
    channels: int = Field(1, ge=1, description="Nombre de canaux de la source")
    dtype: str = Field("float64", description="Type du buffer analysé")

    @field_validator("sample_rate")
    @classmethod
    def validate_sample_rate(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Unsupported sample rate: {v}")
        return v

    @computed_field
    @property
    def duration(self) -> float:
        return self.length / self.sample_rate


# ────────────────────────────────────────────────────────────────────────────
# Contrat de sortie (vers l'UI / la visualisation)
# ────────────────────────────────────────────────────────────────────────────
class PitchEstimateModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    frequency: float = Field(..., ge=0.0, description="Fréquence estimée (Hz), 0 = pas de hauteur")
    probability: float = Field(..., description="Confiance, normalement dans [0, 1]")

    @computed_field
    @property
    def detected(self) -> bool:
        return self.frequency > 0.0
