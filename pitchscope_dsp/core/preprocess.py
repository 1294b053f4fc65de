# pitchscope_dsp/core/preprocess.py
import numpy as np
import librosa
from typing import Literal, Sequence

from pitchscope_dsp.types.dataclasses import LagRange
from pitchscope_dsp.types.schemas import SampleBufferMeta

ChannelStrategy = Literal["first", "mono", "dominant"]


def select_channel_strategy(
    y: np.ndarray,
    strategy: ChannelStrategy = "first",
) -> np.ndarray:
    """
    Ramène un signal multi-canaux à un vecteur mono.

    Args:
        y: np.ndarray
            Signal brut (1D mono ou 2D canaux x échantillons).
        strategy: str
            - "first"    : canal 0 uniquement (comme la lecture du premier
                           canal d'un buffer audio décodé).
            - "mono"     : moyenne des canaux (librosa.to_mono).
            - "dominant" : canal de plus forte énergie RMS.
    """
    if y.ndim == 1:
        return y  # déjà mono

    if strategy == "first":
        return y[0]

    elif strategy == "mono":
        return librosa.to_mono(y)

    elif strategy == "dominant":
        rms_per_channel = [np.sqrt(np.mean(chan**2)) if chan.size else 0.0 for chan in y]
        return y[int(np.argmax(rms_per_channel))]

    else:
        raise ValueError(f"Unknown strategy '{strategy}'")


def as_sample_buffer(
    samples: Sequence[float] | np.ndarray,
    channel: ChannelStrategy = "first",
) -> np.ndarray:
    """
    Convertit l'entrée de l'appelant en buffer mono float64, C-contigu,
    en lecture seule. Le tableau de l'appelant n'est jamais modifié.
    """
    y = np.asarray(samples)
    if y.ndim == 0 or y.ndim > 2:
        raise ValueError(f"Expected a 1D or 2D sample array, got ndim={y.ndim}")
    if y.ndim == 2:
        # librosa.to_mono exige des flottants
        y = select_channel_strategy(y.astype(np.float64, copy=False), strategy=channel)

    buf = np.array(y, dtype=np.float64, order="C", copy=True)
    buf.setflags(write=False)
    return buf


def describe_buffer(samples: np.ndarray, sample_rate: int) -> SampleBufferMeta:
    y = np.asarray(samples)
    channels = 1 if y.ndim < 2 else int(y.shape[0])
    length = int(y.shape[-1]) if y.ndim else 0
    return SampleBufferMeta(
        sample_rate=sample_rate, length=length, channels=channels, dtype=str(y.dtype)
    )


def validate_sample_rate(sample_rate) -> int:
    """Entier positif, sinon ValueError."""
    if isinstance(sample_rate, bool):
        raise ValueError(f"sample rate must be a positive integer, got {sample_rate!r}")
    try:
        sr = int(sample_rate)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"sample rate must be a positive integer, got {sample_rate!r}") from None
    if sr != sample_rate or sr <= 0:
        raise ValueError(f"sample rate must be a positive integer, got {sample_rate!r}")
    return sr


def validate_samples(x: np.ndarray, sample_rate: int, lags: LagRange | None = None) -> None:
    """
    Contrôle d'entrée commun aux deux estimateurs.
    Lève ValueError pour toute entrée dégénérée ; l'estimateur la convertit
    en sentinelle à sa frontière.
    """
    if x.size == 0:
        raise ValueError("empty sample buffer")
    if not np.all(np.isfinite(x)):
        raise ValueError("sample buffer contains NaN or Inf")
    if lags is not None and lags.is_empty:
        raise ValueError(f"empty lag range [{lags.tau_min}, {lags.tau_max}) at sr={sample_rate}")
