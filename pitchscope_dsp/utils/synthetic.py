# pitchscope_dsp/utils/synthetic.py
"""
Générateurs de signaux synthétiques (source de buffers pour les tests et
les démonstrations). Tous renvoient un np.ndarray float64 de
floor(sr × duration) échantillons.
"""
import numpy as np
from scipy import signal as sps

SAMPLE_RATE = 44100


def _time_axis(duration: float, sr: int) -> np.ndarray:
    n = int(np.floor(sr * duration))
    return np.arange(n, dtype=np.float64) / sr


def sine_wave(frequency, amplitude=1.0, duration=1.0, sr=SAMPLE_RATE, phase=0.0):
    """amplitude · sin(2π f t + phase)."""
    t = _time_axis(duration, sr)
    return amplitude * np.sin(2 * np.pi * frequency * t + phase)


def cosine_wave(frequency, amplitude=1.0, duration=1.0, sr=SAMPLE_RATE, phase=0.0):
    t = _time_axis(duration, sr)
    return amplitude * np.cos(2 * np.pi * frequency * t + phase)


def square_wave(frequency, amplitude=1.0, duration=1.0, sr=SAMPLE_RATE, phase=0.0):
    """+A sur la première moitié de période, -A sur la seconde (harmoniques impaires)."""
    t = _time_axis(duration, sr)
    return amplitude * sps.square(2 * np.pi * frequency * t + phase)


def sawtooth_wave(frequency, amplitude=1.0, duration=1.0, sr=SAMPLE_RATE, phase=0.0):
    """Rampe montante de -A à +A puis chute (toutes les harmoniques)."""
    t = _time_axis(duration, sr)
    return amplitude * sps.sawtooth(2 * np.pi * frequency * t + phase, width=1.0)


def inverse_sawtooth_wave(frequency, amplitude=1.0, duration=1.0, sr=SAMPLE_RATE, phase=0.0):
    t = _time_axis(duration, sr)
    return amplitude * sps.sawtooth(2 * np.pi * frequency * t + phase, width=0.0)


def triangle_wave(frequency, amplitude=1.0, duration=1.0, sr=SAMPLE_RATE, phase=0.0):
    t = _time_axis(duration, sr)
    return amplitude * sps.sawtooth(2 * np.pi * frequency * t + phase, width=0.5)


def white_noise(duration=1.0, sr=SAMPLE_RATE, amplitude=1.0, seed=None):
    """Bruit uniforme dans [-A, A] ; `seed` pour la reproductibilité."""
    rng = np.random.default_rng(seed)
    n = int(np.floor(sr * duration))
    return amplitude * rng.uniform(-1.0, 1.0, size=n)


WAVE_GENERATORS = {
    "sine": sine_wave,
    "cosine": cosine_wave,
    "square": square_wave,
    "sawtooth": sawtooth_wave,
    "inverse_sawtooth": inverse_sawtooth_wave,
    "triangle": triangle_wave,
}


def get_wave_generator(wave_type: str):
    try:
        return WAVE_GENERATORS[wave_type]
    except KeyError:
        raise ValueError(f"Unknown wave type '{wave_type}'") from None
