# pitchscope_dsp/utils/serialize.py
from dataclasses import is_dataclass, asdict
from typing import Iterable

from pitchscope_dsp.types.dataclasses import PitchEstimate


def safe_asdict(obj):
    """
    Sérialisation robuste : dataclass, Pydantic ou dict.
    """
    if obj is None:
        return None
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if hasattr(obj, "model_dump"):  # Pydantic v2
        return obj.model_dump()
    if isinstance(obj, dict):
        return {k: safe_asdict(v) if _is_structured(v) else v for k, v in obj.items()}
    raise TypeError(f"Cannot serialise {type(obj).__name__}")


def _is_structured(v) -> bool:
    return (is_dataclass(v) and not isinstance(v, type)) or hasattr(v, "model_dump") or isinstance(v, dict)


def estimates_to_list(estimates: Iterable[PitchEstimate] | PitchEstimate) -> list[dict]:
    """Forme attendue par l'UI : [{"frequency": f, "probability": p}, ...]."""
    if isinstance(estimates, PitchEstimate):
        estimates = [estimates]
    return [{"frequency": float(e.frequency), "probability": float(e.probability)} for e in estimates]
