# pitchscope_dsp/utils/log.py
import logging
import os

# ==== Debug switch (0/1 via env) ==============================================
PITCHSCOPE_DEBUG = bool(int(os.getenv("PITCHSCOPE_DEBUG", "0")))


def get_logger(name: str) -> logging.Logger:
    """Logger du module, sans handler : la configuration appartient à l'appelant."""
    return logging.getLogger(name)


def debug_trace(logger: logging.Logger, prefix: str, msg: str, debug: bool | None = None) -> None:
    """
    Trace verbeuse, activée par PITCHSCOPE_DEBUG=1 ou explicitement via `debug`.
    Émise au niveau INFO pour rester visible avec une config logging par défaut.
    """
    enabled = PITCHSCOPE_DEBUG if debug is None else debug
    if enabled:
        logger.info("%s %s", prefix, msg)
