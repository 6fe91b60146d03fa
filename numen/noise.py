"""Deterministic trigonometric noise.

These helpers replace a random generator wherever the engine needs "noise"
that must stay identical for every read inside one tick. Each output depends
only on its arguments.
"""

from __future__ import annotations

import math

import numpy as np


def sin_unit(seed: float, *, scale: float = 1.0, offset: float = 0.0) -> float:
    """Map ``seed`` into ``[0, 1]`` via ``sin(seed*scale + offset)``."""
    return math.sin(seed * scale + offset) * 0.5 + 0.5


def vector_jitter(values: np.ndarray, *, frequency: float = 1000.0, amplitude: float = 0.02) -> np.ndarray:
    """Per-component jitter ``sin(v_i * frequency + i) * amplitude``."""
    arr = np.asarray(values, dtype=float).reshape(-1)
    return np.sin(arr * frequency + np.arange(arr.size, dtype=float)) * amplitude


__all__ = ["sin_unit", "vector_jitter"]
