from __future__ import annotations

import math
from typing import Tuple

import numpy as np

GOLDEN_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


def clamp_norm(vectors: np.ndarray, max_norm: float) -> np.ndarray:
    """Scale rows of an (N, 2) array down so no row is longer than ``max_norm``."""

    if vectors.size == 0 or not math.isfinite(max_norm):
        return vectors
    norms = np.linalg.norm(vectors, axis=1)
    over = norms > max_norm
    if over.any():
        vectors[over] *= (max_norm / norms[over])[:, None]
    return vectors


def zero_non_finite(values: np.ndarray) -> int:
    """Replace NaN/inf entries in place; returns how many were replaced."""

    bad = ~np.isfinite(values)
    count = int(bad.sum())
    if count:
        values[bad] = 0.0
    return count


def jiggle(rng: np.random.Generator, scale: float, size=None):
    """Tiny random offset used to split coincident points."""

    return (rng.random(size) - 0.5) * scale


def unit_or_jiggle(dx: float, dy: float, rng: np.random.Generator, scale: float) -> Tuple[float, float, float]:
    """Return ``(ux, uy, length)`` for a vector, picking a random direction when it vanishes."""

    length = math.hypot(dx, dy)
    if length > 1e-12:
        return dx / length, dy / length, length
    angle = float(rng.random()) * 2.0 * math.pi
    return math.cos(angle), math.sin(angle), 0.0


def golden_offset(k: int, radius: float) -> Tuple[float, float]:
    """k-th point of a phyllotaxis spiral around the origin."""

    r = radius * math.sqrt(0.5 + k)
    angle = k * GOLDEN_ANGLE
    return r * math.cos(angle), r * math.sin(angle)


def pairwise_deltas(positions: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """``dx[i, j] = x_j - x_i`` and likewise for y."""

    dx = positions[None, :, 0] - positions[:, None, 0]
    dy = positions[None, :, 1] - positions[:, None, 1]
    return dx, dy
