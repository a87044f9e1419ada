"""Force kernels acting on a :class:`SimulationState`.

Velocity forces add to ``state.velocities`` scaled by ``alpha``; the two
positional operators (centring and overlap resolution) move
``state.positions`` directly. Pinned axes are left to the caller, which
re-applies pins after every kernel.
"""

from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np
from scipy.optimize import isotonic_regression
from scipy.spatial import cKDTree

from ..logging_utils import apply_debug_logging
from ..projections import PositionalTargets, centering_shift
from .math_utils import jiggle, pairwise_deltas, unit_or_jiggle, zero_non_finite
from .model import SimulationConfig, SimulationState

logger = logging.getLogger(__name__)


def apply_many_body(state: SimulationState, alpha: float, config: SimulationConfig, rng: np.random.Generator) -> None:
    """Pairwise inverse-distance repulsion weighted by each source node's charge."""

    n = len(state)
    if n < 2:
        return
    dx, dy = pairwise_deltas(state.positions)

    # Coincident pairs get an antisymmetric jiggle so the pair splits apart.
    coincident = np.triu((dx == 0.0) & (dy == 0.0), k=1)
    if coincident.any():
        count = int(coincident.sum())
        jx = jiggle(rng, config.jiggle, count)
        jy = jiggle(rng, config.jiggle, count)
        rows, cols = np.nonzero(coincident)
        dx[rows, cols] = jx
        dx[cols, rows] = -jx
        dy[rows, cols] = jy
        dy[cols, rows] = -jy

    dist_sq = dx * dx + dy * dy
    min_sq = config.charge_distance_min * config.charge_distance_min
    with np.errstate(invalid="ignore"):
        dist_sq = np.where(dist_sq < min_sq, np.sqrt(min_sq * dist_sq), dist_sq)
    np.fill_diagonal(dist_sq, np.inf)
    if math.isfinite(config.charge_distance_max):
        dist_sq = np.where(dist_sq >= config.charge_distance_max ** 2, np.inf, dist_sq)

    with np.errstate(divide="ignore", invalid="ignore"):
        weight = state.charges[None, :] * alpha / dist_sq
    zero_non_finite(weight)
    state.velocities[:, 0] += (dx * weight).sum(axis=1)
    state.velocities[:, 1] += (dy * weight).sum(axis=1)


def apply_links(state: SimulationState, alpha: float, config: SimulationConfig, rng: np.random.Generator) -> None:
    """Springs toward each link's rest length, split between endpoints by degree bias."""

    links = state.links
    if len(links) == 0:
        return
    pos = state.positions
    vel = state.velocities
    for _ in range(max(1, config.link_iterations)):
        for k in range(len(links)):
            s = int(links.source[k])
            t = int(links.target[k])
            dx = pos[t, 0] + vel[t, 0] - pos[s, 0] - vel[s, 0]
            dy = pos[t, 1] + vel[t, 1] - pos[s, 1] - vel[s, 1]
            if dx == 0.0:
                dx = float(jiggle(rng, config.jiggle))
            if dy == 0.0:
                dy = float(jiggle(rng, config.jiggle))
            length = math.hypot(dx, dy)
            scale = (length - links.rest_length[k]) / length * alpha * links.strength[k]
            dx *= scale
            dy *= scale
            bias = links.bias[k]
            vel[t, 0] -= dx * bias
            vel[t, 1] -= dy * bias
            vel[s, 0] += dx * (1.0 - bias)
            vel[s, 1] += dy * (1.0 - bias)


def _candidate_pairs(points: np.ndarray, reach: float) -> np.ndarray:
    if points.shape[0] < 2 or reach <= 0.0:
        return np.zeros((0, 2), dtype=int)
    tree = cKDTree(points)
    return tree.query_pairs(r=reach, output_type="ndarray")


def apply_collision(state: SimulationState, config: SimulationConfig, rng: np.random.Generator) -> None:
    """Soft collision on predicted positions; larger nodes are pushed less."""

    n = len(state)
    if n < 2 or config.collision_strength <= 0.0:
        return
    radii = state.radii + config.collision_padding
    predicted = state.positions + state.velocities
    pairs = _candidate_pairs(predicted, 2.0 * float(radii.max()))
    vel = state.velocities
    pos = state.positions
    for i, j in pairs:
        r = radii[i] + radii[j]
        dx = (pos[i, 0] + vel[i, 0]) - (pos[j, 0] + vel[j, 0])
        dy = (pos[i, 1] + vel[i, 1]) - (pos[j, 1] + vel[j, 1])
        dist_sq = dx * dx + dy * dy
        if dist_sq >= r * r:
            continue
        if dx == 0.0:
            dx = float(jiggle(rng, config.jiggle))
            dist_sq += dx * dx
        if dy == 0.0:
            dy = float(jiggle(rng, config.jiggle))
            dist_sq += dy * dy
        dist = math.sqrt(dist_sq)
        scale = (r - dist) / dist * config.collision_strength
        dx *= scale
        dy *= scale
        ri_sq = radii[i] * radii[i]
        rj_sq = radii[j] * radii[j]
        share = rj_sq / (ri_sq + rj_sq)
        vel[i, 0] += dx * share
        vel[i, 1] += dy * share
        vel[j, 0] -= dx * (1.0 - share)
        vel[j, 1] -= dy * (1.0 - share)


def apply_positional(state: SimulationState, targets: PositionalTargets, alpha: float) -> None:
    """Pull each node toward its projection target (d3 ``forceX``/``forceY``)."""

    if len(targets) != len(state) or len(state) == 0:
        return
    state.velocities[:, 0] += (targets.x - state.positions[:, 0]) * targets.strength_x * alpha
    state.velocities[:, 1] += (targets.y - state.positions[:, 1]) * targets.strength_y * alpha


def apply_centering(state: SimulationState, center: Tuple[float, float]) -> None:
    """Translate free axes so the layout's centroid sits on ``center``."""

    if len(state) == 0:
        return
    shift = centering_shift(state.positions, center)
    free = ~state.pinned_mask()
    state.positions += free * shift[None, :]


def enforce_order(state: SimulationState, keys: np.ndarray) -> int:
    """Make x non-decreasing along ``keys`` with the least squared movement.

    Nodes with a NaN key or a pinned x are left out. Equal keys impose no
    order among themselves. Returns the number of nodes moved.
    """

    if keys.shape[0] != len(state):
        return 0
    free = np.flatnonzero(np.isfinite(keys) & np.isnan(state.pins[:, 0]))
    if free.size < 2:
        return 0
    xs = state.positions[free, 0]
    order = np.lexsort((xs, keys[free]))
    ordered = xs[order]
    if np.all(np.diff(ordered) >= 0.0):
        return 0
    fitted = isotonic_regression(ordered).x
    moved = int(np.count_nonzero(fitted != ordered))
    state.positions[free[order], 0] = fitted
    return moved


def _separate_vertically(
    pos: np.ndarray, i: int, j: int, r: float, mobility: np.ndarray, rng: np.random.Generator
) -> bool:
    """Move ``i`` and ``j`` apart along y only, keeping both x coordinates.

    Returns ``False`` when neither node may move along y.
    """

    total = mobility[i, 1] + mobility[j, 1]
    if total <= 0.0:
        return False
    dx = pos[j, 0] - pos[i, 0]
    dy = pos[j, 1] - pos[i, 1]
    needed = math.sqrt(max(r * r - dx * dx, 0.0))
    gap = needed - abs(dy)
    if gap <= 0.0:
        return True
    if dy > 0.0:
        sign = 1.0
    elif dy < 0.0:
        sign = -1.0
    else:
        sign = 1.0 if rng.random() < 0.5 else -1.0
    share = mobility[i, 1] / total
    pos[i, 1] -= sign * gap * share
    pos[j, 1] += sign * gap * (1.0 - share)
    return True


def resolve_overlaps(
    state: SimulationState,
    config: SimulationConfig,
    rng: np.random.Generator,
    *,
    vertical: bool = False,
) -> int:
    """Push overlapping discs apart by alternating projection sweeps.

    Pinned axes have infinite mass: a node pinned on both axes never moves and
    its partner absorbs the whole correction. With ``vertical`` set, pairs are
    separated along y so the x order of the nodes is kept; only pairs with
    both y axes pinned fall back to the centre line. Returns the number of
    sweeps run.
    """

    n = len(state)
    if n < 2:
        return 0
    radii = state.radii + config.collision_padding
    reach = 2.0 * float(radii.max())
    pinned = state.pinned_mask()
    mobility = (~pinned).astype(float)
    pos = state.positions
    sweeps = 0
    for _ in range(max(1, config.collision_sweeps)):
        sweeps += 1
        moved = False
        for i, j in _candidate_pairs(pos, reach):
            r = radii[i] + radii[j]
            ux, uy, dist = unit_or_jiggle(pos[j, 0] - pos[i, 0], pos[j, 1] - pos[i, 1], rng, config.jiggle)
            overlap = r - dist
            if overlap <= config.collision_tolerance:
                continue
            if vertical and _separate_vertically(pos, i, j, r, mobility, rng):
                moved = True
                continue
            wi = mobility[i] * np.array([ux, uy])
            wj = mobility[j] * np.array([ux, uy])
            # Project the correction onto the axes each node may move along.
            along_i = float(np.dot(wi, (ux, uy)))
            along_j = float(np.dot(wj, (ux, uy)))
            total = along_i + along_j
            if total <= 1e-12:
                continue
            step = overlap / total
            pos[i] -= wi * step
            pos[j] += wj * step
            moved = True
        if not moved:
            break
    state.apply_pins()
    return sweeps


def integrate(state: SimulationState, config: SimulationConfig) -> None:
    """Damp velocities by friction and advance positions; pinned axes stay put."""

    state.velocities *= config.friction
    state.positions += state.velocities
    state.apply_pins()


apply_debug_logging(globals(), logger=logger)
