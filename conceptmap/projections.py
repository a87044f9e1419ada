"""Projection policies turning a view mode into positional force targets."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence, Tuple, Union

import numpy as np

from .model import ConceptNode

Coord = Tuple[float, float]

DEFAULT_YEAR_DOMAIN: Tuple[float, float] = (1800.0, 2025.0)
DEFAULT_TIMELINE_MARGIN = 50.0


class ProjectionMode(str, enum.Enum):
    NETWORK = "network"
    TIMELINE = "timeline"


@dataclass(frozen=True)
class YearScale:
    """Linear, clamped map from years onto logical x coordinates."""

    domain: Tuple[float, float] = DEFAULT_YEAR_DOMAIN
    range: Tuple[float, float] = (-350.0, 350.0)

    def __post_init__(self) -> None:
        if self.domain[1] <= self.domain[0]:
            raise ValueError(f"year domain must be increasing, got {self.domain}")

    @classmethod
    def for_width(
        cls,
        width: float,
        *,
        margin: float = DEFAULT_TIMELINE_MARGIN,
        domain: Tuple[float, float] = DEFAULT_YEAR_DOMAIN,
    ) -> "YearScale":
        half = max(float(width) / 2.0 - margin, 1.0)
        return cls(domain=(float(domain[0]), float(domain[1])), range=(-half, half))

    def __call__(self, year: float) -> float:
        lo, hi = self.domain
        t = (min(max(float(year), lo), hi) - lo) / (hi - lo)
        return self.range[0] + t * (self.range[1] - self.range[0])

    def invert(self, x: float) -> float:
        r0, r1 = self.range
        if math.isclose(r0, r1):
            return self.domain[0]
        t = (float(x) - r0) / (r1 - r0)
        t = min(max(t, 0.0), 1.0)
        return self.domain[0] + t * (self.domain[1] - self.domain[0])

    @property
    def resolution(self) -> float:
        """Logical x distance covered by one year."""

        return abs(self.range[1] - self.range[0]) / (self.domain[1] - self.domain[0])

    def ticks(self, count: int = 10) -> List[int]:
        """Round years for an axis, roughly ``count`` of them."""

        lo, hi = self.domain
        raw = (hi - lo) / max(count, 1)
        magnitude = 10 ** math.floor(math.log10(raw))
        step = magnitude
        for factor in (1, 2, 5, 10):
            step = factor * magnitude
            if step >= raw:
                break
        first = math.ceil(lo / step) * step
        years: List[int] = []
        value = first
        while value <= hi + 1e-9:
            years.append(int(round(value)))
            value += step
        return years


@dataclass(frozen=True)
class PositionalTargets:
    """Per node target coordinates and pull strengths, aligned with the input order."""

    x: np.ndarray
    y: np.ndarray
    strength_x: np.ndarray
    strength_y: np.ndarray

    def __len__(self) -> int:
        return int(self.x.shape[0])


class ProjectionPolicy:
    """Base class: concrete policies describe where nodes are pulled."""

    mode: ClassVar[ProjectionMode]
    center: Coord
    recenter: bool = False

    def target_for(self, node: ConceptNode) -> Tuple[float, float, float, float]:
        raise NotImplementedError

    def targets(self, nodes: Sequence[ConceptNode]) -> PositionalTargets:
        rows = [self.target_for(node) for node in nodes]
        if not rows:
            empty = np.zeros(0, dtype=float)
            return PositionalTargets(empty, empty.copy(), empty.copy(), empty.copy())
        arr = np.asarray(rows, dtype=float)
        return PositionalTargets(arr[:, 0].copy(), arr[:, 1].copy(), arr[:, 2].copy(), arr[:, 3].copy())

    def seed_anchor(self) -> Coord:
        return self.center

    def order_keys(self, nodes: Sequence[ConceptNode]) -> Optional[np.ndarray]:
        """Per node keys that x must not decrease along, or ``None`` for no ordering.

        NaN marks a node exempt from the ordering.
        """

        return None


@dataclass(frozen=True)
class NetworkProjection(ProjectionPolicy):
    """Free-form layout: a weak pull toward the view centre plus mean-shift centring."""

    mode: ClassVar[ProjectionMode] = ProjectionMode.NETWORK
    center: Coord = (0.0, 0.0)
    strength: float = 0.01
    recenter: bool = True

    def target_for(self, node: ConceptNode) -> Tuple[float, float, float, float]:
        return (self.center[0], self.center[1], self.strength, self.strength)


@dataclass(frozen=True)
class TimelineProjection(ProjectionPolicy):
    """Chronological layout: year drives x strongly, a weak pull flattens y."""

    mode: ClassVar[ProjectionMode] = ProjectionMode.TIMELINE
    scale: YearScale = field(default_factory=YearScale)
    x_strength: float = 0.8
    y_strength: float = 0.3
    baseline: float = 0.0
    default_year: Optional[float] = None
    recenter: bool = False

    @property
    def center(self) -> Coord:  # type: ignore[override]
        return ((self.scale.range[0] + self.scale.range[1]) / 2.0, self.baseline)

    @property
    def fallback_year(self) -> float:
        """Year used for undated nodes: the domain's right edge unless overridden."""

        if self.default_year is not None:
            return float(self.default_year)
        return self.scale.domain[1]

    def year_of(self, node: ConceptNode) -> float:
        return float(node.year) if node.year is not None else self.fallback_year

    def target_x(self, node: ConceptNode) -> float:
        return self.scale(self.year_of(node))

    def target_for(self, node: ConceptNode) -> Tuple[float, float, float, float]:
        return (self.target_x(node), self.baseline, self.x_strength, self.y_strength)

    def order_keys(self, nodes: Sequence[ConceptNode]) -> Optional[np.ndarray]:
        # Undated nodes all share the fallback year and are left unordered.
        return np.array([np.nan if node.year is None else float(node.year) for node in nodes], dtype=float)


Projection = Union[NetworkProjection, TimelineProjection]


def make_projection(
    mode: Union[ProjectionMode, str],
    *,
    width: float = 800.0,
    center: Coord = (0.0, 0.0),
    default_year: Optional[float] = None,
) -> Projection:
    """Build the policy for ``mode`` sized for a viewport ``width`` logical units wide."""

    resolved = ProjectionMode(mode)
    if resolved is ProjectionMode.TIMELINE:
        return TimelineProjection(scale=YearScale.for_width(width), baseline=center[1], default_year=default_year)
    return NetworkProjection(center=(float(center[0]), float(center[1])))


def centering_shift(positions: np.ndarray, center: Coord) -> np.ndarray:
    """Translation moving the centroid of ``positions`` onto ``center``."""

    if positions.size == 0:
        return np.zeros(2, dtype=float)
    return np.asarray(center, dtype=float) - positions.mean(axis=0)


__all__ = [
    "NetworkProjection",
    "PositionalTargets",
    "Projection",
    "ProjectionMode",
    "ProjectionPolicy",
    "TimelineProjection",
    "YearScale",
    "centering_shift",
    "make_projection",
]
