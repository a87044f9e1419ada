"""Force simulation façade: configuration, state and the tick-driven solver."""

from __future__ import annotations

import logging

from .config import get_simulation_config, set_simulation_config
from .engine import ForceSimulation
from .model import LinkArrays, SimulationConfig, SimulationState
from .seed import seed_positions

logger = logging.getLogger(__name__)


def settle(simulation: ForceSimulation, max_ticks: int = 10_000) -> int:
    """Run ``simulation`` to rest and return the number of ticks it took."""

    ticks = simulation.run_until_idle(max_ticks=max_ticks)
    if not simulation.is_idle:
        logger.warning("Simulation still active after %d tick(s), alpha=%.4f", ticks, simulation.alpha)
    return ticks


__all__ = [
    "ForceSimulation",
    "LinkArrays",
    "SimulationConfig",
    "SimulationState",
    "get_simulation_config",
    "seed_positions",
    "set_simulation_config",
    "settle",
]
