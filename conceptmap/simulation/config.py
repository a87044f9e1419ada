"""Process-wide default simulation settings."""

from __future__ import annotations

import copy
import dataclasses
import logging

from .model import SimulationConfig

logger = logging.getLogger(__name__)

_SIMULATION_CONFIG = SimulationConfig()


def get_simulation_config(**overrides) -> SimulationConfig:
    """Copy of the default config, optionally with some fields replaced.

    Unknown field names raise ``TypeError``; invalid values raise
    ``ValueError`` from the config's own validation.
    """

    config = copy.deepcopy(_SIMULATION_CONFIG)
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return config


def set_simulation_config(config: SimulationConfig) -> None:
    global _SIMULATION_CONFIG
    if not isinstance(config, SimulationConfig):
        raise TypeError(f"expected SimulationConfig, got {type(config).__name__}")
    _SIMULATION_CONFIG = copy.deepcopy(config)
    logger.debug("Default simulation config replaced: %s", config)
