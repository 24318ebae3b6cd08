"""
RSBand local planner.

Keeps an elastic band in step with a global plan, converts it into a
path a car-like robot can drive and merges both into the local plan
handed to a tracking controller.

Usage:
    from rsband import RSBandPlanner, PlannerConfig

    planner = RSBandPlanner(PlannerConfig(strategy=StrategyMode.RECEDING_END))
    planner.initialize(gateway, band, connector, controller, obstacle_layers)
    planner.set_plan(global_plan)
    cmd, ok = planner.compute_velocity_command()
"""

from .config import (
    PlannerConfig,
    ConnectorConfig,
    FollowerConfig,
    StrategyMode,
    FinalHeadingPolicy,
    ConfigurationError,
    load_config,
)
from .geometry import Pose, Path
from .core import RSBandPlanner, PlannerState
