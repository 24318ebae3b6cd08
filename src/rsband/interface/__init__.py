"""
Abstract interfaces for the planner collaborators.

These interfaces let the same planner run with the real transform
services, band optimizer, nonholonomic planner and tracking controller,
or with the simulated ones.
"""

from .collaborators import (
    IPoseTransformGateway,
    IObstacleLayers,
    IDeformableBand,
    INonholonomicPlanner,
    ITrackingController,
    BandEnd,
    VelocityCommand,
    WindowCounters,
)

from .simulation_adapters import (
    FrameTransformGateway,
    SimulatedObstacleLayers,
    SimulatedElasticBand,
    ArcConnector,
    PurePursuitController,
)

__all__ = [
    # Interfaces
    'IPoseTransformGateway',
    'IObstacleLayers',
    'IDeformableBand',
    'INonholonomicPlanner',
    'ITrackingController',
    'BandEnd',
    'VelocityCommand',
    'WindowCounters',
    # Simulation adapters
    'FrameTransformGateway',
    'SimulatedObstacleLayers',
    'SimulatedElasticBand',
    'ArcConnector',
    'PurePursuitController',
]
