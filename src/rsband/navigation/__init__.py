"""
Navigation module for the band to nonholonomic path pipeline.

Components:
- PathWindowSynchronizer: keeps the band in step with the global plan window
- ConversionStrategySelector: band -> nonholonomic path strategies
- PathStitcher: merges converted path and unreached band poses
- interpolate_orientations: rebuilds headings of band poses
- GoalEvaluator: tolerance based goal check
- PurePursuitFollower: path following for the simulated controller
"""

from .window_sync import PathWindowSynchronizer, WindowUpdate, compute_increment
from .conversion import ConversionStrategySelector, ConversionResult, PlanningBudget
from .stitching import PathStitcher
from .orientation import interpolate_orientations, needs_heading_fallback
from .goal import GoalEvaluator, GoalCheck, goal_position_distance, goal_orientation_difference
from .path_follower import PurePursuitFollower, ControlCommand
