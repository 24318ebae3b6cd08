"""
Goal check with position and heading tolerances.
"""

import math
from dataclasses import dataclass

from ..geometry.transforms import Pose, angle_difference


@dataclass(frozen=True)
class GoalCheck:
    """Result of a goal evaluation."""
    distance: float
    yaw_difference: float
    reached: bool


def goal_position_distance(robot: Pose, goal: Pose) -> float:
    """Planar distance from the robot to the goal position."""
    return math.hypot(goal.x - robot.x, goal.y - robot.y)


def goal_orientation_difference(robot: Pose, goal: Pose) -> float:
    """Shortest signed angle from the robot heading to the goal heading."""
    return angle_difference(robot.heading, goal.heading)


class GoalEvaluator:
    """
    Tolerance based goal check.

    The goal is reached when both the distance and the absolute heading
    difference are strictly below their tolerances.
    """

    def evaluate(
        self,
        robot: Pose,
        goal: Pose,
        xy_goal_tolerance: float,
        yaw_goal_tolerance: float
    ) -> GoalCheck:
        dist = goal_position_distance(robot, goal)
        yaw_diff = goal_orientation_difference(robot, goal)
        reached = dist < xy_goal_tolerance and abs(yaw_diff) < yaw_goal_tolerance
        return GoalCheck(dist, yaw_diff, reached)

    def is_reached(
        self,
        robot: Pose,
        goal: Pose,
        xy_goal_tolerance: float,
        yaw_goal_tolerance: float
    ) -> bool:
        return self.evaluate(robot, goal, xy_goal_tolerance, yaw_goal_tolerance).reached
