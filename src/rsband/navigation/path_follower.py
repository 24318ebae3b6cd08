"""
Pure Pursuit Path Follower

Converts the merged local plan into steering and velocity commands.
Backs the simulated tracking controller; any real controller can be
plugged in instead through ITrackingController.

How it works:
1. Find a "lookahead point" on the path ahead of the robot
2. Calculate the arc that connects the robot to that point
3. Convert arc radius to steering angle using Ackermann geometry

References:
- Pure Pursuit: "Implementation of the Pure Pursuit Path Tracking Algorithm"
  (R. Craig Coulter, CMU, 1992)
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np

from ..config import FollowerConfig
from ..geometry.transforms import Pose, normalize_angle


@dataclass
class ControlCommand:
    """Output control command for the vehicle."""
    steering_angle: float   # radians (positive = left)
    velocity: float         # m/s

    def angular_velocity(self, wheelbase: float) -> float:
        """Yaw rate of a bicycle model driving this command."""
        return self.velocity * math.tan(self.steering_angle) / wheelbase


class PurePursuitFollower:
    """
    Pure Pursuit path following controller.

    Usage:
        follower = PurePursuitFollower()

        # In control loop:
        cmd = follower.compute(pose, current_speed, local_plan)
    """

    def __init__(self, config: Optional[FollowerConfig] = None):
        self.config = config or FollowerConfig()

    def compute(
        self,
        pose: Pose,
        velocity: float,
        path: Sequence[Pose]
    ) -> ControlCommand:
        """
        Compute steering and velocity commands.

        Args:
            pose: Robot pose, same frame as path
            velocity: Current forward velocity (m/s)
            path: Local plan

        Returns:
            ControlCommand with steering angle and velocity
        """
        if not path or len(path) < 2:
            return ControlCommand(0.0, 0.0)

        x, y, theta = pose.x, pose.y, pose.heading

        goal = path[-1]
        dist_to_goal = math.hypot(goal.x - x, goal.y - y)
        if dist_to_goal < self.config.goal_tolerance:
            return ControlCommand(0.0, 0.0)

        closest_idx = self._find_closest_point(x, y, path)

        # Adaptive lookahead
        lookahead = self.config.lookahead_ratio * abs(velocity)
        lookahead = max(self.config.min_lookahead,
                        min(self.config.max_lookahead, lookahead))

        lookahead_point = self._find_lookahead_point(x, y, path, closest_idx, lookahead)

        steering = self._compute_steering(x, y, theta, lookahead_point, lookahead)

        # Slow down for sharp turns and near the end of the plan
        curvature_factor = 1.0 - 0.6 * abs(steering) / self.config.max_steering_angle
        goal_factor = min(1.0, dist_to_goal / self.config.slow_down_distance)
        target_velocity = max(self.config.min_speed,
                              self.config.max_speed * curvature_factor * goal_factor)

        return ControlCommand(steering, target_velocity)

    def _find_closest_point(self, x: float, y: float, path: Sequence[Pose]) -> int:
        """Find index of closest point on path."""
        # The local plan is rebuilt every cycle, search all of it
        points = np.array([[p.x, p.y] for p in path])
        dists = np.sum((points - np.array([x, y]))**2, axis=1)
        return int(np.argmin(dists))

    def _find_lookahead_point(
        self,
        x: float, y: float,
        path: Sequence[Pose],
        start_idx: int,
        lookahead: float
    ) -> Tuple[float, float]:
        """
        Find the point on path at lookahead distance.

        Interpolates between path points; falls back to the last point.
        """
        robot = np.array([x, y])
        for i in range(start_idx, len(path) - 1):
            p1 = np.array([path[i].x, path[i].y])
            p2 = np.array([path[i + 1].x, path[i + 1].y])

            # Intersection of circle (center=robot, radius=lookahead)
            # with segment p1-p2
            d = p2 - p1
            f = p1 - robot

            a = np.dot(d, d)
            if a == 0:
                continue
            b = 2 * np.dot(f, d)
            c = np.dot(f, f) - lookahead**2

            discriminant = b*b - 4*a*c
            if discriminant < 0:
                continue

            sqrt_disc = math.sqrt(discriminant)
            t1 = (-b - sqrt_disc) / (2*a)
            t2 = (-b + sqrt_disc) / (2*a)

            # Furthest intersection on the segment
            for t in (t2, t1):
                if 0 <= t <= 1:
                    point = p1 + t * d
                    return (float(point[0]), float(point[1]))

        return (path[-1].x, path[-1].y)

    def _compute_steering(
        self,
        x: float, y: float, theta: float,
        target: Tuple[float, float],
        lookahead: float
    ) -> float:
        """
        Steering angle from Pure Pursuit geometry.

        steering_angle = atan(2 * L * sin(alpha) / lookahead_distance)
        """
        dx = target[0] - x
        dy = target[1] - y

        alpha = normalize_angle(math.atan2(dy, dx) - theta)

        dist = math.hypot(dx, dy)
        if dist < 0.01:
            return 0.0

        curvature = 2.0 * math.sin(alpha) / max(dist, lookahead)
        steering = math.atan(self.config.wheelbase * curvature)

        return max(-self.config.max_steering_angle,
                   min(self.config.max_steering_angle, steering))
