"""
Simulation adapters (PC).

Simple implementations of the collaborator interfaces so the planner
can run without the real transform services, band optimizer,
nonholonomic planner or tracking controller.
"""

import math
import time
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from ..config import ConnectorConfig, FollowerConfig
from ..geometry.transforms import (
    FrameManager, Path, Pose, Transform2D, angle_difference, normalize_angle,
    path_to_array
)
from ..navigation.path_follower import PurePursuitFollower
from .collaborators import (
    BandEnd, IDeformableBand, INonholonomicPlanner, IObstacleLayers,
    IPoseTransformGateway, ITrackingController, VelocityCommand, WindowCounters
)


class FrameTransformGateway(IPoseTransformGateway):
    """Transform gateway backed by a FrameManager and a settable robot pose."""

    def __init__(
        self,
        frames: Optional[FrameManager] = None,
        global_frame: str = "odom",
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            frames: Frame tree (default: 'map' and global_frame coincide)
            global_frame: Frame of the local window and the robot pose
            clock: Stamp source for the robot pose
        """
        if frames is None:
            frames = FrameManager()
            if global_frame != "map":
                frames.set_transform("map", global_frame, Transform2D.identity())
        self.frames = frames
        self._global_frame = global_frame
        self._clock = clock
        self._robot_pose: Optional[Pose] = None

    @property
    def global_frame(self) -> str:
        return self._global_frame

    def set_robot_pose(self, x: float, y: float, theta: float):
        """Update the robot pose, expressed in the global frame."""
        self._robot_pose = Pose(x, y, theta, self._global_frame, self._clock())

    def current_pose(self) -> Optional[Pose]:
        return self._robot_pose

    def transform_pose(self, pose: Pose, target_frame: str) -> Optional[Pose]:
        return self.frames.transform_pose(pose, target_frame)

    def transform_path(
        self,
        path: Path,
        target_frame: str,
        window_bound: float
    ) -> Optional[Tuple[Path, WindowCounters]]:
        """
        Transform the stretch of path inside the window around the robot.

        The window starts at the first pose closer than window_bound to
        the robot and ends before the first following pose that is not.
        """
        if self._robot_pose is None:
            return None

        robot = self.frames.transform_pose(self._robot_pose, target_frame)
        if robot is None:
            return None

        transformed = []
        for pose in path:
            t = self.frames.transform_pose(pose, target_frame)
            if t is None:
                return None
            transformed.append(t)

        points = path_to_array(transformed)
        inside = np.linalg.norm(points - np.array([robot.x, robot.y]), axis=1) < window_bound

        start = 0
        while start < len(transformed) and not inside[start]:
            start += 1
        end = start
        while end < len(transformed) and inside[end]:
            end += 1

        return transformed[start:end], WindowCounters(start, end)


class SimulatedObstacleLayers(IObstacleLayers):
    """Point obstacles seen by the simulated band."""

    def __init__(self, obstacles: Optional[Sequence[Tuple[float, float]]] = None):
        self.obstacles: List[Tuple[float, float]] = list(obstacles or [])
        self.reset_count = 0

    def add_obstacle(self, x: float, y: float):
        self.obstacles.append((x, y))

    def reset_layers(self):
        self.obstacles.clear()
        self.reset_count += 1

    def as_array(self) -> np.ndarray:
        if not self.obstacles:
            return np.empty((0, 2))
        return np.array(self.obstacles)


class SimulatedElasticBand(IDeformableBand):
    """
    In-memory band with a simple smoothing / obstacle repulsion pass.

    Interior poses are pulled towards the midpoint of their neighbours
    and pushed away from obstacles closer than influence_distance. The
    first and last poses never move.
    """

    def __init__(
        self,
        obstacle_layers: Optional[SimulatedObstacleLayers] = None,
        max_connect_distance: float = 1.0,
        merge_distance: float = 0.2,
        smoothing_weight: float = 0.3,
        repulsion_weight: float = 0.5,
        influence_distance: float = 0.6,
        iterations: int = 5
    ):
        self.obstacle_layers = obstacle_layers
        self.max_connect_distance = max_connect_distance
        self.merge_distance = merge_distance
        self.smoothing_weight = smoothing_weight
        self.repulsion_weight = repulsion_weight
        self.influence_distance = influence_distance
        self.iterations = iterations
        self._poses: Path = []

    def reset(self, path: Path) -> bool:
        if not path:
            return False
        self._poses = list(path)
        return True

    def append_frames(self, path: Path, end: BandEnd) -> bool:
        if not self._poses:
            return False
        if not path:
            return True

        if end == BandEnd.BACK:
            self._poses.extend(path)
            return True

        # Connect to the front, dropping the poses the robot already passed
        robot = path[-1]
        points = path_to_array(self._poses)
        dists = np.linalg.norm(points - np.array([robot.x, robot.y]), axis=1)
        closest = int(np.argmin(dists))
        if dists[closest] > self.max_connect_distance:
            return False

        keep_from = closest + 1 if dists[closest] < self.merge_distance else closest
        self._poses = list(path) + self._poses[keep_from:]
        return True

    def optimize(self) -> bool:
        if len(self._poses) < 2:
            return bool(self._poses)

        points = path_to_array(self._poses)
        obstacles = (self.obstacle_layers.as_array()
                     if self.obstacle_layers is not None else np.empty((0, 2)))

        for _ in range(self.iterations):
            interior = points[1:-1]
            midpoints = 0.5 * (points[:-2] + points[2:])
            interior = interior + self.smoothing_weight * (midpoints - interior)

            for obstacle in obstacles:
                offset = interior - obstacle
                dist = np.linalg.norm(offset, axis=1)
                near = (dist > 1e-6) & (dist < self.influence_distance)
                push = (self.influence_distance - dist[near]) / dist[near]
                interior[near] += self.repulsion_weight * offset[near] * push[:, None]

            points[1:-1] = interior

        if not np.all(np.isfinite(points)):
            return False

        self._poses = [
            Pose(float(px), float(py), pose.yaw, pose.frame_id, pose.stamp)
            for (px, py), pose in zip(points, self._poses)
        ]
        return True

    def get_path(self) -> Path:
        return list(self._poses)


class ArcConnector(INonholonomicPlanner):
    """
    Connects two poses with a single circular arc.

    The arc leaves the start pose along its heading. The connection
    fails when the end lies behind the start, when the arc is tighter
    than the minimum turning radius or when it arrives with a heading
    too far from the end pose heading.
    """

    def __init__(self, config: Optional[ConnectorConfig] = None):
        self.config = config or ConnectorConfig()

    def reconfigure(self, config):
        self.config = config.connector

    def connect(self, start: Pose, end: Pose) -> Optional[Path]:
        theta = start.heading
        dx = end.x - start.x
        dy = end.y - start.y

        # End position in the start frame
        lx = math.cos(theta) * dx + math.sin(theta) * dy
        ly = -math.sin(theta) * dx + math.cos(theta) * dy
        sq_dist = lx * lx + ly * ly

        if sq_dist < 1e-12:
            return [start, end.with_stamp(start.stamp)]
        if lx <= 0.0:
            return None

        curvature = 2.0 * ly / sq_dist
        if abs(curvature) * self.config.min_turning_radius > 1.0:
            return None

        arrival = theta + 2.0 * math.atan2(ly, lx)
        if end.has_heading and abs(angle_difference(arrival, end.heading)) > self.config.max_heading_error:
            return None

        if abs(curvature) < 1e-9:
            length = math.sqrt(sq_dist)
        else:
            length = 2.0 * math.atan2(ly, lx) / curvature

        n_steps = max(1, int(math.ceil(length / self.config.step_size)))
        poses = [start]
        for i in range(1, n_steps):
            s = length * i / n_steps
            if abs(curvature) < 1e-9:
                px, py, heading = s, 0.0, 0.0
            else:
                heading = curvature * s
                px = math.sin(heading) / curvature
                py = (1.0 - math.cos(heading)) / curvature
            poses.append(Pose(
                start.x + math.cos(theta) * px - math.sin(theta) * py,
                start.y + math.sin(theta) * px + math.cos(theta) * py,
                normalize_angle(theta + heading),
                start.frame_id,
                start.stamp
            ))
        poses.append(Pose(end.x, end.y, end.yaw if end.has_heading else arrival,
                          start.frame_id, start.stamp))
        return poses


class PurePursuitController(ITrackingController):
    """Tracking controller following the local plan with Pure Pursuit."""

    def __init__(self, gateway: IPoseTransformGateway, config: Optional[FollowerConfig] = None):
        self.gateway = gateway
        self.follower = PurePursuitFollower(config)
        self._velocity = 0.0

    def reconfigure(self, config):
        self.follower.config = config.follower

    def compute_command(self, path: Path) -> Optional[VelocityCommand]:
        robot = self.gateway.current_pose()
        if robot is None or len(path) < 2:
            return None

        if path[0].frame_id != robot.frame_id:
            robot = self.gateway.transform_pose(robot, path[0].frame_id)
            if robot is None:
                return None

        cmd = self.follower.compute(robot, self._velocity, path)
        self._velocity = cmd.velocity
        return VelocityCommand(
            linear=cmd.velocity,
            angular=cmd.angular_velocity(self.follower.config.wheelbase)
        )
