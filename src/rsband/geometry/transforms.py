"""
Poses, Paths and Frame Transformations

Value types shared by the whole local planner plus the 2D rigid
transformations used to move poses between frames.

Conventions:
- X = forward (front of robot)
- Y = left
- Angles are counter-clockwise from X axis, in radians
- A pose whose yaw is None has no defined heading
"""

import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Pose:
    """Stamped 2D pose (position + orientation) in a named frame."""
    x: float
    y: float
    yaw: Optional[float] = 0.0     # None = heading undefined
    frame_id: str = "map"
    stamp: float = 0.0             # seconds

    @property
    def heading(self) -> float:
        """Yaw, reading an undefined heading as 0.0."""
        return 0.0 if self.yaw is None else self.yaw

    @property
    def has_heading(self) -> bool:
        return self.yaw is not None

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.heading])

    def distance_to(self, other: 'Pose') -> float:
        """Euclidean distance to another pose."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def angle_to(self, other: 'Pose') -> float:
        """Angle from this pose to another pose."""
        return math.atan2(other.y - self.y, other.x - self.x)

    def with_yaw(self, yaw: Optional[float]) -> 'Pose':
        return replace(self, yaw=yaw)

    def with_stamp(self, stamp: float) -> 'Pose':
        return replace(self, stamp=stamp)


# Ordered poses in travel order
Path = List[Pose]


def path_to_array(path: Sequence[Pose]) -> np.ndarray:
    """Positions of a path as an Nx2 array."""
    if not path:
        return np.empty((0, 2))
    return np.array([[p.x, p.y] for p in path])


def path_length(path: Sequence[Pose]) -> float:
    """Travelled length along a path (meters)."""
    points = path_to_array(path)
    if len(points) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))


@dataclass
class Transform2D:
    """2D rigid transformation (rotation + translation)."""
    x: float        # Translation X
    y: float        # Translation Y
    theta: float    # Rotation angle

    def to_matrix(self) -> np.ndarray:
        """Convert to 3x3 homogeneous transformation matrix."""
        cos_t = math.cos(self.theta)
        sin_t = math.sin(self.theta)
        return np.array([
            [cos_t, -sin_t, self.x],
            [sin_t,  cos_t, self.y],
            [0,      0,     1]
        ])

    @staticmethod
    def from_matrix(matrix: np.ndarray) -> 'Transform2D':
        """Create from 3x3 homogeneous transformation matrix."""
        theta = math.atan2(matrix[1, 0], matrix[0, 0])
        return Transform2D(float(matrix[0, 2]), float(matrix[1, 2]), theta)

    def apply(self, point: Tuple[float, float]) -> Tuple[float, float]:
        """Apply transformation to a point."""
        cos_t = math.cos(self.theta)
        sin_t = math.sin(self.theta)
        x = cos_t * point[0] - sin_t * point[1] + self.x
        y = sin_t * point[0] + cos_t * point[1] + self.y
        return (x, y)

    def apply_pose(self, pose: Pose, frame_id: str) -> Pose:
        """Move a pose through this transform and relabel its frame."""
        x, y = self.apply((pose.x, pose.y))
        yaw = None if pose.yaw is None else normalize_angle(pose.yaw + self.theta)
        return Pose(x, y, yaw, frame_id, pose.stamp)

    def inverse(self) -> 'Transform2D':
        """Return inverse transformation."""
        cos_t = math.cos(-self.theta)
        sin_t = math.sin(-self.theta)
        x = -(cos_t * self.x - sin_t * self.y)
        y = -(sin_t * self.x + cos_t * self.y)
        return Transform2D(x, y, -self.theta)

    def compose(self, other: 'Transform2D') -> 'Transform2D':
        """Compose with another transformation (self * other)."""
        return Transform2D.from_matrix(self.to_matrix() @ other.to_matrix())

    @staticmethod
    def identity() -> 'Transform2D':
        return Transform2D(0.0, 0.0, 0.0)


def normalize_angle(angle: float) -> float:
    """Normalize angle to [-pi, pi]."""
    while angle > math.pi:
        angle -= 2 * math.pi
    while angle < -math.pi:
        angle += 2 * math.pi
    return angle


def angle_difference(a: float, b: float) -> float:
    """Shortest angular difference from a to b."""
    return normalize_angle(b - a)


class FrameManager:
    """
    Tree of named 2D frames.

    set_transform(parent, child, T) stores T as the pose of the child
    frame expressed in the parent frame, so transforming a pose from the
    child frame into the parent frame applies T.

    Usage:
        fm = FrameManager()
        fm.set_transform('map', 'odom', Transform2D(1.0, 0.0, 0.0))
        pose_in_map = fm.transform_pose(pose_in_odom, 'map')
    """

    def __init__(self):
        self._transforms: Dict[Tuple[str, str], Transform2D] = {}

    def set_transform(self, parent: str, child: str, transform: Transform2D):
        """Set (or replace) the child frame pose in the parent frame."""
        # child -> parent maps child coordinates into parent coordinates
        self._transforms[(child, parent)] = transform
        self._transforms[(parent, child)] = transform.inverse()

    def get_transform(self, from_frame: str, to_frame: str) -> Optional[Transform2D]:
        """
        Transformation mapping coordinates of from_frame into to_frame.

        Returns:
            Transform2D or None if the frames are not connected
        """
        if from_frame == to_frame:
            return Transform2D.identity()

        direct = self._transforms.get((from_frame, to_frame))
        if direct is not None:
            return direct

        chain = self._find_chain(from_frame, to_frame)
        if chain is None:
            return None

        # Later hops are applied last, so they go on the left
        result = Transform2D.identity()
        for i in range(len(chain) - 1):
            result = self._transforms[(chain[i], chain[i + 1])].compose(result)
        return result

    def _find_chain(self, from_frame: str, to_frame: str) -> Optional[List[str]]:
        """Find path between frames using BFS."""
        neighbors: Dict[str, List[str]] = {}
        for (f1, f2) in self._transforms:
            neighbors.setdefault(f1, []).append(f2)

        visited = {from_frame}
        queue = [(from_frame, [from_frame])]

        while queue:
            current, chain = queue.pop(0)
            for neighbor in neighbors.get(current, []):
                if neighbor == to_frame:
                    return chain + [neighbor]
                if neighbor not in visited:
                    visited.add(neighbor)
                    queue.append((neighbor, chain + [neighbor]))

        return None

    def has_frame(self, frame: str) -> bool:
        return any(frame in key for key in self._transforms)

    def transform_pose(self, pose: Pose, to_frame: str) -> Optional[Pose]:
        """Transform a pose into another frame, keeping its stamp."""
        transform = self.get_transform(pose.frame_id, to_frame)
        if transform is None:
            return None
        return transform.apply_pose(pose, to_frame)
