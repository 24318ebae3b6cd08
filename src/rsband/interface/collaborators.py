"""
Abstract interfaces for the planner collaborators.

These interfaces define the contract that real implementations
(transform services, band optimizer, nonholonomic planner, tracking
controller) and the simulated ones must respect. Failures are
signalled by returning False or None, never by raising.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..geometry.transforms import Path, Pose


@dataclass(frozen=True)
class WindowCounters:
    """
    Bounds of the local window inside the global plan.

    The window is global_plan[start:end] (end exclusive).
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(
                f"Invalid window counters: start={self.start}, end={self.end}")

    def fits(self, plan_length: int) -> bool:
        """True if the window lies inside a plan of the given length."""
        return self.end <= plan_length

    def overlaps(self, other: 'WindowCounters') -> bool:
        """True if this (earlier) window shares waypoints with other."""
        return self.end > other.start

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass
class VelocityCommand:
    """Output velocity command."""
    linear: float       # m/s
    angular: float      # rad/s
    is_valid: bool = True

    @staticmethod
    def zero() -> 'VelocityCommand':
        return VelocityCommand(0.0, 0.0)


class BandEnd(Enum):
    """Which end of the band frames are added to."""
    FRONT = 0
    BACK = 1


class IPoseTransformGateway(ABC):
    """Robot pose and frame lookups."""

    @property
    @abstractmethod
    def global_frame(self) -> str:
        """Frame the local window is expressed in."""
        pass

    @abstractmethod
    def current_pose(self) -> Optional[Pose]:
        """Current robot pose in the global frame, None if unavailable."""
        pass

    @abstractmethod
    def transform_path(
        self,
        path: Path,
        target_frame: str,
        window_bound: float
    ) -> Optional[Tuple[Path, WindowCounters]]:
        """
        Transform the part of a path inside the local window.

        Args:
            path: Full global plan
            target_frame: Frame to express the window in
            window_bound: Distance from the robot bounding the window (m)

        Returns:
            (window, counters) or None if the transform failed
        """
        pass

    @abstractmethod
    def transform_pose(self, pose: Pose, target_frame: str) -> Optional[Pose]:
        """Express a pose in target_frame, None if unavailable."""
        pass


class IObstacleLayers(ABC):
    """Obstacle layers backing the band optimizer."""

    @abstractmethod
    def reset_layers(self):
        """Clear accumulated obstacle information."""
        pass


class IDeformableBand(ABC):
    """Obstacle-avoiding deformable path (elastic band)."""

    @abstractmethod
    def reset(self, path: Path) -> bool:
        """Replace the band with a fresh one built from path."""
        pass

    @abstractmethod
    def append_frames(self, path: Path, end: BandEnd) -> bool:
        """Connect frames to one end of the existing band."""
        pass

    @abstractmethod
    def optimize(self) -> bool:
        """Run one optimization pass."""
        pass

    @abstractmethod
    def get_path(self) -> Path:
        """Current band as a path (empty if there is no band)."""
        pass


class INonholonomicPlanner(ABC):
    """Point to point planner honoring car-like kinematics."""

    @abstractmethod
    def connect(self, start: Pose, end: Pose) -> Optional[Path]:
        """Feasible path from start to end, None if none was found."""
        pass

    def reconfigure(self, config):
        """Apply a new planner configuration snapshot."""
        pass


class ITrackingController(ABC):
    """Velocity tracking controller."""

    @abstractmethod
    def compute_command(self, path: Path) -> Optional[VelocityCommand]:
        """Velocity command tracking path, None if it declines."""
        pass

    def reconfigure(self, config):
        """Apply a new planner configuration snapshot."""
        pass
