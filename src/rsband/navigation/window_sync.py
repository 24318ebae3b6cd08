"""
Local Window Synchronization

Keeps the band in step with the part of the global plan that lies
inside the local window while the robot drives.

The band is grown instead of rebuilt: every cycle the robot pose is
connected to the band front and only the global plan poses that newly
entered the window are connected to the band back. The optimizer thus
keeps the obstacle clearance it already found. A full reset only
happens when a new global plan is set.

Window bookkeeping (end exclusive):

    global plan   0 1 2 3 4 5 6 7 8 9
    previous          [2 . . . 6)
    new                   [4 . . . . 9)
    already in band       4 5            (previous.end - new.start = 2)
    increment                 6 7 8
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ..geometry.transforms import Path, Pose
from ..interface.collaborators import (
    BandEnd, IDeformableBand, IPoseTransformGateway, WindowCounters
)


@dataclass
class WindowUpdate:
    """Result of one synchronization step."""
    window: Path                    # transformed local window
    counters: WindowCounters        # counters after the update
    increment: Path                 # poses appended to the band back


def compute_increment(
    window: Sequence[Pose],
    previous: WindowCounters,
    current: WindowCounters
) -> Path:
    """
    Poses of the new window that are not in the band yet.

    Args:
        window: Transformed poses of global_plan[current.start:current.end]
        previous: Counters the band was built from
        current: Counters of window

    Returns:
        Empty list if the window end did not advance
    """
    if current.end <= previous.end:
        return []

    if not previous.overlaps(current):
        # Nothing in common with the band, append the whole window
        return list(window)

    already_in_band = previous.end - current.start
    return list(window[already_in_band:])


class PathWindowSynchronizer:
    """
    Owns the global plan and its window counters.

    Usage:
        sync = PathWindowSynchronizer(gateway, band)
        seeded = sync.transform_window(global_plan)
        if seeded and band.reset(seeded[0]):
            sync.commit(global_plan, seeded[1])

        # Every control cycle:
        update = sync.update(window_bound)
    """

    def __init__(self, gateway: IPoseTransformGateway, band: IDeformableBand):
        self.gateway = gateway
        self.band = band
        self._global_plan: Path = []
        self._counters: Optional[WindowCounters] = None

    @property
    def global_plan(self) -> Path:
        return self._global_plan

    @property
    def counters(self) -> Optional[WindowCounters]:
        return self._counters

    @property
    def has_plan(self) -> bool:
        return bool(self._global_plan) and self._counters is not None

    def transform_window(
        self,
        plan: Sequence[Pose],
        window_bound: float = 3.0
    ) -> Optional[Tuple[Path, WindowCounters]]:
        """
        Transform the part of plan inside the local window.

        Returns:
            (window, counters), None if the transform failed or the
            window is empty
        """
        result = self.gateway.transform_path(
            list(plan), self.gateway.global_frame, window_bound)
        if result is None:
            print("[RSBAND] Could not transform the global plan to the local frame")
            return None

        window, counters = result
        if not window:
            print("[RSBAND] Transformed plan is empty")
            return None

        if not counters.fits(len(plan)):
            print(f"[RSBAND] Window counters {counters} exceed plan of {len(plan)} poses")
            return None

        return list(window), counters

    def commit(self, plan: Sequence[Pose], counters: WindowCounters):
        """Adopt a new global plan, once the band has been reset with its window."""
        self._global_plan = list(plan)
        self._counters = counters

    def clear(self):
        self._global_plan = []
        self._counters = None

    def update(self, window_bound: float = 3.0) -> Optional[WindowUpdate]:
        """
        Connect the robot pose to the band front and new window poses to its back.

        The counters only change if the new poses were appended.

        Returns:
            WindowUpdate or None on failure
        """
        if not self.has_plan:
            print("[RSBAND] No global plan to synchronize with")
            return None

        robot_pose = self.gateway.current_pose()
        if robot_pose is None:
            print("[RSBAND] Could not get robot pose")
            return None

        if not self.band.append_frames([robot_pose], BandEnd.FRONT):
            print("[RSBAND] Could not connect current robot pose to existing band")
            return None

        transformed = self.transform_window(self._global_plan, window_bound)
        if transformed is None:
            return None
        window, counters = transformed

        increment = compute_increment(window, self._counters, counters)
        if not increment:
            return WindowUpdate(window, self._counters, [])

        if not self.band.append_frames(increment, BandEnd.BACK):
            print("[RSBAND] Failed to add frames to existing band")
            return None

        self._counters = counters
        return WindowUpdate(window, counters, increment)
