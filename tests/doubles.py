"""
Scripted collaborators for the planner tests.

Every double records the calls it receives and answers from a script,
so the stitching logic can be checked without a real optimizer,
planner or controller.
"""

import sys
from pathlib import Path as FilePath

sys.path.insert(0, str(FilePath(__file__).parent.parent / 'src'))

from rsband.geometry import Pose
from rsband.interface import (
    BandEnd, IDeformableBand, INonholonomicPlanner, IObstacleLayers,
    IPoseTransformGateway, ITrackingController, VelocityCommand, WindowCounters
)


def line_plan(n=5, spacing=1.0, frame="map", yaw=0.0):
    """n colinear poses along X."""
    return [Pose(i * spacing, 0.0, yaw, frame, 0.0) for i in range(n)]


class ScriptedGateway(IPoseTransformGateway):
    """
    Identity transforms, windows taken from a script.

    windows: list of (start, end) returned by successive transform_path
    calls (the last one repeats), or None entries to fail a call.
    """

    def __init__(self, windows=None, robot=None, frame="odom"):
        self.windows = list(windows) if windows is not None else []
        self.robot = robot
        self.frame = frame
        self.transform_path_calls = 0
        self.failing_pose_frames = set()

    @property
    def global_frame(self):
        return self.frame

    def current_pose(self):
        return self.robot

    def transform_path(self, path, target_frame, window_bound):
        self.transform_path_calls += 1
        if self.windows:
            window = self.windows.pop(0) if len(self.windows) > 1 else self.windows[0]
        else:
            window = (0, len(path))
        if window is None:
            return None
        start, end = window
        poses = [Pose(p.x, p.y, p.yaw, target_frame, p.stamp) for p in path[start:end]]
        return poses, WindowCounters(start, end)

    def transform_pose(self, pose, target_frame):
        if pose.frame_id in self.failing_pose_frames:
            return None
        return Pose(pose.x, pose.y, pose.yaw, target_frame, pose.stamp)


class ScriptedBand(IDeformableBand):
    """
    Band holding a plain list of poses.

    A front frame replaces the band's first pose, back frames are
    appended. Results of reset / append / optimize are scripted.
    """

    def __init__(self, reset_results=None, front_ok=True, back_ok=True, optimize_ok=True):
        self.reset_results = list(reset_results) if reset_results is not None else []
        self.front_ok = front_ok
        self.back_ok = back_ok
        self.optimize_ok = optimize_ok
        self.path = []
        self.reset_calls = []
        self.back_appends = []
        self.front_appends = []
        self.optimize_calls = 0

    def reset(self, path):
        self.reset_calls.append(list(path))
        ok = self.reset_results.pop(0) if self.reset_results else True
        if ok:
            self.path = list(path)
        return ok

    def append_frames(self, path, end):
        if end == BandEnd.FRONT:
            self.front_appends.append(list(path))
            if not self.front_ok:
                return False
            self.path = list(path) + self.path[1:]
            return True
        self.back_appends.append(list(path))
        if not self.back_ok:
            return False
        self.path.extend(path)
        return True

    def optimize(self):
        self.optimize_calls += 1
        return self.optimize_ok

    def get_path(self):
        return list(self.path)


class ScriptedConnector(INonholonomicPlanner):
    """
    Straight line connector sampling poses every `spacing` meters.

    fail: predicate (start, end) -> True if that connection must fail.
    """

    def __init__(self, fail=None, spacing=1.0):
        self.fail = fail or (lambda start, end: False)
        self.spacing = spacing
        self.calls = []
        self.configs = []

    def reconfigure(self, config):
        self.configs.append(config)

    def connect(self, start, end):
        self.calls.append((start, end))
        if self.fail(start, end):
            return None
        n = max(1, int(round(start.distance_to(end) / self.spacing)))
        poses = []
        for i in range(n + 1):
            t = i / n
            poses.append(Pose(start.x + t * (end.x - start.x),
                              start.y + t * (end.y - start.y),
                              start.heading, start.frame_id, start.stamp))
        return poses


def fails_between(*pairs):
    """Predicate failing connections between the given x positions."""
    pairs = {tuple(p) for p in pairs}
    return lambda start, end: (round(start.x), round(end.x)) in pairs


class ScriptedController(ITrackingController):
    """Returns a fixed command, or None when decline is set."""

    def __init__(self, command=None, decline=False):
        self.command = command or VelocityCommand(0.5, 0.1)
        self.decline = decline
        self.paths = []
        self.configs = []

    def reconfigure(self, config):
        self.configs.append(config)

    def compute_command(self, path):
        self.paths.append(list(path))
        if self.decline:
            return None
        return self.command


class CountingLayers(IObstacleLayers):
    def __init__(self):
        self.resets = 0

    def reset_layers(self):
        self.resets += 1
