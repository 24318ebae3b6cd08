"""
Orientation interpolation for band paths.

The band optimizer only moves positions; headings of its interior
poses are meaningless. They are rebuilt here by finite differencing so
that every pose points towards its successor.
"""

import math
from typing import Sequence

from ..config import FinalHeadingPolicy
from ..geometry.transforms import Path, Pose


def interpolate_orientations(
    path: Sequence[Pose],
    policy: FinalHeadingPolicy = FinalHeadingPolicy.COPY_PREVIOUS_IF_ZERO
) -> Path:
    """
    Rebuild interior headings of a path.

    Positions are kept. Interior poses get yaw = atan2 of the vector to
    the next pose and the stamp of the first pose. The last pose gets
    the first pose's stamp and keeps its heading unless the final
    heading policy replaces it with the heading of the pose before it.

    Args:
        path: At least two poses
        policy: Final heading fallback

    Returns:
        New list of poses (the input is not modified)
    """
    if len(path) < 2:
        raise ValueError("Orientation interpolation needs at least two poses")

    stamp = path[0].stamp
    result = [path[0]]

    for i in range(1, len(path) - 1):
        dx = path[i + 1].x - path[i].x
        dy = path[i + 1].y - path[i].y
        yaw = math.atan2(dy, dx)
        result.append(Pose(path[i].x, path[i].y, yaw, path[i].frame_id, stamp))

    last = path[-1].with_stamp(stamp)
    if needs_heading_fallback(last, policy):
        last = last.with_yaw(result[-1].yaw)
    result.append(last)

    return result


def needs_heading_fallback(pose: Pose, policy: FinalHeadingPolicy) -> bool:
    """True if the final heading of a path should be copied from its predecessor."""
    if not pose.has_heading:
        return True
    if policy == FinalHeadingPolicy.COPY_PREVIOUS_IF_ZERO:
        # Cannot tell a zero heading apart from an unset one
        return pose.yaw == 0.0
    return False
