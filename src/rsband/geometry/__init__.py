"""
Geometry module.

Components:
- Pose / Path: stamped 2D poses and ordered paths
- Transform2D: rigid 2D transformation
- FrameManager: named frame tree used by the simulated transform gateway
"""

from .transforms import (
    Pose,
    Path,
    Transform2D,
    FrameManager,
    normalize_angle,
    angle_difference,
    path_to_array,
    path_length,
)
