"""
Merges a converted nonholonomic path with the band poses it did not reach.
"""

from typing import Optional, Sequence

from ..geometry.transforms import Path, Pose
from ..interface.collaborators import IPoseTransformGateway


class PathStitcher:
    """
    Builds the local plan handed to the tracking controller.

    The converted path is kept as is. Every band pose after the fail
    index is transformed into the frame of the converted path, stamped
    with the band's first stamp and appended. One failed transform
    fails the whole merge.
    """

    def __init__(self, gateway: IPoseTransformGateway):
        self.gateway = gateway

    def stitch(
        self,
        converted: Sequence[Pose],
        fail_index: int,
        band: Sequence[Pose]
    ) -> Optional[Path]:
        if not converted:
            return None

        merged = list(converted)
        if fail_index + 1 >= len(band):
            return merged

        frame = converted[-1].frame_id
        stamp = band[0].stamp

        for pose in band[fail_index + 1:]:
            transformed = self.gateway.transform_pose(pose.with_stamp(stamp), frame)
            if transformed is None:
                print(f"[RSBAND] Could not transform band pose from "
                      f"'{pose.frame_id}' to '{frame}'")
                return None
            merged.append(transformed.with_stamp(stamp))

        return merged
