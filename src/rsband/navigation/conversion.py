"""
Band to Nonholonomic Path Conversion

The band is an obstacle-free polyline but it ignores the turning
radius of the car. These strategies rebuild it from nonholonomic
segments produced by an external connector:

- START_TO_END: one segment from the first to the last band pose
- POINT_TO_POINT_UNTIL_FAILURE: chain consecutive poses, stop at the
  first pair that cannot be connected
- POINT_TO_POINT_SKIP_FAILURES: chain consecutive poses, skipping the
  poses that cannot be reached
- RECEDING_END: connect the first pose to the last one, moving the
  target back one pose after every failure

Every strategy reports a fail index: 0 means nothing could be
converted, otherwise the band poses after the fail index were not
reached and are merged back by the path stitcher.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence

from ..config import ConfigurationError, StrategyMode
from ..geometry.transforms import Path, Pose
from ..interface.collaborators import INonholonomicPlanner


@dataclass
class ConversionResult:
    """Output of a conversion strategy."""
    path: Path = field(default_factory=list)
    fail_index: int = 0
    attempts: int = 0               # connect calls made

    @property
    def failed(self) -> bool:
        return self.fail_index == 0


class PlanningBudget:
    """
    Bounds the number of connect calls made in one control cycle.

    Args:
        max_attempts: Maximum connect calls, 0 = unlimited
        deadline: Wall clock budget in seconds, 0 = none
    """

    def __init__(self, max_attempts: int = 0, deadline: float = 0.0,
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.deadline = deadline
        self._clock = clock
        self._start = clock()
        self.attempts = 0

    @property
    def exhausted(self) -> bool:
        if self.max_attempts and self.attempts >= self.max_attempts:
            return True
        if self.deadline and self._clock() - self._start >= self.deadline:
            return True
        return False

    def spend(self) -> bool:
        """Reserve one connect call. False once the budget is used up."""
        if self.exhausted:
            return False
        self.attempts += 1
        return True


def _join(plan: Path, segment: Sequence[Pose]):
    """Append a segment whose first pose is the current end of plan."""
    if plan:
        plan.extend(segment[1:])
    else:
        plan.extend(segment)


class ConversionStrategySelector:
    """
    Converts a band into a nonholonomic path with the selected strategy.

    Usage:
        selector = ConversionStrategySelector(connector)
        result = selector.convert(band_path, StrategyMode.RECEDING_END)
        if result.failed:
            ...
    """

    def __init__(self, connector: INonholonomicPlanner):
        self.connector = connector
        self._handlers: Dict[StrategyMode, Callable[[Sequence[Pose], PlanningBudget], ConversionResult]] = {
            StrategyMode.START_TO_END: self.start_to_end,
            StrategyMode.POINT_TO_POINT_UNTIL_FAILURE: self.until_failure,
            StrategyMode.POINT_TO_POINT_SKIP_FAILURES: self.skip_failures,
            StrategyMode.RECEDING_END: self.receding_end,
        }

    def convert(
        self,
        band: Sequence[Pose],
        mode: StrategyMode,
        budget: Optional[PlanningBudget] = None
    ) -> ConversionResult:
        """
        Run one conversion strategy.

        Raises:
            ConfigurationError: if mode is not a known strategy
            ValueError: if the band has fewer than two poses
        """
        handler = self._handlers.get(mode)
        if handler is None:
            raise ConfigurationError(f"Invalid eband_to_rs_strategy: {mode!r}")
        if len(band) < 2:
            raise ValueError("Band conversion needs at least two poses")

        budget = budget or PlanningBudget()
        result = handler(band, budget)
        result.attempts = budget.attempts
        return result

    def _connect(self, start: Pose, end: Pose, budget: PlanningBudget) -> Optional[Path]:
        if not budget.spend():
            return None
        segment = self.connector.connect(start, end)
        if not segment:
            return None
        return list(segment)

    def start_to_end(self, band: Sequence[Pose], budget: PlanningBudget) -> ConversionResult:
        segment = self._connect(band[0], band[-1], budget)
        if segment is None:
            return ConversionResult()
        return ConversionResult(segment, len(band))

    def until_failure(self, band: Sequence[Pose], budget: PlanningBudget) -> ConversionResult:
        plan: Path = []
        fail_index = 0

        for i in range(len(band) - 1):
            segment = self._connect(band[i], band[i + 1], budget)
            if segment is None:
                break
            _join(plan, segment)
            fail_index = i + 1

        return ConversionResult(plan, fail_index)

    def skip_failures(self, band: Sequence[Pose], budget: PlanningBudget) -> ConversionResult:
        plan: Path = []
        reached = 0                     # last pose incorporated

        target = 1
        while target < len(band):
            if budget.exhausted:
                break
            segment = self._connect(band[reached], band[target], budget)
            if segment is not None:
                _join(plan, segment)
                reached = target
            target += 1

        return ConversionResult(plan, reached)

    def receding_end(self, band: Sequence[Pose], budget: PlanningBudget) -> ConversionResult:
        target = len(band) - 1

        while target > 0:
            segment = self._connect(band[0], band[target], budget)
            if segment is not None:
                return ConversionResult(segment, target)
            if budget.exhausted:
                break
            target -= 1

        return ConversionResult()
