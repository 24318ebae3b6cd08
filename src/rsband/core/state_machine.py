"""
Planner State Machine

Tracks the high-level status of the local planner.

States:
  IDLE          -> No global plan yet
  TRACKING      -> Following the current global plan
  GOAL_REACHED  -> Robot within goal tolerances
  FAILED        -> Last global plan could not be turned into a band
"""

import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional


class PlannerState(Enum):
    """Local planner states."""
    IDLE = auto()
    TRACKING = auto()
    GOAL_REACHED = auto()
    FAILED = auto()


class PlannerEvent(Enum):
    """Events that trigger state transitions."""
    PLAN_ACCEPTED = auto()
    PLAN_REJECTED = auto()
    GOAL_REACHED = auto()
    GOAL_LOST = auto()
    RESET = auto()


@dataclass
class StateTransition:
    """A state transition rule."""
    from_state: PlannerState
    event: PlannerEvent
    to_state: PlannerState


class StateMachine:
    """
    Finite state machine for the planner.

    Valid transitions:
        ANY ──PLAN_ACCEPTED──► TRACKING
        ANY ──PLAN_REJECTED──► FAILED
        TRACKING ──GOAL_REACHED──► GOAL_REACHED
        GOAL_REACHED ──GOAL_LOST──► TRACKING
        ANY ──RESET──► IDLE

    Usage:
        sm = StateMachine()
        sm.on_enter(PlannerState.GOAL_REACHED, stop_motors)
        sm.handle_event(PlannerEvent.PLAN_ACCEPTED)
        print(sm.state)  # PlannerState.TRACKING
    """

    TRANSITIONS = (
        [StateTransition(s, PlannerEvent.PLAN_ACCEPTED, PlannerState.TRACKING) for s in PlannerState] +
        [StateTransition(s, PlannerEvent.PLAN_REJECTED, PlannerState.FAILED) for s in PlannerState] +
        [StateTransition(s, PlannerEvent.RESET, PlannerState.IDLE) for s in PlannerState] +
        [
            StateTransition(PlannerState.TRACKING, PlannerEvent.GOAL_REACHED, PlannerState.GOAL_REACHED),
            StateTransition(PlannerState.GOAL_REACHED, PlannerEvent.GOAL_LOST, PlannerState.TRACKING),
        ]
    )

    def __init__(self):
        self._state = PlannerState.IDLE
        self._previous_state: Optional[PlannerState] = None
        self._state_start_time = time.time()

        self._on_enter: Dict[PlannerState, List[Callable]] = {s: [] for s in PlannerState}
        self._on_transition: List[Callable[[PlannerState, PlannerEvent, PlannerState], None]] = []

        self._transition_map: Dict = {}
        for t in self.TRANSITIONS:
            self._transition_map[(t.from_state, t.event)] = t

    @property
    def state(self) -> PlannerState:
        return self._state

    @property
    def previous_state(self) -> Optional[PlannerState]:
        return self._previous_state

    @property
    def time_in_state(self) -> float:
        """Time spent in current state (seconds)."""
        return time.time() - self._state_start_time

    @property
    def has_plan(self) -> bool:
        """True if a usable global plan is loaded."""
        return self._state in (PlannerState.TRACKING, PlannerState.GOAL_REACHED)

    def handle_event(self, event: PlannerEvent) -> bool:
        """
        Handle a state event.

        Returns:
            True if transition occurred, False if event was ignored
        """
        transition = self._transition_map.get((self._state, event))
        if transition is None:
            return False

        old_state = self._state
        new_state = transition.to_state

        self._previous_state = old_state
        self._state = new_state
        self._state_start_time = time.time()

        for callback in self._on_transition:
            callback(old_state, event, new_state)

        for callback in self._on_enter[new_state]:
            callback()

        return True

    def on_enter(self, state: PlannerState, callback: Callable):
        """Register callback for entering a state."""
        self._on_enter[state].append(callback)

    def on_transition(self, callback: Callable[[PlannerState, PlannerEvent, PlannerState], None]):
        """Register callback for any transition."""
        self._on_transition.append(callback)

    def get_status(self) -> dict:
        return {
            "state": self._state.name,
            "previous": self._previous_state.name if self._previous_state else "N/A",
            "time_in_state": f"{self.time_in_state:.1f}s",
        }
