"""
Core module.
- Planner state machine
- RSBand local planner control loop
"""

from .state_machine import StateMachine, PlannerState, PlannerEvent
from .planner import RSBandPlanner
