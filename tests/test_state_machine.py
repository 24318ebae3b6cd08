#!/usr/bin/env python3
"""
Tests for the planner state machine.
"""

import unittest

import doubles  # noqa: F401  (adds src to the path)

from rsband.core import PlannerEvent, PlannerState, StateMachine


class TestStateMachine(unittest.TestCase):

    def setUp(self):
        self.sm = StateMachine()

    def test_initial_state(self):
        self.assertEqual(self.sm.state, PlannerState.IDLE)
        self.assertFalse(self.sm.has_plan)
        self.assertIsNone(self.sm.previous_state)

    def test_plan_lifecycle(self):
        self.assertTrue(self.sm.handle_event(PlannerEvent.PLAN_ACCEPTED))
        self.assertTrue(self.sm.has_plan)
        self.assertTrue(self.sm.handle_event(PlannerEvent.GOAL_REACHED))
        self.assertEqual(self.sm.state, PlannerState.GOAL_REACHED)
        self.assertTrue(self.sm.has_plan)
        self.assertTrue(self.sm.handle_event(PlannerEvent.GOAL_LOST))
        self.assertEqual(self.sm.state, PlannerState.TRACKING)
        self.assertEqual(self.sm.previous_state, PlannerState.GOAL_REACHED)

    def test_rejected_plan_from_any_state(self):
        for event in (None, PlannerEvent.PLAN_ACCEPTED):
            sm = StateMachine()
            if event:
                sm.handle_event(event)
            sm.handle_event(PlannerEvent.PLAN_REJECTED)
            self.assertEqual(sm.state, PlannerState.FAILED)
            self.assertFalse(sm.has_plan)

    def test_invalid_events_ignored(self):
        self.assertFalse(self.sm.handle_event(PlannerEvent.GOAL_REACHED))
        self.assertFalse(self.sm.handle_event(PlannerEvent.GOAL_LOST))
        self.assertEqual(self.sm.state, PlannerState.IDLE)

    def test_recover_from_failure(self):
        self.sm.handle_event(PlannerEvent.PLAN_REJECTED)
        self.assertTrue(self.sm.handle_event(PlannerEvent.PLAN_ACCEPTED))
        self.assertEqual(self.sm.state, PlannerState.TRACKING)

    def test_reset(self):
        self.sm.handle_event(PlannerEvent.PLAN_ACCEPTED)
        self.sm.handle_event(PlannerEvent.RESET)
        self.assertEqual(self.sm.state, PlannerState.IDLE)

    def test_callbacks(self):
        entered = []
        transitions = []
        self.sm.on_enter(PlannerState.GOAL_REACHED, lambda: entered.append(True))
        self.sm.on_transition(lambda old, event, new: transitions.append((old, new)))

        self.sm.handle_event(PlannerEvent.PLAN_ACCEPTED)
        self.sm.handle_event(PlannerEvent.GOAL_REACHED)

        self.assertEqual(entered, [True])
        self.assertEqual(transitions, [
            (PlannerState.IDLE, PlannerState.TRACKING),
            (PlannerState.TRACKING, PlannerState.GOAL_REACHED),
        ])

    def test_status(self):
        status = self.sm.get_status()
        self.assertEqual(status["state"], "IDLE")
        self.assertEqual(status["previous"], "N/A")


if __name__ == '__main__':
    unittest.main()
