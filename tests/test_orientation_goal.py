#!/usr/bin/env python3
"""
Tests for orientation interpolation and the goal check.
"""

import math
import unittest

import doubles  # noqa: F401  (adds src to the path)

from rsband.config import FinalHeadingPolicy
from rsband.geometry import Pose
from rsband.navigation.goal import GoalEvaluator, goal_orientation_difference
from rsband.navigation.orientation import interpolate_orientations


class TestInterpolateOrientations(unittest.TestCase):

    def test_interior_points_to_successor(self):
        path = [Pose(0, 0, 0.3, stamp=5.0), Pose(1, 0, None, stamp=6.0),
                Pose(1, 1, None, stamp=7.0), Pose(0, 1, 1.0, stamp=8.0)]

        result = interpolate_orientations(path)

        self.assertEqual(result[0], path[0])
        self.assertAlmostEqual(result[1].yaw, math.pi / 2)
        self.assertAlmostEqual(result[2].yaw, math.pi)
        self.assertEqual(result[3].yaw, 1.0)

    def test_positions_untouched_and_stamps_unified(self):
        path = [Pose(0, 0, 0.0, stamp=1.0), Pose(2, 1, 0.0, stamp=2.0), Pose(3, 3, 0.5, stamp=3.0)]
        result = interpolate_orientations(path)
        self.assertEqual([p.position for p in result], [p.position for p in path])
        self.assertTrue(all(p.stamp == 1.0 for p in result))

    def test_input_not_modified(self):
        path = [Pose(0, 0, 0.0), Pose(1, 1, None), Pose(2, 1, None)]
        interpolate_orientations(path)
        self.assertIsNone(path[1].yaw)

    def test_undefined_final_heading_copied(self):
        path = [Pose(0, 0, 0.0), Pose(1, 1, 0.0), Pose(2, 2, None)]
        for policy in FinalHeadingPolicy:
            result = interpolate_orientations(path, policy)
            self.assertAlmostEqual(result[-1].yaw, math.pi / 4)

    def test_zero_final_heading_copied_by_default(self):
        path = [Pose(0, 0, 0.0), Pose(1, 1, 0.0), Pose(2, 2, 0.0)]
        result = interpolate_orientations(path)
        self.assertAlmostEqual(result[-1].yaw, math.pi / 4)

    def test_zero_final_heading_kept_when_only_undefined_is_replaced(self):
        path = [Pose(0, 0, 0.0), Pose(1, 1, 0.0), Pose(2, 2, 0.0)]
        result = interpolate_orientations(path, FinalHeadingPolicy.COPY_PREVIOUS_IF_UNDEFINED)
        self.assertEqual(result[-1].yaw, 0.0)

    def test_two_poses_copy_first_heading(self):
        path = [Pose(0, 0, 0.7), Pose(1, 0, None)]
        result = interpolate_orientations(path)
        self.assertEqual(result[-1].yaw, 0.7)

    def test_too_short(self):
        with self.assertRaises(ValueError):
            interpolate_orientations([Pose(0, 0, 0.0)])


class TestGoalEvaluator(unittest.TestCase):

    def setUp(self):
        self.evaluator = GoalEvaluator()
        self.goal = Pose(4.0, 0.0, 0.0)

    def test_reached_within_tolerances(self):
        robot = Pose(3.9, 0.05, 0.1)
        self.assertTrue(self.evaluator.is_reached(robot, self.goal, 0.3, 0.2))

    def test_far_away(self):
        self.assertFalse(self.evaluator.is_reached(Pose(0, 0, 0), self.goal, 0.3, 0.2))

    def test_wrong_heading(self):
        self.assertFalse(self.evaluator.is_reached(Pose(4.0, 0.0, 0.5), self.goal, 0.3, 0.2))

    def test_boundary_is_not_reached(self):
        check = self.evaluator.evaluate(Pose(3.5, 0.0, 0.0), self.goal, 0.5, 0.2)
        self.assertEqual(check.distance, 0.5)
        self.assertFalse(check.reached)

        goal = Pose(0.0, 0.0, 0.25)
        check = self.evaluator.evaluate(Pose(0.0, 0.0, 0.0), goal, 0.3, 0.25)
        self.assertEqual(abs(check.yaw_difference), 0.25)
        self.assertFalse(check.reached)

    def test_heading_wraps_around(self):
        robot = Pose(4.0, 0.0, math.pi - 0.05)
        goal = Pose(4.0, 0.0, -math.pi + 0.05)
        self.assertAlmostEqual(abs(goal_orientation_difference(robot, goal)), 0.1)
        self.assertTrue(self.evaluator.is_reached(robot, goal, 0.3, 0.2))


if __name__ == '__main__':
    unittest.main()
