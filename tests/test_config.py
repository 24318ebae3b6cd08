#!/usr/bin/env python3
"""
Tests for configuration snapshots and YAML loading.
"""

import os
import tempfile
import unittest
from pathlib import Path

import doubles  # noqa: F401  (adds src to the path)

from rsband.config import (
    ConfigurationError, ConnectorConfig, FinalHeadingPolicy, FollowerConfig,
    PlannerConfig, StrategyMode,
    config_from_dict, load_config
)


class TestStrategyMode(unittest.TestCase):

    def test_parse_values(self):
        self.assertEqual(StrategyMode.parse(0), StrategyMode.START_TO_END)
        self.assertEqual(StrategyMode.parse("3"), StrategyMode.RECEDING_END)
        self.assertEqual(StrategyMode.parse("point_to_point_skip_failures"),
                         StrategyMode.POINT_TO_POINT_SKIP_FAILURES)
        self.assertIs(StrategyMode.parse(StrategyMode.RECEDING_END), StrategyMode.RECEDING_END)

    def test_out_of_range(self):
        for value in (4, -1, "7", "fastest", True, None, 1.5):
            with self.assertRaises(ConfigurationError, msg=repr(value)):
                StrategyMode.parse(value)

    def test_heading_policy(self):
        self.assertEqual(FinalHeadingPolicy.parse("copy_previous_if_undefined"),
                         FinalHeadingPolicy.COPY_PREVIOUS_IF_UNDEFINED)
        with self.assertRaises(ConfigurationError):
            FinalHeadingPolicy.parse("never")


class TestPlannerConfig(unittest.TestCase):

    def test_defaults(self):
        config = PlannerConfig()
        self.assertEqual(config.strategy, StrategyMode.START_TO_END)
        self.assertEqual(config.final_heading_policy, FinalHeadingPolicy.COPY_PREVIOUS_IF_ZERO)

    def test_enum_fields_normalized(self):
        config = PlannerConfig(strategy=2, final_heading_policy="COPY_PREVIOUS_IF_UNDEFINED")
        self.assertEqual(config.strategy, StrategyMode.POINT_TO_POINT_SKIP_FAILURES)
        self.assertEqual(config.final_heading_policy, FinalHeadingPolicy.COPY_PREVIOUS_IF_UNDEFINED)

    def test_snapshot_is_immutable(self):
        config = PlannerConfig()
        with self.assertRaises(Exception):
            config.xy_goal_tolerance = 1.0

    def test_updated_leaves_original(self):
        config = PlannerConfig()
        new = config.updated(eband_to_rs_strategy=3, yaw_goal_tolerance=0.5)
        self.assertEqual(new.strategy, StrategyMode.RECEDING_END)
        self.assertEqual(new.yaw_goal_tolerance, 0.5)
        self.assertEqual(config.strategy, StrategyMode.START_TO_END)
        self.assertEqual(config.yaw_goal_tolerance, 0.2)

    def test_updated_nested(self):
        new = PlannerConfig().updated(connector={'min_turning_radius': 1.2, 'unknown': 1})
        self.assertEqual(new.connector.min_turning_radius, 1.2)
        self.assertEqual(new.connector.step_size, 0.1)

    def test_unknown_parameters_ignored(self):
        config = PlannerConfig()
        self.assertEqual(config.updated(not_a_parameter=4), config)

    def test_invalid_values(self):
        config = PlannerConfig()
        for params in ({'eband_to_rs_strategy': 5}, {'xy_goal_tolerance': -0.1},
                       {'max_connect_attempts': -1}, {'window_bound': 0.0},
                       {'planning_deadline': -1.0}):
            with self.assertRaises(ConfigurationError, msg=str(params)):
                config.updated(**params)

    def test_invalid_nested_values(self):
        config = PlannerConfig()
        for params in ({'follower': {'slow_down_distance': 0.0}},
                       {'follower': {'wheelbase': 0.0}},
                       {'follower': {'max_speed': True}},
                       {'follower': {'max_lookahead': 0.1}},
                       {'connector': {'step_size': -0.1}},
                       {'connector': {'min_turning_radius': '0.8'}},
                       {'connector': [1, 2]},
                       {'xy_goal_tolerance': 'wide'}):
            with self.assertRaises(ConfigurationError, msg=str(params)):
                config.updated(**params)

    def test_nested_configs_validate_on_construction(self):
        with self.assertRaises(ConfigurationError):
            FollowerConfig(slow_down_distance=0.0)
        with self.assertRaises(ConfigurationError):
            ConnectorConfig(step_size=0)


class TestLoadConfig(unittest.TestCase):

    def write(self, text):
        fd, path = tempfile.mkstemp(suffix='.yaml')
        with os.fdopen(fd, 'w') as f:
            f.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_shipped_config(self):
        path = Path(__file__).parent.parent / 'config' / 'rsband.yaml'
        config = load_config(path)
        self.assertEqual(config.strategy, StrategyMode.POINT_TO_POINT_UNTIL_FAILURE)
        self.assertEqual(config.max_connect_attempts, 50)
        self.assertEqual(config.follower.wheelbase, 0.26)

    def test_partial_file_keeps_defaults(self):
        config = load_config(self.write("goal:\n  xy_goal_tolerance: 0.5\n"))
        self.assertEqual(config.xy_goal_tolerance, 0.5)
        self.assertEqual(config.yaw_goal_tolerance, 0.2)
        self.assertEqual(config.strategy, StrategyMode.START_TO_END)

    def test_empty_file(self):
        self.assertEqual(load_config(self.write("")), PlannerConfig())

    def test_invalid_strategy(self):
        with self.assertRaises(ConfigurationError):
            load_config(self.write("strategy:\n  eband_to_rs_strategy: 9\n"))

    def test_not_a_mapping(self):
        with self.assertRaises(ConfigurationError):
            load_config(self.write("- 1\n- 2\n"))

    def test_section_not_a_mapping(self):
        for text in ("strategy: 3\n", "goal: [0.3, 0.2]\n", "controller: fast\n"):
            with self.assertRaises(ConfigurationError, msg=text):
                load_config(self.write(text))

    def test_empty_section_keeps_defaults(self):
        self.assertEqual(config_from_dict({'strategy': None}), PlannerConfig())

    def test_broken_yaml(self):
        with self.assertRaises(ConfigurationError):
            load_config(self.write("goal: [unclosed\n"))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config("/nonexistent/rsband.yaml")

    def test_controller_section_maps_to_follower(self):
        config = config_from_dict({'controller': {'max_speed': 0.5}, 'window': {'bound': 2.0}})
        self.assertEqual(config.follower.max_speed, 0.5)
        self.assertEqual(config.window_bound, 2.0)


if __name__ == '__main__':
    unittest.main()
