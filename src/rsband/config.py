"""
Planner Configuration

Immutable configuration snapshots for the local planner.

A snapshot is never modified in place: reconfiguration builds a new
PlannerConfig and swaps the reference, so a control cycle that read the
snapshot once at its start sees consistent values until it ends.

Values can be loaded from a YAML file (see config/rsband.yaml):

    goal:
      xy_goal_tolerance: 0.3
      yaw_goal_tolerance: 0.2
    strategy:
      eband_to_rs_strategy: 1
      ...
"""

import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

import yaml


class ConfigurationError(ValueError):
    """Raised when a configuration value is not acceptable."""


class StrategyMode(Enum):
    """Band to nonholonomic path conversion strategies."""
    START_TO_END = 0
    POINT_TO_POINT_UNTIL_FAILURE = 1
    POINT_TO_POINT_SKIP_FAILURES = 2
    RECEDING_END = 3

    @classmethod
    def parse(cls, value: Union['StrategyMode', int, str]) -> 'StrategyMode':
        """Accept an enum member, its integer value or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ConfigurationError(f"Invalid eband_to_rs_strategy: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid eband_to_rs_strategy: {value}") from None
        if isinstance(value, str):
            key = value.strip().upper()
            if key.isdigit():
                return cls.parse(int(key))
            if key in cls.__members__:
                return cls[key]
        raise ConfigurationError(f"Invalid eband_to_rs_strategy: {value!r}")


class FinalHeadingPolicy(Enum):
    """How the last pose of an interpolated path gets its heading."""
    COPY_PREVIOUS_IF_ZERO = 0        # undefined or exactly 0.0 -> copy previous
    COPY_PREVIOUS_IF_UNDEFINED = 1   # only undefined -> copy previous

    @classmethod
    def parse(cls, value: Union['FinalHeadingPolicy', int, str]) -> 'FinalHeadingPolicy':
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().upper() in cls.__members__:
            return cls[value.strip().upper()]
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                pass
        raise ConfigurationError(f"Invalid final_heading_policy: {value!r}")


def _check_numbers(instance):
    """Reject fields that are not plain numbers (bools included)."""
    for f in fields(instance):
        value = getattr(instance, f.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigurationError(
                f"{type(instance).__name__}.{f.name} must be a number, got {value!r}")


@dataclass(frozen=True)
class ConnectorConfig:
    """Simulated nonholonomic connector parameters."""
    min_turning_radius: float = 0.8     # meters
    step_size: float = 0.1              # meters between samples
    max_heading_error: float = 0.35     # radians - arrival heading slack

    def __post_init__(self):
        _check_numbers(self)
        if self.min_turning_radius <= 0 or self.step_size <= 0:
            raise ConfigurationError("min_turning_radius and step_size must be positive")
        if self.max_heading_error < 0:
            raise ConfigurationError("max_heading_error must be >= 0")


@dataclass(frozen=True)
class FollowerConfig:
    """Path follower configuration."""
    # Pure Pursuit parameters
    min_lookahead: float = 0.3          # minimum lookahead
    max_lookahead: float = 1.5          # maximum lookahead
    lookahead_ratio: float = 2.0        # lookahead = ratio * velocity

    # Vehicle parameters (Ackermann)
    wheelbase: float = 0.26             # meters (distance front-rear axle)
    max_steering_angle: float = 0.3     # radians (~17 degrees)

    # Speed control
    max_speed: float = 0.8              # m/s
    min_speed: float = 0.1              # m/s

    # Goal
    goal_tolerance: float = 0.1         # meters
    slow_down_distance: float = 1.0     # start slowing at this distance

    def __post_init__(self):
        _check_numbers(self)
        for name in ('wheelbase', 'max_steering_angle', 'slow_down_distance',
                     'min_lookahead', 'max_speed'):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        for name in ('lookahead_ratio', 'min_speed', 'goal_tolerance'):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        if self.max_lookahead < self.min_lookahead:
            raise ConfigurationError("max_lookahead must be >= min_lookahead")


@dataclass(frozen=True)
class PlannerConfig:
    """RSBand local planner configuration snapshot."""
    # Goal tolerance
    xy_goal_tolerance: float = 0.3      # meters
    yaw_goal_tolerance: float = 0.2     # radians

    # Band to nonholonomic path conversion
    strategy: StrategyMode = StrategyMode.START_TO_END
    final_heading_policy: FinalHeadingPolicy = FinalHeadingPolicy.COPY_PREVIOUS_IF_ZERO

    # Planning budget per control cycle
    max_connect_attempts: int = 50      # 0 = unlimited
    planning_deadline: float = 0.0      # seconds, 0 = no deadline

    # Local window
    window_bound: float = 3.0           # meters around the robot

    # Collaborator parameters
    connector: ConnectorConfig = field(default_factory=ConnectorConfig)
    follower: FollowerConfig = field(default_factory=FollowerConfig)

    def __post_init__(self):
        # Normalize enum-like fields given as ints or names
        object.__setattr__(self, 'strategy', StrategyMode.parse(self.strategy))
        object.__setattr__(self, 'final_heading_policy',
                           FinalHeadingPolicy.parse(self.final_heading_policy))

        for name in ('xy_goal_tolerance', 'yaw_goal_tolerance', 'max_connect_attempts',
                     'planning_deadline', 'window_bound'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")

        if self.xy_goal_tolerance < 0 or self.yaw_goal_tolerance < 0:
            raise ConfigurationError("Goal tolerances must be non-negative")
        if self.max_connect_attempts < 0:
            raise ConfigurationError("max_connect_attempts must be >= 0")
        if self.planning_deadline < 0:
            raise ConfigurationError("planning_deadline must be >= 0")
        if self.window_bound <= 0:
            raise ConfigurationError("window_bound must be positive")
        if not isinstance(self.connector, ConnectorConfig):
            raise ConfigurationError(f"connector must be a mapping, got {self.connector!r}")
        if not isinstance(self.follower, FollowerConfig):
            raise ConfigurationError(f"follower must be a mapping, got {self.follower!r}")

    def updated(self, **params) -> 'PlannerConfig':
        """
        New snapshot with recognized fields replaced.

        Accepts the original parameter name eband_to_rs_strategy as an
        alias of strategy. Nested connector / follower parameters can be
        given as dicts. Unknown names are ignored.

        Raises:
            ConfigurationError: if a value is invalid
        """
        params = dict(params)
        if 'eband_to_rs_strategy' in params:
            params['strategy'] = params.pop('eband_to_rs_strategy')

        top_level = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for name, value in params.items():
            if name not in top_level:
                continue
            if name == 'connector' and isinstance(value, Mapping):
                value = _replace_known(self.connector, value)
            elif name == 'follower' and isinstance(value, Mapping):
                value = _replace_known(self.follower, value)
            changes[name] = value

        try:
            return replace(self, **changes)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e


def _replace_known(instance, values: Mapping[str, Any]):
    known = {f.name for f in fields(instance)}
    try:
        return replace(instance, **{k: v for k, v in values.items() if k in known})
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data[name]
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"{name}: section must be a mapping")
    return section


def config_from_dict(data: Optional[Mapping[str, Any]]) -> PlannerConfig:
    """
    Build a PlannerConfig from the sections of a parsed YAML document.

    Missing sections and keys keep their defaults.
    """
    config = PlannerConfig()
    if not data:
        return config

    params: Dict[str, Any] = {}

    if 'goal' in data:
        goal = _section(data, 'goal')
        params['xy_goal_tolerance'] = goal.get('xy_goal_tolerance', config.xy_goal_tolerance)
        params['yaw_goal_tolerance'] = goal.get('yaw_goal_tolerance', config.yaw_goal_tolerance)

    if 'strategy' in data:
        strategy = _section(data, 'strategy')
        params['strategy'] = strategy.get('eband_to_rs_strategy', config.strategy)
        params['final_heading_policy'] = strategy.get(
            'final_heading_policy', config.final_heading_policy)
        params['max_connect_attempts'] = strategy.get(
            'max_connect_attempts', config.max_connect_attempts)
        params['planning_deadline'] = strategy.get(
            'planning_deadline', config.planning_deadline)

    if 'window' in data:
        window = _section(data, 'window')
        params['window_bound'] = window.get('bound', config.window_bound)

    if 'connector' in data:
        params['connector'] = _section(data, 'connector')

    if 'controller' in data:
        params['follower'] = _section(data, 'controller')

    return config.updated(**params)


def load_config(config_path: Union[str, os.PathLike]) -> PlannerConfig:
    """
    Load a PlannerConfig from a YAML file.

    Raises:
        FileNotFoundError: if the file does not exist
        ConfigurationError: if the file is not valid YAML or holds bad values
    """
    with open(config_path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e

    if data is not None and not isinstance(data, Mapping):
        raise ConfigurationError(f"{config_path}: top level must be a mapping")

    return config_from_dict(data)
