"""
RSBand Local Planner

Per-cycle control loop combining an elastic band with a nonholonomic
(car-like) path planner:

1. Keep the band in step with the global plan window and the robot pose
2. Optimize the band (obstacle avoidance)
3. Rebuild band headings
4. Convert the band into a nonholonomic path with the selected strategy
5. Merge the converted path with the band poses it did not reach
6. Ask the tracking controller for a velocity command

Any failure along the way aborts the cycle: no command is produced and
the next cycle starts fresh.

Usage:
    planner = RSBandPlanner(load_config('config/rsband.yaml'))
    planner.initialize(gateway, band, connector, controller, obstacle_layers)

    planner.set_plan(global_plan)

    # In control loop:
    cmd, ok = planner.compute_velocity_command()
    if ok:
        motor.set_velocity(cmd.linear)
"""

from typing import Optional, Tuple

from ..config import ConfigurationError, PlannerConfig
from ..geometry.transforms import Path
from ..interface.collaborators import (
    IDeformableBand, INonholonomicPlanner, IObstacleLayers,
    IPoseTransformGateway, ITrackingController, VelocityCommand
)
from ..navigation.conversion import ConversionResult, ConversionStrategySelector, PlanningBudget
from ..navigation.goal import GoalEvaluator
from ..navigation.orientation import interpolate_orientations
from ..navigation.stitching import PathStitcher
from ..navigation.window_sync import PathWindowSynchronizer
from .state_machine import PlannerEvent, PlannerState, StateMachine


def _no_command() -> VelocityCommand:
    return VelocityCommand(0.0, 0.0, is_valid=False)


class RSBandPlanner:
    """
    Local planner turning an elastic band into a drivable car-like path.

    Collaborators are handed over in initialize(); every other call
    made before that is rejected.
    """

    def __init__(self, config: Optional[PlannerConfig] = None):
        # Replaced as a whole on reconfiguration, never mutated
        self._config = config or PlannerConfig()
        self._initialized = False

        self.state_machine = StateMachine()
        self.goal_evaluator = GoalEvaluator()

        self._gateway: Optional[IPoseTransformGateway] = None
        self._band: Optional[IDeformableBand] = None
        self._connector: Optional[INonholonomicPlanner] = None
        self._controller: Optional[ITrackingController] = None
        self._obstacle_layers: Optional[IObstacleLayers] = None

        self.synchronizer: Optional[PathWindowSynchronizer] = None
        self.selector: Optional[ConversionStrategySelector] = None
        self.stitcher: Optional[PathStitcher] = None

        # Latest plans, kept for publishing
        self._band_plan: Path = []
        self._converted_plan: Path = []
        self._local_plan: Path = []
        self.last_conversion: Optional[ConversionResult] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(
        self,
        gateway: IPoseTransformGateway,
        band: IDeformableBand,
        connector: INonholonomicPlanner,
        controller: ITrackingController,
        obstacle_layers: Optional[IObstacleLayers] = None
    ):
        """Attach collaborators. Only the first call has an effect."""
        if self._initialized:
            print("[RSBAND] Planner already initialized. Should not be called more than once")
            return

        self._gateway = gateway
        self._band = band
        self._connector = connector
        self._controller = controller
        self._obstacle_layers = obstacle_layers

        self.synchronizer = PathWindowSynchronizer(gateway, band)
        self.selector = ConversionStrategySelector(connector)
        self.stitcher = PathStitcher(gateway)

        connector.reconfigure(self._config)
        controller.reconfigure(self._config)

        self._initialized = True

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> PlannerConfig:
        return self._config

    def reconfigure(self, config: Optional[PlannerConfig] = None, **params) -> bool:
        """
        Swap in a new configuration snapshot.

        Args:
            config: Complete snapshot, or
            **params: Fields to change on the current snapshot
                (xy_goal_tolerance, yaw_goal_tolerance, strategy or
                eband_to_rs_strategy, connector={...}, follower={...}, ...)

        Returns:
            False if a value was rejected; the previous snapshot stays active
        """
        try:
            if config is None:
                new_config = self._config.updated(**params)
            elif isinstance(config, PlannerConfig):
                new_config = config
            else:
                raise ConfigurationError(f"Not a PlannerConfig: {config!r}")
        except ConfigurationError as e:
            print(f"[RSBAND] Reconfiguration rejected: {e}")
            return False

        self._config = new_config

        if self._connector is not None:
            self._connector.reconfigure(new_config)
        else:
            print("[RSBAND] Reconfigure called before nonholonomic planner initialization")

        if self._controller is not None:
            self._controller.reconfigure(new_config)
        else:
            print("[RSBAND] Reconfigure called before path tracking controller initialization")

        return True

    def _check_initialized(self, caller: str) -> bool:
        if not self._initialized:
            print(f"[RSBAND] Planner must be initialized before {caller} is called!")
            return False
        return True

    # ------------------------------------------------------------------
    # Plan handling
    # ------------------------------------------------------------------

    def set_plan(self, global_plan: Path) -> bool:
        """
        Start following a new global plan.

        The band is rebuilt from the part of the plan inside the local
        window. If the band rejects it, the obstacle layers are reset and
        the band is tried once more.

        Returns:
            True if the band was built from the new plan
        """
        if not self._check_initialized("set_plan"):
            return False

        if not global_plan:
            print("[RSBAND] Received an empty global plan")
            return False

        config = self._config

        seeded = self.synchronizer.transform_window(global_plan, config.window_bound)
        if seeded is None:
            return False
        window, counters = seeded

        if not self._band.reset(window):
            if self._obstacle_layers is not None:
                self._obstacle_layers.reset_layers()
            if not self._band.reset(window):
                print("[RSBAND] Setting plan to elastic band failed!")
                self.state_machine.handle_event(PlannerEvent.PLAN_REJECTED)
                return False

        self.synchronizer.commit(global_plan, counters)
        self._band_plan, self._converted_plan, self._local_plan = [], [], []
        self.last_conversion = None

        if not self._band.optimize():
            print("[RSBAND] Optimization of elastic band failed!")

        self.state_machine.handle_event(PlannerEvent.PLAN_ACCEPTED)
        return True

    def reset(self):
        """Drop the current plan."""
        if self.synchronizer is not None:
            self.synchronizer.clear()
        self._band_plan, self._converted_plan, self._local_plan = [], [], []
        self.last_conversion = None
        self.state_machine.handle_event(PlannerEvent.RESET)

    # ------------------------------------------------------------------
    # Control cycle
    # ------------------------------------------------------------------

    def compute_velocity_command(self) -> Tuple[VelocityCommand, bool]:
        """
        Run one control cycle.

        Returns:
            (command, True) on success, (invalid command, False) if no
            command could be produced this cycle
        """
        if not self._check_initialized("compute_velocity_command"):
            return _no_command(), False

        if not self.state_machine.has_plan:
            print("[RSBAND] No valid global plan to follow")
            return _no_command(), False

        # Read the snapshot once for the whole cycle
        config = self._config

        if self._goal_reached(config):
            self.state_machine.handle_event(PlannerEvent.GOAL_REACHED)
            return VelocityCommand.zero(), True

        local_plan = self._plan_local_path(config)
        if local_plan is None:
            return _no_command(), False

        cmd = self._controller.compute_command(local_plan)
        if cmd is None or not cmd.is_valid:
            print("[RSBAND] Path tracking controller failed to produce command")
            return _no_command(), False

        # Left the goal tolerance; tracking again once a cycle succeeds
        if self.state_machine.state == PlannerState.GOAL_REACHED:
            self.state_machine.handle_event(PlannerEvent.GOAL_LOST)

        return cmd, True

    def _plan_local_path(self, config: PlannerConfig) -> Optional[Path]:
        """Band update, conversion and merge. None if any step fails."""
        if self.synchronizer.update(config.window_bound) is None:
            print("[RSBAND] Failed to update elastic band!")
            return None

        if not self._band.optimize():
            print("[RSBAND] Failed to optimize elastic band!")
            return None

        band_path = self._band.get_path()
        if len(band_path) < 2:
            print("[RSBAND] Failed to get elastic band plan!")
            return None

        band_path = interpolate_orientations(band_path, config.final_heading_policy)
        self._band_plan = band_path

        budget = PlanningBudget(config.max_connect_attempts, config.planning_deadline)
        try:
            result = self.selector.convert(band_path, config.strategy, budget)
        except ConfigurationError as e:
            print(f"[RSBAND] {e}")
            return None

        self.last_conversion = result
        if result.failed:
            print("[RSBAND] Failed to get nonholonomic plan")
            return None

        local_plan = self.stitcher.stitch(result.path, result.fail_index, band_path)
        if local_plan is None:
            print("[RSBAND] Failed to merge nonholonomic plan with elastic band")
            return None

        self._converted_plan = result.path
        self._local_plan = local_plan
        return local_plan

    # ------------------------------------------------------------------
    # Goal
    # ------------------------------------------------------------------

    def is_goal_reached(self) -> bool:
        """True if the robot is within tolerances of the global plan's last pose."""
        if not self._check_initialized("is_goal_reached"):
            return False

        if self._goal_reached(self._config):
            self.state_machine.handle_event(PlannerEvent.GOAL_REACHED)
            return True
        return False

    def _goal_reached(self, config: PlannerConfig) -> bool:
        if self.synchronizer is None or not self.synchronizer.global_plan:
            return False

        robot_pose = self._gateway.current_pose()
        if robot_pose is None:
            print("[RSBAND] Could not get robot pose!")
            return False

        goal = self._gateway.transform_pose(
            self.synchronizer.global_plan[-1], robot_pose.frame_id)
        if goal is None:
            print("[RSBAND] Could not transform goal to the robot frame!")
            return False

        if self.goal_evaluator.is_reached(
                robot_pose, goal, config.xy_goal_tolerance, config.yaw_goal_tolerance):
            print("[RSBAND] Goal Reached!")
            return True
        return False

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlannerState:
        return self.state_machine.state

    @property
    def global_plan(self) -> Path:
        return list(self.synchronizer.global_plan) if self.synchronizer else []

    @property
    def band_plan(self) -> Path:
        """Last orientation-interpolated band."""
        return list(self._band_plan)

    @property
    def converted_plan(self) -> Path:
        """Last nonholonomic path produced by the conversion strategy."""
        return list(self._converted_plan)

    @property
    def local_plan(self) -> Path:
        """Last merged plan handed to the tracking controller."""
        return list(self._local_plan)

    def get_status(self) -> dict:
        counters = self.synchronizer.counters if self.synchronizer else None
        return {
            **self.state_machine.get_status(),
            "strategy": self._config.strategy.name,
            "window": (counters.start, counters.end) if counters else None,
            "band_poses": len(self._band_plan),
            "local_poses": len(self._local_plan),
            "fail_index": self.last_conversion.fail_index if self.last_conversion else None,
        }
