#!/usr/bin/env python3
"""
RSBAND - Local Planner Demo
===========================

Drives a simulated car-like robot along a global plan with the RSBand
local planner and the simulation adapters:

- Frame manager backed transform gateway
- In-memory elastic band with obstacle repulsion
- Arc connector honoring a minimum turning radius
- Pure Pursuit tracking controller

Usage:
    python main.py
    python main.py --strategy 3 --obstacle 4.0 0.3
    python main.py --config config/rsband.yaml --route s-curve
    python main.py --route straight --obstacle 5.0 0.2 --plot
"""

import sys
import math
import argparse
from pathlib import Path as FilePath
from typing import Optional

# Ajouter src au path
sys.path.insert(0, str(FilePath(__file__).parent / 'src'))

from rsband.config import PlannerConfig, StrategyMode, ConfigurationError, load_config
from rsband.core import RSBandPlanner
from rsband.geometry import Pose, Path, path_length
from rsband.interface import (
    FrameTransformGateway, SimulatedObstacleLayers, SimulatedElasticBand,
    ArcConnector, PurePursuitController
)


class SimRobot:
    """Simple simulated robot (unicycle model)."""

    def __init__(self, x, y, theta):
        self.x = x
        self.y = y
        self.theta = theta
        self.velocity = 0.0
        self.angular_velocity = 0.0

    def update(self, dt=0.05):
        self.theta += self.angular_velocity * dt
        self.x += self.velocity * math.cos(self.theta) * dt
        self.y += self.velocity * math.sin(self.theta) * dt


def create_route(name: str, spacing: float = 0.25) -> Path:
    """Global plan in the map frame, headings along the route."""
    points = []
    if name == 'straight':
        n = int(10.0 / spacing)
        points = [(i * spacing, 0.0) for i in range(n + 1)]
    elif name == 's-curve':
        n = int(12.0 / spacing)
        points = [(i * spacing, 1.0 * math.sin(i * spacing * math.pi / 6.0)) for i in range(n + 1)]
    else:
        raise ValueError(f"Unknown route: {name}")

    plan = []
    for i, (x, y) in enumerate(points):
        if i + 1 < len(points):
            yaw = math.atan2(points[i + 1][1] - y, points[i + 1][0] - x)
        else:
            yaw = plan[-1].yaw
        plan.append(Pose(x, y, yaw, "map"))
    return plan


def plot_run(plan: Path, trail, planner: RSBandPlanner, layers: SimulatedObstacleLayers,
             output: Optional[str] = None):
    """Final plans of the run over the global plan and the robot trail."""
    import matplotlib
    if output:
        matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(10, 6))
    fig.suptitle(f'RSBand - {planner.config.strategy.name}', fontsize=14)

    gx, gy = zip(*(p.position for p in plan))
    ax.plot(gx, gy, 'k--', linewidth=1, alpha=0.5, label='Global plan')

    if trail:
        tx, ty = zip(*trail)
        ax.plot(tx, ty, 'b-', linewidth=1.5, alpha=0.6, label='Trail')

    for poses, style, label in (
        (planner.band_plan, 'g.-', 'Band'),
        (planner.converted_plan, 'm-', 'Converted'),
        (planner.local_plan, 'c:', 'Local plan'),
    ):
        if poses:
            px, py = zip(*(p.position for p in poses))
            ax.plot(px, py, style, linewidth=2, alpha=0.8, label=label)

    obstacles = layers.as_array()
    if len(obstacles):
        ax.plot(obstacles[:, 0], obstacles[:, 1], 'rx', markersize=10, label='Obstacles')

    ax.plot([plan[-1].x], [plan[-1].y], 'r*', markersize=15, label='Goal')
    ax.set_xlabel('X (meters)')
    ax.set_ylabel('Y (meters)')
    ax.set_aspect('equal')
    ax.grid(True, alpha=0.2)
    ax.legend(loc='upper left')
    plt.tight_layout()

    if output:
        fig.savefig(output)
        print(f"Plot saved to {output}")
    else:
        plt.show()


def run_demo(args) -> int:
    print("=" * 60)
    print("   RSBAND - LOCAL PLANNER DEMO")
    print("=" * 60)

    try:
        config = load_config(args.config) if args.config else PlannerConfig()
        if args.strategy is not None:
            config = config.updated(strategy=args.strategy)
    except (OSError, ConfigurationError) as e:
        print(f"[ERREUR] Configuration invalide: {e}")
        return 1

    plan = create_route(args.route)
    print(f"Route '{args.route}': {len(plan)} poses, {path_length(plan):.1f}m")
    print(f"Strategy: {config.strategy.name}")

    robot = SimRobot(plan[0].x, plan[0].y, plan[0].heading)

    gateway = FrameTransformGateway(global_frame="odom")
    gateway.set_robot_pose(robot.x, robot.y, robot.theta)

    layers = SimulatedObstacleLayers()
    for ox, oy in args.obstacle or []:
        layers.add_obstacle(ox, oy)

    band = SimulatedElasticBand(obstacle_layers=layers)
    connector = ArcConnector(config.connector)
    controller = PurePursuitController(gateway, config.follower)

    planner = RSBandPlanner(config)
    planner.initialize(gateway, band, connector, controller, layers)

    if not planner.set_plan(plan):
        print("[ERREUR] Global plan rejected")
        return 1

    failed_cycles = 0
    trail = [(robot.x, robot.y)]
    dt = 1.0 / args.rate
    for step in range(args.steps):
        cmd, ok = planner.compute_velocity_command()

        if planner.is_goal_reached():
            print(f"\nGoal reached at step {step}!")
            break

        if ok:
            robot.velocity = cmd.linear
            robot.angular_velocity = cmd.angular
        else:
            failed_cycles += 1
            robot.velocity = 0.0
            robot.angular_velocity = 0.0

        robot.update(dt)
        gateway.set_robot_pose(robot.x, robot.y, robot.theta)
        trail.append((robot.x, robot.y))

        if step % 20 == 0:
            status = planner.get_status()
            print(f"  Step {step}: pos=({robot.x:.2f}, {robot.y:.2f}) "
                  f"speed={robot.velocity:.2f}m/s window={status['window']} "
                  f"fail_index={status['fail_index']}")

    goal = plan[-1]
    print("\n" + "=" * 50)
    print("   RUN SUMMARY")
    print("=" * 50)
    print(f"  Final state:     {planner.state.name}")
    print(f"  Distance to goal: {math.hypot(goal.x - robot.x, goal.y - robot.y):.3f}m")
    print(f"  Failed cycles:   {failed_cycles}")

    reached = planner.is_goal_reached()

    if args.plot or args.plot_file:
        plot_run(plan, trail, planner, layers, args.plot_file)

    return 0 if reached else 2


def main():
    parser = argparse.ArgumentParser(
        description='RSBand local planner demo',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Strategies:
  0  start to end
  1  point to point until failure
  2  point to point skipping failures
  3  receding end
"""
    )
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Fichier de configuration YAML (ex: config/rsband.yaml)'
    )
    parser.add_argument(
        '--strategy', '-s',
        type=int,
        choices=[m.value for m in StrategyMode],
        help='Strategie de conversion (surcharge le fichier de config)'
    )
    parser.add_argument(
        '--route', '-r',
        choices=['straight', 's-curve'],
        default='s-curve',
        help='Route globale (defaut: s-curve)'
    )
    parser.add_argument(
        '--obstacle',
        type=float,
        nargs=2,
        action='append',
        metavar=('X', 'Y'),
        help='Obstacle ponctuel (repetable)'
    )
    parser.add_argument(
        '--steps',
        type=int,
        default=600,
        help='Nombre maximum de cycles (defaut: 600)'
    )
    parser.add_argument(
        '--rate',
        type=float,
        default=20.0,
        help='Frequence de la boucle de controle en Hz (defaut: 20)'
    )
    parser.add_argument(
        '--plot',
        action='store_true',
        help='Affiche les plans finaux avec matplotlib'
    )
    parser.add_argument(
        '--plot-file',
        type=str,
        metavar='PNG',
        help='Enregistre le graphique au lieu de l\'afficher'
    )

    args = parser.parse_args()
    return run_demo(args)


if __name__ == '__main__':
    sys.exit(main())
