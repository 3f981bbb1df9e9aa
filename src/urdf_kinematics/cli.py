"""Print a summary of a URDF file and the world position of each joint.

Usage::

    urdf-kinematics robot.urdf --package my_description=/path/to/my_description \
        --joint elbow=0.5 --joint wrist=-0.2
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from .chain import forward_kinematics
from .core import RobotModel
from .errors import URDFError
from .io import ParseOptions, load_urdf
from .transforms import se3

logger = logging.getLogger(__name__)


def _parse_assignments(items: List[str], what: str) -> Dict[str, str]:
    assignments = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected {what} as NAME=VALUE, got {item!r}")
        assignments[key] = value
    return assignments


def format_model(robot: RobotModel, joint_values: Dict[str, float], y_up: bool = False) -> str:
    """Human-readable report of materials, links and joints."""
    world = forward_kinematics(robot, joint_values, convert_to_y_up=y_up)
    lines = [
        "=== Robot Model Information ===",
        "",
        f"Robot Name: {robot.name}",
        f"Root Link: {robot.root_link or 'N/A'}",
        "",
        f"Materials: {len(robot.materials)}",
    ]
    for name, material in robot.materials.items():
        if material.color is not None:
            c = material.color
            lines.append(f"  - {name}: rgba({c.r}, {c.g}, {c.b}, {c.a})")
        else:
            lines.append(f"  - {name}: (no color)")

    lines += ["", f"Links: {len(robot.links)}"]
    for name, link in robot.links.items():
        lines.append(f"  - {name}:")
        lines.append(f"      Visuals: {len(link.visuals)}")
        lines.append(f"      Collisions: {len(link.collisions)}")
        if link.inertial is not None:
            lines.append(f"      Mass: {link.inertial.mass} kg")
        if link.self_collision is not None:
            lines.append(f"      Self-collision: {link.self_collision.geometry.type}")

    lines += ["", f"Joints: {len(robot.joints)}"]
    for name, joint in robot.joints.items():
        x, y, z = (float(v) for v in joint.origin.xyz)
        lines.append(f"  - {name}:")
        lines.append(f"      Type: {joint.type.value}")
        lines.append(f"      Parent: {joint.parent} -> Child: {joint.child}")
        lines.append(f"      Origin (relative to parent): xyz({x:.4f}, {y:.4f}, {z:.4f})")
        if joint.child in world:
            wx, wy, wz = (float(v) for v in se3.get_position(world[joint.child]))
            lines.append(f"      World Position: xyz({wx:.4f}, {wy:.4f}, {wz:.4f})")
        if joint.limits is not None:
            limits = [
                f"{key}: {getattr(joint.limits, key)}"
                for key in ("lower", "upper", "effort", "velocity")
                if getattr(joint.limits, key) is not None
            ]
            if limits:
                lines.append(f"      Limits: {', '.join(limits)}")

    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect a URDF robot description.")
    parser.add_argument("urdf", help="Path to the URDF file")
    parser.add_argument(
        "--package", action="append", default=[], metavar="NAME=PATH",
        help="Resolve package://NAME/ mesh URIs to PATH (repeatable)",
    )
    parser.add_argument("--working-path", default=None, help="Prefix for relative mesh paths")
    parser.add_argument(
        "--joint", action="append", default=[], metavar="NAME=VALUE",
        help="Joint value used for world positions (repeatable)",
    )
    parser.add_argument("--y-up", action="store_true", help="Report positions in a Y-up world")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        package_map = _parse_assignments(args.package, "--package")
        joint_values = {
            name: float(value)
            for name, value in _parse_assignments(args.joint, "--joint").items()
        }
    except (argparse.ArgumentTypeError, ValueError) as e:
        parser.error(str(e))

    options = ParseOptions(package_map=package_map, working_path=args.working_path)
    try:
        robot = load_urdf(args.urdf, options)
    except (OSError, URDFError) as e:
        logger.error("Could not load %s: %s", args.urdf, e)
        return 1

    print(format_model(robot, joint_values, y_up=args.y_up))
    return 0


if __name__ == "__main__":
    sys.exit(main())
