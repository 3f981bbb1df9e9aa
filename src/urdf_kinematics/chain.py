"""Joint motion semantics and stateless forward kinematics.

Every joint contributes ``T_origin @ T_motion(q)`` between its parent and
child link frames. ``T_motion`` depends only on the joint type tag:

- revolute / continuous: rotation of ``q`` radians about the unit axis
- prismatic: translation of ``q`` along the unit axis
- fixed / floating / planar: identity (floating and planar motion is not
  modelled)

The axis is expressed in the joint frame, i.e. after the origin rotation,
which is why the motion sits to the right of the origin transform.
"""

import logging
from typing import Dict, List, Mapping, Optional

import jax
import jax.numpy as jnp

from .core import Joint, JointType, RobotModel
from .transforms import se3, so3

Array = jax.Array

logger = logging.getLogger(__name__)


def y_up_transform() -> Array:
    """Basis change from URDF's Z-up to a Y-up world: -90 degrees about X."""
    return se3.from_rotation(so3.rot_x(-jnp.pi / 2))


def clamp_joint_value(joint: Joint, value: float) -> float:
    """Saturate ``value`` to the joint's declared limits.

    Only revolute and prismatic joints are limited; continuous joints and the
    non-moving kinds pass values through unchanged.
    """
    value = float(value)
    if joint.limits is None or joint.type not in (JointType.REVOLUTE, JointType.PRISMATIC):
        return value
    if joint.limits.lower is not None and value < joint.limits.lower:
        value = joint.limits.lower
    if joint.limits.upper is not None and value > joint.limits.upper:
        value = joint.limits.upper
    return value


def normalized_axis(joint: Joint) -> Array:
    """Unit motion axis of ``joint`` (+Z when none is declared).

    A zero-length axis is returned unchanged and produces no motion.
    """
    axis = joint.axis_or_default()
    norm = float(jnp.linalg.norm(axis))
    return axis / norm if norm > 0.0 else axis


def joint_motion(joint_type: JointType, axis: Array, value: float) -> Array:
    """Motion transform of a joint of ``joint_type`` at ``value``."""
    if joint_type in (JointType.REVOLUTE, JointType.CONTINUOUS):
        return se3.from_rotation(so3.from_axis_angle(axis, value))
    elif joint_type == JointType.PRISMATIC:
        return se3.from_translation(axis * value)
    elif joint_type in (JointType.FIXED, JointType.FLOATING, JointType.PLANAR):
        return se3.identity()
    raise ValueError(f"Unsupported joint type: {joint_type!r}")


def joint_transform(joint: Joint, value: float = 0.0) -> Array:
    """Child frame relative to parent frame with ``joint`` at ``value``.

    Args:
        joint: Joint from a RobotModel
        value: Joint position (radians or meters), clamped to the limits

    Returns:
        4x4 SE(3) transform ``T_origin @ T_motion(value)``
    """
    value = clamp_joint_value(joint, value)
    motion = joint_motion(joint.type, normalized_axis(joint), value)
    return se3.multiply(joint.origin.matrix(), motion)


def joints_by_parent(robot: RobotModel) -> Dict[str, List[Joint]]:
    """Outgoing joints of every link, in document order."""
    adjacency: Dict[str, List[Joint]] = {}
    for joint in robot.joints.values():
        adjacency.setdefault(joint.parent, []).append(joint)
    return adjacency


def forward_kinematics(
    robot: RobotModel,
    joint_values: Optional[Mapping[str, float]] = None,
    convert_to_y_up: bool = False,
) -> Dict[str, Array]:
    """Compute world poses of every link reachable from the root.

    Args:
        robot: Parsed robot model
        joint_values: Joint name -> value. Missing joints are at zero, unknown
            names are ignored.
        convert_to_y_up: Apply the Z-up to Y-up basis change at the root

    Returns:
        Dictionary mapping link names to their 4x4 SE(3) world poses
    """
    joint_values = joint_values or {}
    if robot.root_link is None:
        return {}

    adjacency = joints_by_parent(robot)
    root_transform = y_up_transform() if convert_to_y_up else se3.identity()
    world: Dict[str, Array] = {}

    # Depth first in document order; children are pushed reversed so the
    # first outgoing joint is expanded first
    stack = [(robot.root_link, root_transform)]
    while stack:
        link_name, T_world_to_link = stack.pop()
        # First arrival wins when a malformed model reaches a link twice
        if link_name in world or link_name not in robot.links:
            continue
        world[link_name] = T_world_to_link
        for joint in reversed(adjacency.get(link_name, [])):
            T_parent_to_child = joint_transform(joint, joint_values.get(joint.name, 0.0))
            stack.append((joint.child, se3.multiply(T_world_to_link, T_parent_to_child)))

    return world


def link_position(robot: RobotModel, link_name: str,
                  joint_values: Optional[Mapping[str, float]] = None) -> Array:
    """World position of a single link."""
    if link_name not in robot.links:
        raise ValueError(f"Link '{link_name}' not found in robot model")
    poses = forward_kinematics(robot, joint_values)
    if link_name not in poses:
        raise ValueError(f"Link '{link_name}' is not reachable from the root link")
    return se3.get_position(poses[link_name])
