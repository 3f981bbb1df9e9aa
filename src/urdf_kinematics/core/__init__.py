"""Robot model value types.

This module provides the immutable data structures a robot description is
parsed into.
"""

from .robot_model import (
    Box,
    Capsule,
    Collision,
    Color,
    Cylinder,
    Geometry,
    Inertia,
    Inertial,
    Joint,
    JointCalibration,
    JointDynamics,
    JointLimits,
    JointMimic,
    JointType,
    Link,
    Material,
    Mesh,
    Pose,
    RobotModel,
    SafetyController,
    SelfCollision,
    Sphere,
    Visual,
)

__all__ = [
    "Box",
    "Capsule",
    "Collision",
    "Color",
    "Cylinder",
    "Geometry",
    "Inertia",
    "Inertial",
    "Joint",
    "JointCalibration",
    "JointDynamics",
    "JointLimits",
    "JointMimic",
    "JointType",
    "Link",
    "Material",
    "Mesh",
    "Pose",
    "RobotModel",
    "SafetyController",
    "SelfCollision",
    "Sphere",
    "Visual",
]
