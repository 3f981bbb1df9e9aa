"""
Pose and rotation math shared by the parser, the tree builder and
forward kinematics.

- SO(3) rotations (so3 module), including the URDF roll-pitch-yaw convention
- SE(3) rigid body transforms (se3 module)

All functions are pure and operate on JAX arrays.
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
