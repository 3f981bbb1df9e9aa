"""
URDF Kinematics: robot descriptions to live kinematic trees.

This library parses URDF documents into an immutable, typed robot model and
builds from it a tree of rigid transform nodes whose poses follow joint
values set at runtime.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from .chain import forward_kinematics, joint_transform
from .errors import FormatError, StructuralError, URDFError
from .io import ParseOptions, load_urdf, parse_urdf
from .tree import BuildOptions, KinematicTree, build_tree, load_tree

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "BuildOptions",
    "FormatError",
    "KinematicTree",
    "ParseOptions",
    "StructuralError",
    "URDFError",
    "build_tree",
    "forward_kinematics",
    "joint_transform",
    "load_tree",
    "load_urdf",
    "parse_urdf",
]
