"""Immutable value types describing a parsed robot.

The model is pure data: links know nothing about where they are, and every
pose in it is relative to a parent frame. Numeric vectors are stored as JAX
arrays so they compose directly with :mod:`urdf_kinematics.transforms`.
Names, tags and the name-keyed tables are static (non-pytree) fields.
"""

import enum
from typing import ClassVar, Mapping, Optional, Tuple, Union

import jax
import jax.numpy as jnp
from flax import struct

from urdf_kinematics.transforms import se3

Array = jax.Array


@struct.dataclass
class Pose:
    """Translation plus extrinsic XYZ roll-pitch-yaw rotation.

    Attributes:
        xyz: (3,) translation in the parent frame.
        rpy: (3,) roll, pitch, yaw applied about the fixed parent X, Y, Z axes
             in that order. See :func:`urdf_kinematics.transforms.so3.from_rpy`.
    """
    xyz: Array
    rpy: Array

    @classmethod
    def identity(cls) -> "Pose":
        return cls(xyz=jnp.zeros(3), rpy=jnp.zeros(3))

    def matrix(self) -> Array:
        """4x4 homogeneous transform of this pose."""
        return se3.from_xyz_rpy(self.xyz, self.rpy)


@struct.dataclass
class Color:
    r: float
    g: float
    b: float
    a: float = 1.0


@struct.dataclass
class Material:
    name: str = struct.field(pytree_node=False)
    color: Optional[Color] = None
    texture: Optional[str] = struct.field(pytree_node=False, default=None)


@struct.dataclass
class Inertia:
    """The six independent entries of a symmetric inertia tensor."""
    ixx: float = 0.0
    ixy: float = 0.0
    ixz: float = 0.0
    iyy: float = 0.0
    iyz: float = 0.0
    izz: float = 0.0

    def matrix(self) -> Array:
        return jnp.array([
            [self.ixx, self.ixy, self.ixz],
            [self.ixy, self.iyy, self.iyz],
            [self.ixz, self.iyz, self.izz],
        ])


@struct.dataclass
class Inertial:
    mass: float
    origin: Pose
    inertia: Inertia


# Geometry is a closed set of shapes; each carries a ``type`` tag.

@struct.dataclass
class Box:
    type: ClassVar[str] = "box"
    size: Array


@struct.dataclass
class Cylinder:
    type: ClassVar[str] = "cylinder"
    radius: float
    length: float


@struct.dataclass
class Sphere:
    type: ClassVar[str] = "sphere"
    radius: float


@struct.dataclass
class Mesh:
    """Mesh reference. ``filename`` is already resolved against the parse options."""
    type: ClassVar[str] = "mesh"
    filename: str = struct.field(pytree_node=False)
    scale: Optional[Array] = None


@struct.dataclass
class Capsule:
    type: ClassVar[str] = "capsule"
    radius: float
    length: float


Geometry = Union[Box, Cylinder, Sphere, Mesh, Capsule]


@struct.dataclass
class Visual:
    """A drawable shape attached to a link.

    ``material`` is either the name of a model-level material, an inline
    :class:`Material` declared inside the visual, or None.
    """
    origin: Pose
    geometry: Geometry
    name: Optional[str] = struct.field(pytree_node=False, default=None)
    material: Union[Material, str, None] = struct.field(pytree_node=False, default=None)


@struct.dataclass
class Collision:
    origin: Pose
    geometry: Geometry
    name: Optional[str] = struct.field(pytree_node=False, default=None)


@struct.dataclass
class SelfCollision:
    """Self-collision checking shape (non-standard ``self_collision_checking`` tag)."""
    origin: Pose
    geometry: Geometry


@struct.dataclass
class Link:
    name: str = struct.field(pytree_node=False)
    inertial: Optional[Inertial] = None
    visuals: Tuple[Visual, ...] = ()
    collisions: Tuple[Collision, ...] = ()
    self_collision: Optional[SelfCollision] = None


class JointType(str, enum.Enum):
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FIXED = "fixed"
    FLOATING = "floating"
    PLANAR = "planar"

    @property
    def is_movable(self) -> bool:
        """True for the joint kinds whose value drives the child transform."""
        return self in (JointType.REVOLUTE, JointType.CONTINUOUS, JointType.PRISMATIC)


@struct.dataclass
class JointLimits:
    lower: Optional[float] = None
    upper: Optional[float] = None
    effort: Optional[float] = None
    velocity: Optional[float] = None


@struct.dataclass
class SafetyController:
    soft_lower_limit: Optional[float] = None
    soft_upper_limit: Optional[float] = None
    k_position: Optional[float] = None
    k_velocity: Optional[float] = None


@struct.dataclass
class JointDynamics:
    damping: Optional[float] = None
    friction: Optional[float] = None


@struct.dataclass
class JointMimic:
    """Mimic relation ``value = multiplier * reference + offset``.

    Parsed and kept on the model; the tree does not propagate it.
    """
    joint: str = struct.field(pytree_node=False)
    multiplier: Optional[float] = None
    offset: Optional[float] = None


@struct.dataclass
class JointCalibration:
    rising: Optional[float] = None
    falling: Optional[float] = None


DEFAULT_AXIS = (0.0, 0.0, 1.0)


@struct.dataclass
class Joint:
    """A joint placing ``child`` relative to ``parent``.

    Attributes:
        origin: Child frame relative to the parent frame at zero joint value.
        axis: Motion axis in the joint frame, or None for the default +Z.
    """
    name: str = struct.field(pytree_node=False)
    type: JointType = struct.field(pytree_node=False)
    parent: str = struct.field(pytree_node=False)
    child: str = struct.field(pytree_node=False)
    origin: Pose
    axis: Optional[Array] = None
    limits: Optional[JointLimits] = None
    safety_controller: Optional[SafetyController] = None
    dynamics: Optional[JointDynamics] = None
    mimic: Optional[JointMimic] = None
    calibration: Optional[JointCalibration] = None

    def axis_or_default(self) -> Array:
        return jnp.asarray(DEFAULT_AXIS) if self.axis is None else self.axis


@struct.dataclass
class RobotModel:
    """A parsed robot description.

    The tables are read-only and keep document order. ``root_link`` is the
    first link that no joint names as its child, or None when every link is
    somebody's child.
    """
    name: str = struct.field(pytree_node=False)
    materials: Mapping[str, Material] = struct.field(pytree_node=False)
    links: Mapping[str, Link] = struct.field(pytree_node=False)
    joints: Mapping[str, Joint] = struct.field(pytree_node=False)
    root_link: Optional[str] = struct.field(pytree_node=False, default=None)

    def resolve_material(self, visual: Visual) -> Optional[Material]:
        """Effective material of ``visual``: inline definition first, then by name."""
        material = visual.material
        if isinstance(material, Material):
            if material.color is not None or material.texture is not None:
                return material
            return self.materials.get(material.name, material)
        if isinstance(material, str):
            return self.materials.get(material)
        return None
