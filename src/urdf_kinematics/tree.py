"""Kinematic tree builder.

Turns a :class:`~urdf_kinematics.core.RobotModel` into a hierarchy of
transform nodes::

    KinematicTree (optional Z-up -> Y-up basis change)
    └── LinkNode root
        ├── JointNode j1 (origin pose, recomputed from the joint value)
        │   └── LinkNode child
        │       └── ...
        └── JointNode j2 ...

Each node holds a 4x4 local transform relative to its parent node, so the
world pose of any node is the product of the local transforms from the tree
root down to it. The tree is mutated from a single thread of control; a
joint value update recomputes that joint's transform before returning.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional

import jax
import jax.numpy as jnp

from .chain import (
    clamp_joint_value,
    joint_motion,
    joints_by_parent,
    normalized_axis,
    y_up_transform,
)
from .core import Joint, Link, Material, Mesh, RobotModel, Visual
from .io.mesh_loader import MeshLoader, TrimeshLoader
from .transforms import se3, so3

Array = jax.Array

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """Options for building a kinematic tree.

    Attributes:
        joint_radius: Radius of the per-link debug marker.
        joint_color: Color of the per-link debug marker (0xRRGGBB).
        link_color: Color of the debug lines from a link to its joints.
        convert_to_y_up: Rotate the whole tree from URDF's Z-up into Y-up.
        show_debug: Attach debug markers. None means the entry point default
            (on for :func:`build_tree`, off for :func:`load_tree`).
    """
    joint_radius: float = 0.02
    joint_color: int = 0xFF0000
    link_color: int = 0x00FF00
    convert_to_y_up: bool = True
    show_debug: Optional[bool] = None


class Node:
    """A rigid frame with a local transform relative to its parent node."""

    def __init__(self, name: str, transform: Optional[Array] = None):
        self.name = name
        self.parent: Optional["Node"] = None
        self.children: List["Node"] = []
        self.transform = se3.identity() if transform is None else transform

    def add(self, child: "Node") -> "Node":
        child.parent = self
        self.children.append(child)
        return child

    @property
    def position(self) -> Array:
        return se3.get_position(self.transform)

    @property
    def rotation(self) -> Array:
        return se3.get_rotation(self.transform)

    @property
    def quaternion(self) -> Array:
        """Local orientation as a (w, x, y, z) quaternion."""
        return so3.to_quaternion(self.rotation)

    def world_transform(self) -> Array:
        """Pose of this node relative to the tree root's parent frame."""
        T = self.transform
        node = self.parent
        while node is not None:
            T = se3.multiply(node.transform, T)
            node = node.parent
        return T

    def traverse(self) -> Iterator["Node"]:
        """This node and all its descendants, depth first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class LinkNode(Node):
    """Frame of a link. Its pose comes entirely from the joints above it."""

    def __init__(self, link: Link):
        super().__init__(f"link_{link.name}")
        self.link = link
        self.link_name = link.name


class JointNode(Node):
    """Frame of a joint's child side, driven by a scalar joint value."""

    def __init__(self, joint: Joint):
        base_transform = joint.origin.matrix()
        super().__init__(f"joint_{joint.name}", base_transform)
        self.joint = joint
        self.joint_name = joint.name
        self.joint_type = joint.type
        self.axis = normalized_axis(joint)
        self.limits = joint.limits
        self.base_transform = base_transform
        self.joint_value = 0.0
        if self.joint_type.is_movable:
            self.set_joint_value(0.0)

    def set_joint_value(self, value: float) -> float:
        """Set the joint position and recompute the local transform.

        Out-of-range values saturate at the declared limits. Fixed, floating
        and planar joints accept the call but never move.

        Returns:
            The effective (clamped) joint value.
        """
        if not self.joint_type.is_movable:
            return self.joint_value

        value = clamp_joint_value(self.joint, value)
        self.joint_value = value
        motion = joint_motion(self.joint_type, self.axis, value)
        self.transform = se3.multiply(self.base_transform, motion)
        return value


class VisualNode(Node):
    """A loaded mesh placed at its visual's origin under a link node."""

    def __init__(self, link_name: str, visual: Visual, mesh, material: Optional[Material]):
        super().__init__(f"visual_{link_name}_{visual.name or 'mesh'}", visual.origin.matrix())
        self.visual = visual
        self.mesh = mesh
        self.material = material
        scale = visual.geometry.scale if isinstance(visual.geometry, Mesh) else None
        self.scale = jnp.ones(3) if scale is None else scale


class JointMarker(Node):
    """Debug sphere marking a link frame origin."""

    def __init__(self, link_name: str, radius: float, color: int):
        super().__init__(f"debug_sphere_{link_name}")
        self.radius = radius
        self.color = color


class LinkLine(Node):
    """Debug segment from a link frame origin to one of its joint origins."""

    def __init__(self, joint_name: str, end: Array, color: int):
        super().__init__(f"debug_line_{joint_name}")
        self.start = jnp.zeros(3)
        self.end = end
        self.color = color


class KinematicTree(Node):
    """Root of a built robot.

    Attributes:
        links: Link name -> LinkNode for every link reached from the root.
        joints: Joint name -> JointNode for every joint that was built.
    """

    def __init__(self, model: RobotModel):
        super().__init__(model.name)
        self.model = model
        self.links: Dict[str, LinkNode] = {}
        self.joints: Dict[str, JointNode] = {}

    @property
    def joint_values(self) -> Dict[str, float]:
        return {name: node.joint_value for name, node in self.joints.items()}

    def set_joint_values(self, values: Mapping[str, float]):
        """Set several joints at once. Names not in the tree are ignored."""
        for name, value in values.items():
            joint = self.joints.get(name)
            if joint is not None:
                joint.set_joint_value(value)

    def link_world_transform(self, link_name: str) -> Array:
        """World pose of the link named ``link_name``."""
        try:
            return self.links[link_name].world_transform()
        except KeyError:
            raise ValueError(f"Link '{link_name}' not found in kinematic tree") from None

    def link_world_transforms(self) -> Dict[str, Array]:
        return {name: node.world_transform() for name, node in self.links.items()}


def _build(model: RobotModel, options: BuildOptions, show_debug: bool) -> KinematicTree:
    tree = KinematicTree(model)
    if options.convert_to_y_up:
        tree.transform = y_up_transform()

    if model.root_link is None:
        logger.warning("Robot '%s' has no root link, building an empty tree", model.name)
        return tree

    adjacency = joints_by_parent(model)

    # (joint, node of its parent link) pairs still to expand, depth first
    pending = []

    def add_link(link_name: str, parent_node: Node):
        link = model.links.get(link_name)
        if link is None:
            logger.warning("Link '%s' is not defined in the model, skipping", link_name)
            return

        link_node = parent_node.add(LinkNode(link))
        tree.links[link_name] = link_node

        if show_debug:
            link_node.add(JointMarker(link_name, options.joint_radius, options.joint_color))

        for joint in reversed(adjacency.get(link_name, [])):
            pending.append((joint, link_node))

    add_link(model.root_link, tree)
    while pending:
        joint, link_node = pending.pop()
        if joint.child in tree.links:
            logger.warning(
                "Link '%s' already reached, skipping joint '%s'", joint.child, joint.name
            )
            continue

        if show_debug:
            link_node.add(LinkLine(joint.name, joint.origin.xyz, options.link_color))

        joint_node = link_node.add(JointNode(joint))
        tree.joints[joint.name] = joint_node

        add_link(joint.child, joint_node)

    logger.debug(
        "Built tree for '%s': %d links, %d joints", model.name, len(tree.links), len(tree.joints)
    )
    return tree


def build_tree(model: RobotModel, options: Optional[BuildOptions] = None) -> KinematicTree:
    """Build a kinematic tree from a parsed model.

    Debug markers are attached unless ``options.show_debug`` is False.

    Args:
        model: Parsed robot description
        options: See :class:`BuildOptions`

    Returns:
        KinematicTree: the root node with link and joint lookups
    """
    options = options or BuildOptions()
    show_debug = True if options.show_debug is None else options.show_debug
    return _build(model, options, show_debug)


async def _attach_mesh(
    loader: MeshLoader,
    link_node: LinkNode,
    visual: Visual,
    material: Optional[Material],
):
    filename = visual.geometry.filename
    try:
        mesh = await loader(filename)
    except Exception as e:
        # loader errors never propagate out of load_tree
        logger.warning("Failed to load mesh %s: %s", filename, e)
        return
    link_node.add(VisualNode(link_node.link_name, visual, mesh, material))


async def load_tree(
    model: RobotModel,
    options: Optional[BuildOptions] = None,
    loader: Optional[MeshLoader] = None,
) -> KinematicTree:
    """Build a kinematic tree and attach the meshes of all mesh visuals.

    Meshes are loaded concurrently. A mesh that fails to load is logged and
    left out; the tree and every other visual are unaffected. Debug markers
    are off unless ``options.show_debug`` is True.

    Args:
        model: Parsed robot description
        options: See :class:`BuildOptions`
        loader: Async ``filename -> mesh`` callable, a TrimeshLoader by default

    Returns:
        KinematicTree: the built tree once every load has finished
    """
    options = options or BuildOptions()
    tree = _build(model, options, bool(options.show_debug))
    loader = loader or TrimeshLoader()

    pending = []
    for link_name, link in model.links.items():
        link_node = tree.links.get(link_name)
        if link_node is None:
            continue
        for visual in link.visuals:
            if not isinstance(visual.geometry, Mesh) or not visual.geometry.filename:
                continue
            material = model.resolve_material(visual)
            pending.append(_attach_mesh(loader, link_node, visual, material))

    await asyncio.gather(*pending)
    return tree
