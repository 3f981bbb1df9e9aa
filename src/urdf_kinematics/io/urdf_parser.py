"""URDF parser producing a typed RobotModel.

The document is first read into an lxml element tree (ordered, attributed,
repeated siblings preserved), then walked top-down: materials, links and
joints are extracted from the direct children of ``<robot>`` in document
order, after which the root link is inferred.

Anything the parser does not know about (``<gazebo>``, ``<transmission>``,
vendor tags) is skipped. Missing required structure and malformed values are
fatal and raise :class:`~urdf_kinematics.errors.StructuralError` or
:class:`~urdf_kinematics.errors.FormatError`.
"""

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

import jax.numpy as jnp
from lxml import etree

from urdf_kinematics.core.robot_model import (
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
from urdf_kinematics.errors import FormatError, StructuralError

logger = logging.getLogger(__name__)

_PACKAGE_URI = re.compile(r"^package://([^/]+)/(.+)$")


@dataclass(frozen=True)
class ParseOptions:
    """Options controlling how a document is read.

    Attributes:
        package_map: ``package://<id>/<rest>`` mesh URIs whose id is a key here
            are rewritten to ``<package_map[id]>/<rest>``. Unmapped ids are left
            untouched for the caller to resolve.
        working_path: Prefix for mesh filenames that are neither package URIs
            nor absolute paths.
        ignore_gazebo: Skip ``<gazebo>`` extensions (they are never interpreted).
        ignore_transmission: Skip ``<transmission>`` blocks (never interpreted).
    """
    package_map: Mapping[str, str] = field(default_factory=dict)
    working_path: Optional[str] = None
    ignore_gazebo: bool = True
    ignore_transmission: bool = True


def resolve_mesh_filename(filename: str, options: ParseOptions) -> str:
    """Resolve a mesh filename against the package map and working path."""
    if filename.startswith("package://"):
        match = _PACKAGE_URI.match(filename)
        if match:
            package_name, rest = match.groups()
            prefix = options.package_map.get(package_name)
            if prefix:
                filename = f"{prefix}/{rest}"

    if (filename and options.working_path
            and not filename.startswith("package://")
            and not filename.startswith("/")):
        filename = f"{options.working_path}/{filename}"

    return filename


def _parse_float(raw: str, what: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise FormatError(f"Invalid number for {what}: {raw!r}") from None


def _parse_floats(raw: str, count: int, what: str) -> List[float]:
    parts = raw.split()
    if len(parts) != count:
        raise FormatError(f"Invalid {what} format, expected {count} values: {raw!r}")
    return [_parse_float(part, what) for part in parts]


def _parse_vector3(raw: str, what: str = "vector3"):
    return jnp.array(_parse_floats(raw, 3, what))


def _optional_float(element: etree._Element, attribute: str) -> Optional[float]:
    raw = element.get(attribute)
    if raw is None:
        return None
    return _parse_float(raw, f"{element.tag}@{attribute}")


def _parse_origin(element: Optional[etree._Element]) -> Pose:
    if element is None:
        return Pose.identity()
    xyz = _parse_vector3(element.get("xyz") or "0 0 0", "xyz")
    rpy = _parse_vector3(element.get("rpy") or "0 0 0", "rpy")
    return Pose(xyz=xyz, rpy=rpy)


def _parse_color(element: etree._Element) -> Color:
    r, g, b, a = _parse_floats(element.get("rgba") or "0 0 0 1", 4, "rgba")
    return Color(r=r, g=g, b=b, a=a)


def _parse_material_body(element: etree._Element, name: str) -> Material:
    color_el = element.find("color")
    texture_el = element.find("texture")

    color = _parse_color(color_el) if color_el is not None else None
    texture = None
    if texture_el is not None:
        texture = texture_el.get("filename") or None

    return Material(name=name, color=color, texture=texture)


def _parse_material(element: etree._Element) -> Material:
    name = element.get("name")
    if not name:
        raise StructuralError("Material element missing name attribute")
    return _parse_material_body(element, name)


def _parse_geometry(element: etree._Element, options: ParseOptions) -> Geometry:
    box_el = element.find("box")
    if box_el is not None:
        return Box(size=_parse_vector3(box_el.get("size", "1 1 1"), "size"))

    cylinder_el = element.find("cylinder")
    if cylinder_el is not None:
        return Cylinder(
            radius=_parse_float(cylinder_el.get("radius", "0.5"), "cylinder radius"),
            length=_parse_float(cylinder_el.get("length", "1"), "cylinder length"),
        )

    sphere_el = element.find("sphere")
    if sphere_el is not None:
        return Sphere(radius=_parse_float(sphere_el.get("radius", "0.5"), "sphere radius"))

    mesh_el = element.find("mesh")
    if mesh_el is not None:
        filename = resolve_mesh_filename(mesh_el.get("filename", ""), options)
        scale_raw = mesh_el.get("scale")
        scale = _parse_vector3(scale_raw, "scale") if scale_raw else None
        return Mesh(filename=filename, scale=scale)

    capsule_el = element.find("capsule")
    if capsule_el is not None:
        return Capsule(
            radius=_parse_float(capsule_el.get("radius", "0.5"), "capsule radius"),
            length=_parse_float(capsule_el.get("length", "1"), "capsule length"),
        )

    tags = [child.tag for child in element if isinstance(child.tag, str)]
    raise FormatError(f"Unknown geometry type: {tags}")


def _parse_inertial(element: etree._Element) -> Inertial:
    mass_el = element.find("mass")
    inertia_el = element.find("inertia")

    mass = _parse_float(mass_el.get("value", "0"), "mass") if mass_el is not None else 0.0

    inertia = Inertia()
    if inertia_el is not None:
        inertia = Inertia(**{
            key: _parse_float(inertia_el.get(key, "0"), f"inertia {key}")
            for key in ("ixx", "ixy", "ixz", "iyy", "iyz", "izz")
        })

    return Inertial(mass=mass, origin=_parse_origin(element.find("origin")), inertia=inertia)


def _parse_visual_material(element: etree._Element) -> Union[Material, str, None]:
    name = element.get("name") or ""
    if element.find("color") is None and element.find("texture") is None:
        return name or None
    # inline definitions may be anonymous
    return _parse_material_body(element, name)


def _parse_visual(element: etree._Element, options: ParseOptions) -> Visual:
    geometry_el = element.find("geometry")
    if geometry_el is None:
        raise StructuralError("Visual element missing geometry")

    material_el = element.find("material")
    material = _parse_visual_material(material_el) if material_el is not None else None

    return Visual(
        origin=_parse_origin(element.find("origin")),
        geometry=_parse_geometry(geometry_el, options),
        name=element.get("name") or None,
        material=material,
    )


def _parse_collision(element: etree._Element, options: ParseOptions) -> Collision:
    geometry_el = element.find("geometry")
    if geometry_el is None:
        raise StructuralError("Collision element missing geometry")

    return Collision(
        origin=_parse_origin(element.find("origin")),
        geometry=_parse_geometry(geometry_el, options),
        name=element.get("name") or None,
    )


def _parse_link(element: etree._Element, options: ParseOptions) -> Link:
    name = element.get("name")
    if not name:
        raise StructuralError("Link element missing name attribute")

    inertial_el = element.find("inertial")
    inertial = _parse_inertial(inertial_el) if inertial_el is not None else None

    visuals = tuple(_parse_visual(el, options) for el in element.findall("visual"))
    collisions = tuple(_parse_collision(el, options) for el in element.findall("collision"))

    # Non-standard extension; ignored when it carries no geometry
    self_collision = None
    self_collision_el = element.find("self_collision_checking")
    if self_collision_el is not None:
        geometry_el = self_collision_el.find("geometry")
        if geometry_el is not None:
            self_collision = SelfCollision(
                origin=_parse_origin(self_collision_el.find("origin")),
                geometry=_parse_geometry(geometry_el, options),
            )

    return Link(
        name=name,
        inertial=inertial,
        visuals=visuals,
        collisions=collisions,
        self_collision=self_collision,
    )


def _parse_joint(element: etree._Element) -> Joint:
    name = element.get("name")
    if not name:
        raise StructuralError("Joint element missing name attribute")

    type_raw = element.get("type")
    if not type_raw:
        raise StructuralError(f"Joint '{name}' missing type attribute")
    try:
        joint_type = JointType(type_raw)
    except ValueError:
        raise FormatError(f"Joint '{name}' has unsupported type '{type_raw}'") from None

    parent_el = element.find("parent")
    child_el = element.find("child")
    if parent_el is None or child_el is None:
        raise StructuralError(f"Joint '{name}' missing parent or child link")

    parent = parent_el.get("link")
    child = child_el.get("link")
    if not parent or not child:
        raise StructuralError(f"Joint '{name}' parent or child missing link attribute")

    axis = None
    axis_el = element.find("axis")
    if axis_el is not None:
        axis = _parse_vector3(axis_el.get("xyz", "0 0 1"), "axis")

    limits = None
    limit_el = element.find("limit")
    if limit_el is not None:
        limits = JointLimits(
            lower=_optional_float(limit_el, "lower"),
            upper=_optional_float(limit_el, "upper"),
            effort=_optional_float(limit_el, "effort"),
            velocity=_optional_float(limit_el, "velocity"),
        )

    safety_controller = None
    safety_el = element.find("safety_controller")
    if safety_el is not None:
        safety_controller = SafetyController(
            soft_lower_limit=_optional_float(safety_el, "soft_lower_limit"),
            soft_upper_limit=_optional_float(safety_el, "soft_upper_limit"),
            k_position=_optional_float(safety_el, "k_position"),
            k_velocity=_optional_float(safety_el, "k_velocity"),
        )

    dynamics = None
    dynamics_el = element.find("dynamics")
    if dynamics_el is not None:
        dynamics = JointDynamics(
            damping=_optional_float(dynamics_el, "damping"),
            friction=_optional_float(dynamics_el, "friction"),
        )

    mimic = None
    mimic_el = element.find("mimic")
    if mimic_el is not None:
        multiplier = mimic_el.get("multiplier")
        offset = mimic_el.get("offset")
        mimic = JointMimic(
            joint=mimic_el.get("joint", ""),
            multiplier=_parse_float(multiplier, "mimic multiplier") if multiplier else None,
            offset=_parse_float(offset, "mimic offset") if offset else None,
        )

    calibration = None
    calibration_el = element.find("calibration")
    if calibration_el is not None:
        calibration = JointCalibration(
            rising=_optional_float(calibration_el, "rising"),
            falling=_optional_float(calibration_el, "falling"),
        )

    return Joint(
        name=name,
        type=joint_type,
        parent=parent,
        child=child,
        origin=_parse_origin(element.find("origin")),
        axis=axis,
        limits=limits,
        safety_controller=safety_controller,
        dynamics=dynamics,
        mimic=mimic,
        calibration=calibration,
    )


def _find_root_link(links: Mapping[str, Link], joints: Mapping[str, Joint]) -> Optional[str]:
    """First link, in document order, that no joint uses as its child."""
    child_links = set()
    for joint in joints.values():
        if joint.child in child_links:
            logger.warning("Link '%s' is the child of more than one joint", joint.child)
        child_links.add(joint.child)

    candidates = [name for name in links if name not in child_links]
    if not candidates:
        logger.warning("No root link found: every link is the child of a joint")
        return None
    if len(candidates) > 1:
        logger.warning(
            "Found %d root link candidates %s, using '%s'",
            len(candidates), candidates, candidates[0],
        )
    return candidates[0]


def _read_root(urdf_string: Union[str, bytes]) -> etree._Element:
    # text input is already decoded, so any encoding declaration no longer applies
    encoding = None
    if isinstance(urdf_string, str):
        urdf_string = urdf_string.encode("utf-8")
        encoding = "utf-8"
    parser = etree.XMLParser(
        encoding=encoding, remove_comments=True, remove_pis=True, resolve_entities=False
    )
    try:
        root = etree.fromstring(urdf_string, parser)
    except etree.XMLSyntaxError as e:
        raise StructuralError(f"URDF document is not well-formed XML: {e}") from e
    if root is None or root.tag != "robot":
        raise StructuralError("URDF document missing <robot> root element")
    return root


def parse_urdf(urdf_string: Union[str, bytes], options: Optional[ParseOptions] = None) -> RobotModel:
    """Parse a URDF document into a RobotModel.

    Args:
        urdf_string: The document text.
        options: Mesh path resolution and extension handling.

    Returns:
        RobotModel: The typed, immutable robot description.

    Raises:
        StructuralError: Missing root element, names, types or link references,
            or duplicate link/joint names.
        FormatError: Malformed numbers or vectors, unknown geometry or joint type.
    """
    options = options or ParseOptions()
    root = _read_root(urdf_string)

    for tag in ("gazebo", "transmission"):
        skipped = root.findall(tag)
        if skipped:
            logger.debug("Skipping %d <%s> element(s)", len(skipped), tag)

    materials: Dict[str, Material] = {}
    for material_el in root.findall("material"):
        material = _parse_material(material_el)
        if material.name in materials:
            logger.debug("Material '%s' redefined, keeping the last definition", material.name)
        materials[material.name] = material

    links: Dict[str, Link] = {}
    for link_el in root.findall("link"):
        link = _parse_link(link_el, options)
        if link.name in links:
            raise StructuralError(f"Duplicate link name '{link.name}'")
        links[link.name] = link

    joints: Dict[str, Joint] = {}
    for joint_el in root.findall("joint"):
        joint = _parse_joint(joint_el)
        if joint.name in joints:
            raise StructuralError(f"Duplicate joint name '{joint.name}'")
        for role, link_name in (("parent", joint.parent), ("child", joint.child)):
            if link_name not in links:
                raise StructuralError(
                    f"Joint '{joint.name}' {role} link '{link_name}' is not defined"
                )
        joints[joint.name] = joint

    model = RobotModel(
        name=root.get("name") or "robot",
        materials=MappingProxyType(materials),
        links=MappingProxyType(links),
        joints=MappingProxyType(joints),
        root_link=_find_root_link(links, joints),
    )
    logger.debug(
        "Parsed robot '%s': %d materials, %d links, %d joints, root '%s'",
        model.name, len(materials), len(links), len(joints), model.root_link,
    )
    return model


def load_urdf(urdf_path: Union[str, Path], options: Optional[ParseOptions] = None) -> RobotModel:
    """Load and parse a URDF file.

    When ``options`` gives no working path, relative mesh filenames are
    resolved against the directory holding the file.

    Args:
        urdf_path: Path to the URDF file to load.
        options: See :class:`ParseOptions`.

    Returns:
        RobotModel: The parsed robot description.
    """
    urdf_path = Path(urdf_path)
    options = options or ParseOptions()
    if options.working_path is None:
        options = dataclasses.replace(options, working_path=str(urdf_path.parent))
    return parse_urdf(urdf_path.read_bytes(), options)
