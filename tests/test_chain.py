"""Tests for joint motion semantics and forward kinematics."""

import jax.numpy as jnp
import numpy as np
import pytest

from conftest import make_chain_urdf, make_urdf
from urdf_kinematics.chain import (
    clamp_joint_value,
    forward_kinematics,
    joint_transform,
    link_position,
    normalized_axis,
)
from urdf_kinematics.core import Joint, JointLimits, JointType, Pose
from urdf_kinematics.io import parse_urdf
from urdf_kinematics.transforms import se3, so3


def make_joint(joint_type, xyz=(0.0, 0.0, 0.0), rpy=(0.0, 0.0, 0.0), axis=None,
               lower=None, upper=None):
    limits = None
    if lower is not None or upper is not None:
        limits = JointLimits(lower=lower, upper=upper)
    return Joint(
        name="j",
        type=joint_type,
        parent="a",
        child="b",
        origin=Pose(xyz=jnp.array(xyz), rpy=jnp.array(rpy)),
        axis=None if axis is None else jnp.array(axis),
        limits=limits,
    )


def test_zero_value_is_origin():
    joint = make_joint(JointType.REVOLUTE, xyz=(0.1, 0.2, 0.3), rpy=(0.4, 0.5, 0.6))
    np.testing.assert_allclose(joint_transform(joint), joint.origin.matrix(), atol=1e-12)


def test_revolute_rotates_about_axis():
    joint = make_joint(JointType.REVOLUTE, xyz=(0.0, 0.0, 0.5))
    T = joint_transform(joint, np.pi / 2)

    np.testing.assert_allclose(se3.get_position(T), [0.0, 0.0, 0.5], atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), so3.rot_z(np.pi / 2), atol=1e-12)


def test_revolute_axis_rotation_applies_in_origin_frame():
    """Local rotation is origin rotation followed by the axis rotation (origin @ axis)."""
    joint = make_joint(JointType.REVOLUTE, rpy=(0.0, np.pi / 2, 0.0), axis=(0.0, 0.0, 1.0))
    R = se3.get_rotation(joint_transform(joint, np.pi / 2))

    np.testing.assert_allclose(R, so3.rot_y(np.pi / 2) @ so3.rot_z(np.pi / 2), atol=1e-12)
    assert not np.allclose(R, so3.rot_z(np.pi / 2) @ so3.rot_y(np.pi / 2))


def test_prismatic_translates_along_origin_frame_axis():
    joint = make_joint(JointType.PRISMATIC, xyz=(1.0, 0.0, 0.0), rpy=(0.0, 0.0, np.pi / 2),
                       axis=(1.0, 0.0, 0.0))
    T = joint_transform(joint, 0.25)

    np.testing.assert_allclose(se3.get_position(T), [1.0, 0.25, 0.0], atol=1e-12)
    np.testing.assert_allclose(se3.get_rotation(T), so3.rot_z(np.pi / 2), atol=1e-12)


@pytest.mark.parametrize("joint_type", [JointType.FIXED, JointType.FLOATING, JointType.PLANAR])
def test_non_moving_joints_ignore_value(joint_type):
    joint = make_joint(joint_type, xyz=(0.0, 1.0, 0.0), rpy=(0.3, 0.0, 0.0))
    np.testing.assert_array_equal(joint_transform(joint, 1.0), joint_transform(joint, 0.0))


def test_clamp_joint_value():
    revolute = make_joint(JointType.REVOLUTE, lower=-1.0, upper=1.0)
    assert clamp_joint_value(revolute, 2.5) == 1.0
    assert clamp_joint_value(revolute, -2.5) == -1.0
    assert clamp_joint_value(revolute, 0.3) == 0.3

    upper_only = make_joint(JointType.PRISMATIC, upper=0.2)
    assert clamp_joint_value(upper_only, 0.5) == 0.2
    assert clamp_joint_value(upper_only, -5.0) == -5.0

    continuous = make_joint(JointType.CONTINUOUS, lower=-1.0, upper=1.0)
    assert clamp_joint_value(continuous, 7.0) == 7.0

    assert clamp_joint_value(make_joint(JointType.REVOLUTE), 100.0) == 100.0


def test_clamped_transform_matches_limit():
    joint = make_joint(JointType.REVOLUTE, lower=-1.0, upper=1.0)
    np.testing.assert_allclose(joint_transform(joint, 3.0), joint_transform(joint, 1.0))


def test_axis_is_normalized():
    np.testing.assert_allclose(normalized_axis(make_joint(JointType.REVOLUTE, axis=(0.0, 0.0, 2.0))),
                               [0.0, 0.0, 1.0])
    np.testing.assert_allclose(normalized_axis(make_joint(JointType.REVOLUTE)), [0.0, 0.0, 1.0])
    np.testing.assert_allclose(normalized_axis(make_joint(JointType.REVOLUTE, axis=(0.0, 0.0, 0.0))),
                               [0.0, 0.0, 0.0])


def test_fk_two_joint_chain_sums_translations():
    urdf = make_urdf("""
    <link name="base"/>
    <link name="middle"/>
    <link name="end"/>
    <joint name="j1" type="prismatic">
      <origin xyz="0 0 1"/>
      <parent link="base"/><child link="middle"/>
      <axis xyz="1 0 0"/>
    </joint>
    <joint name="j2" type="prismatic">
      <origin xyz="0 2 0"/>
      <parent link="middle"/><child link="end"/>
      <axis xyz="0 0 1"/>
    </joint>
    """)
    robot = parse_urdf(urdf)
    poses = forward_kinematics(robot, {"j1": 0.5, "j2": 0.25})

    np.testing.assert_allclose(se3.get_position(poses["middle"]), [0.5, 0.0, 1.0], atol=1e-12)
    np.testing.assert_allclose(se3.get_position(poses["end"]), [0.5, 2.0, 1.25], atol=1e-12)


def test_fk_arm_zero_configuration(arm_model):
    poses = forward_kinematics(arm_model)

    assert set(poses) == set(arm_model.links)
    expected = {
        "world": [0.0, 0.0, 0.0],
        "base_link": [0.0, 0.0, 0.0],
        "upper_arm": [0.0, 0.0, 0.5],
        "forearm": [0.0, 0.0, 0.9],
        # the elbow origin pitches the forearm so its x axis points down
        "slider": [0.0, 0.0, 0.6],
        "tool": [0.0, 0.0, 0.5],
        "finger": [0.0, 0.0, 0.45],
    }
    for link_name, position in expected.items():
        np.testing.assert_allclose(se3.get_position(poses[link_name]), position, atol=1e-12)


def test_fk_arm_moved(arm_model):
    poses = forward_kinematics(arm_model, {"elbow": np.pi / 2, "slide": 0.1, "unknown": 3.0})

    # a quarter turn about the forearm's y axis now points its x axis backwards
    np.testing.assert_allclose(se3.get_position(poses["slider"]), [-0.4, 0.0, 0.9], atol=1e-12)
    np.testing.assert_allclose(se3.get_position(poses["tool"]), [-0.5, 0.0, 0.9], atol=1e-12)


def test_fk_clamps_values(arm_model):
    clamped = forward_kinematics(arm_model, {"slide": 5.0})
    at_limit = forward_kinematics(arm_model, {"slide": 0.2})
    np.testing.assert_allclose(clamped["tool"], at_limit["tool"])


def test_fk_y_up(arm_model):
    poses = forward_kinematics(arm_model, convert_to_y_up=True)
    np.testing.assert_allclose(se3.get_position(poses["upper_arm"]), [0.0, 0.5, 0.0], atol=1e-12)


def test_fk_without_root():
    urdf = make_urdf("""
    <link name="a"/>
    <link name="b"/>
    <joint name="j1" type="fixed"><parent link="a"/><child link="b"/></joint>
    <joint name="j2" type="fixed"><parent link="b"/><child link="a"/></joint>
    """)
    assert forward_kinematics(parse_urdf(urdf)) == {}


def test_link_position(arm_model):
    np.testing.assert_allclose(link_position(arm_model, "forearm"), [0.0, 0.0, 0.9], atol=1e-12)

    with pytest.raises(ValueError, match="Link 'nonexistent_link' not found"):
        link_position(arm_model, "nonexistent_link")


def test_fk_long_chain():
    robot = parse_urdf(make_chain_urdf(1500))
    poses = forward_kinematics(robot)

    assert len(poses) == 1500
    np.testing.assert_allclose(se3.get_position(poses["l1499"]), [0.0, 0.0, 14.99], atol=1e-9)
