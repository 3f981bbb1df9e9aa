"""Tests for the transforms module."""

import hypothesis
import jax.numpy as jnp
import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

import urdf_kinematics  # noqa: F401  (enables float64)
from urdf_kinematics.transforms import se3, so3

# Use hypothesis profile for CI
hypothesis.settings.register_profile("ci", max_examples=10, deadline=None)

angles = st.floats(min_value=-3.1, max_value=3.1, allow_nan=False)


# Roll-pitch-yaw convention
def test_rpy_is_extrinsic_xyz():
    """Roll about fixed X first, then yaw about fixed Z."""
    R = so3.from_rpy(jnp.array([np.pi / 2, 0.0, np.pi / 2]))

    # x stays put under the roll, then yaw carries it to y
    np.testing.assert_allclose(R @ jnp.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)
    # y is rolled up to z, which the yaw leaves alone
    np.testing.assert_allclose(R @ jnp.array([0.0, 1.0, 0.0]), [0.0, 0.0, 1.0], atol=1e-12)

    # intrinsic XYZ would send x to z instead
    R_intrinsic = so3.rot_x(np.pi / 2) @ so3.rot_z(np.pi / 2)
    assert not np.allclose(R, R_intrinsic)


def test_rpy_single_axis():
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.3, 0.0, 0.0])), so3.rot_x(0.3), atol=1e-12)
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.0, 0.3, 0.0])), so3.rot_y(0.3), atol=1e-12)
    np.testing.assert_allclose(so3.from_rpy(jnp.array([0.0, 0.0, 0.3])), so3.rot_z(0.3), atol=1e-12)


@given(angles, st.floats(min_value=-1.5, max_value=1.5), angles)
@settings(deadline=None)
def test_rpy_matches_intrinsic_zyx(roll, pitch, yaw):
    """Extrinsic X-Y-Z equals intrinsic Z-Y'-X'' built from axis-angle steps."""
    R = so3.from_rpy(jnp.array([roll, pitch, yaw]))

    # intrinsic: each rotation is about the already-rotated axes, so post-multiply
    R_intrinsic = so3.from_axis_angle(jnp.array([0.0, 0.0, 1.0]), yaw)
    R_intrinsic = R_intrinsic @ so3.from_axis_angle(jnp.array([0.0, 1.0, 0.0]), pitch)
    R_intrinsic = R_intrinsic @ so3.from_axis_angle(jnp.array([1.0, 0.0, 0.0]), roll)

    np.testing.assert_allclose(R, R_intrinsic, atol=1e-10)
    np.testing.assert_allclose(so3.to_rpy(R), [roll, pitch, yaw], atol=1e-8)


def test_to_rpy_gimbal_lock():
    R = so3.from_rpy(jnp.array([0.0, np.pi / 2, 0.4]))
    np.testing.assert_allclose(so3.from_rpy(so3.to_rpy(R)), R, atol=1e-8)


# Axis-angle
def test_exp_quarter_turn_about_z():
    R = so3.exp(jnp.array([0.0, 0.0, np.pi / 2]))
    np.testing.assert_allclose(R, so3.rot_z(np.pi / 2), atol=1e-12)
    np.testing.assert_allclose(R @ jnp.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)


def test_exp_zero_is_identity():
    np.testing.assert_allclose(so3.exp(jnp.zeros(3)), jnp.eye(3), atol=1e-12)
    np.testing.assert_allclose(so3.from_axis_angle(jnp.array([0.0, 1.0, 0.0]), 0.0), jnp.eye(3))


@given(angles, angles, angles)
@settings(deadline=None)
def test_from_rpy_is_a_rotation(roll, pitch, yaw):
    R = so3.from_rpy(jnp.array([roll, pitch, yaw]))
    np.testing.assert_allclose(R @ R.T, jnp.eye(3), atol=1e-10)
    np.testing.assert_allclose(jnp.linalg.det(R), 1.0, atol=1e-10)


# Quaternions
def test_matrix_to_quaternion():
    np.testing.assert_allclose(so3.to_quaternion(jnp.eye(3)), [1.0, 0.0, 0.0, 0.0], atol=1e-12)

    matrix = jnp.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0]])
    expected = jnp.array([0.7071068, 0.0, 0.7071068, 0.0])  # 90° around Y
    np.testing.assert_allclose(so3.to_quaternion(matrix), expected, rtol=1e-6, atol=1e-6)

    # half turn about X has a zero scalar part
    np.testing.assert_allclose(so3.to_quaternion(so3.rot_x(np.pi)), [0.0, 1.0, 0.0, 0.0], atol=1e-12)


# SE(3)
def test_transform_compose():
    t1 = se3.from_position_and_rotation(jnp.array([1.0, 0.0, 0.0]), jnp.eye(3))
    t2 = se3.from_position_and_rotation(jnp.array([0.0, 1.0, 0.0]), so3.rot_z(np.pi / 2))

    result = se3.multiply(t1, t2)

    transformed = result @ jnp.array([1.0, 0.0, 0.0, 1.0])
    np.testing.assert_allclose(transformed, [1.0, 2.0, 0.0, 1.0], rtol=1e-6, atol=1e-6)


def test_from_xyz_rpy():
    T = se3.from_xyz_rpy(jnp.array([1.0, 2.0, 3.0]), jnp.array([0.0, 0.0, np.pi / 2]))
    np.testing.assert_allclose(se3.get_position(T), [1.0, 2.0, 3.0])
    np.testing.assert_allclose(se3.get_rotation(T), so3.rot_z(np.pi / 2), atol=1e-12)
    np.testing.assert_allclose(T[3], [0.0, 0.0, 0.0, 1.0])


def test_translation_and_rotation_helpers():
    np.testing.assert_allclose(se3.get_position(se3.from_translation(jnp.array([1.0, 2.0, 3.0]))), [1.0, 2.0, 3.0])
    np.testing.assert_allclose(se3.get_rotation(se3.from_rotation(so3.rot_y(0.2))), so3.rot_y(0.2))
    np.testing.assert_allclose(se3.identity(), jnp.eye(4))
