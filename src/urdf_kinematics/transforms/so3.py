"""SO(3) rotation helpers in JAX.

Rotations are plain (..., 3, 3) matrices. URDF orientations arrive as
roll-pitch-yaw triples that are applied about the *fixed* parent axes in the
order X, then Y, then Z (extrinsic XYZ). Composed as matrices acting on column
vectors that is ``R = Rz(yaw) @ Ry(pitch) @ Rx(roll)``, which is the same
rotation as an intrinsic Z-Y'-X'' sequence. Using intrinsic XYZ instead
(``Rx @ Ry @ Rz``) agrees for single-axis rotations only and silently breaks
multi-joint world poses.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def rot_x(angle) -> Array:
    """Rotation of ``angle`` radians about the X axis."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return jnp.array([
        [1.0, 0.0, 0.0],
        [0.0, c, -s],
        [0.0, s, c],
    ])


def rot_y(angle) -> Array:
    """Rotation of ``angle`` radians about the Y axis."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return jnp.array([
        [c, 0.0, s],
        [0.0, 1.0, 0.0],
        [-s, 0.0, c],
    ])


def rot_z(angle) -> Array:
    """Rotation of ``angle`` radians about the Z axis."""
    c, s = jnp.cos(angle), jnp.sin(angle)
    return jnp.array([
        [c, -s, 0.0],
        [s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def from_rpy(rpy: Array) -> Array:
    """
    Convert a URDF roll-pitch-yaw triple to a rotation matrix.

    Roll is applied first about fixed X, then pitch about fixed Y, then yaw
    about fixed Z. Premultiplying puts the last applied rotation leftmost.

    Args:
        rpy: (3,) array of [roll, pitch, yaw] in radians

    Returns:
        (3, 3) rotation matrix
    """
    roll, pitch, yaw = rpy[0], rpy[1], rpy[2]
    return rot_z(yaw) @ rot_y(pitch) @ rot_x(roll)


def to_rpy(R: Array) -> Array:
    """
    Recover the extrinsic XYZ roll-pitch-yaw triple of a rotation matrix.

    At gimbal lock (pitch = ±pi/2) roll is reported as zero and the whole
    rotation about the vertical is folded into yaw.

    Args:
        R: (3, 3) rotation matrix

    Returns:
        (3,) array of [roll, pitch, yaw]
    """
    pitch = jnp.arcsin(jnp.clip(-R[2, 0], -1.0, 1.0))
    locked = jnp.abs(R[2, 0]) > 1.0 - 1e-9
    roll = jnp.where(locked, 0.0, jnp.arctan2(R[2, 1], R[2, 2]))
    yaw = jnp.where(
        locked,
        jnp.arctan2(-R[0, 1], R[1, 1]),
        jnp.arctan2(R[1, 0], R[0, 0]),
    )
    return jnp.stack([roll, pitch, yaw])


def exp(log_r: Array) -> Array:
    """
    Rodrigues' formula: axis-angle vector to rotation matrix.

    Args:
        log_r: (..., 3) axis scaled by angle

    Returns:
        (..., 3, 3) rotation matrices
    """
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)
    small_angle = angle < 1e-8

    # Taylor expansion near zero keeps the division well defined
    cos_angle = jnp.where(small_angle, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_angle = jnp.where(small_angle, angle - angle**3 / 6.0, jnp.sin(angle))
    axis = jnp.where(small_angle, log_r, log_r / jnp.where(small_angle, 1.0, angle))

    K = skew_symmetric(axis)
    I = jnp.broadcast_to(jnp.eye(3, dtype=log_r.dtype), log_r.shape[:-1] + (3, 3))

    return I + sin_angle[..., None] * K + (1.0 - cos_angle)[..., None] * jnp.matmul(K, K)


def from_axis_angle(axis: Array, angle) -> Array:
    """Rotation of ``angle`` radians about a unit ``axis``."""
    return exp(jnp.asarray(axis) * angle)


def skew_symmetric(v: Array) -> Array:
    """(..., 3) vector to its (..., 3, 3) cross-product matrix."""
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)
    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def to_quaternion(R: Array) -> Array:
    """
    Convert a single (3, 3) rotation matrix to a (w, x, y, z) quaternion.

    The returned quaternion has a non-negative scalar part.
    """
    trace = R[0, 0] + R[1, 1] + R[2, 2]

    # Shepperd's method: branch on the largest diagonal term for stability
    candidates = jnp.stack([
        jnp.stack([1.0 + trace, R[2, 1] - R[1, 2], R[0, 2] - R[2, 0], R[1, 0] - R[0, 1]]),
        jnp.stack([R[2, 1] - R[1, 2], 1.0 + R[0, 0] - R[1, 1] - R[2, 2], R[0, 1] + R[1, 0], R[0, 2] + R[2, 0]]),
        jnp.stack([R[0, 2] - R[2, 0], R[0, 1] + R[1, 0], 1.0 + R[1, 1] - R[0, 0] - R[2, 2], R[1, 2] + R[2, 1]]),
        jnp.stack([R[1, 0] - R[0, 1], R[0, 2] + R[2, 0], R[1, 2] + R[2, 1], 1.0 + R[2, 2] - R[0, 0] - R[1, 1]]),
    ])
    pivots = jnp.stack([trace, R[0, 0], R[1, 1], R[2, 2]])
    q = candidates[jnp.argmax(pivots)]
    q = q / jnp.linalg.norm(q)
    return jnp.where(q[0] < 0, -q, q)
