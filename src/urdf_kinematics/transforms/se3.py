"""SE(3) rigid body transforms as 4x4 homogeneous matrices in JAX.

Composition follows the usual parent-to-child convention: for a child frame
with transform ``T_pc`` relative to its parent and a parent with world
transform ``T_wp``, the child's world transform is ``T_wp @ T_pc``.
"""

import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def identity() -> Array:
    """The identity transform."""
    return jnp.eye(4)


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct an SE(3) transform from a position and a rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    p = jnp.asarray(p)
    R = jnp.asarray(R)
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=R.dtype)
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def from_xyz_rpy(xyz: Array, rpy: Array) -> Array:
    """Transform for a URDF ``<origin xyz=... rpy=...>`` (extrinsic XYZ rpy)."""
    return from_position_and_rotation(jnp.asarray(xyz), so3.from_rpy(jnp.asarray(rpy)))


def from_translation(t: Array) -> Array:
    """Pure translation."""
    return from_position_and_rotation(jnp.asarray(t), jnp.eye(3))


def from_rotation(R: Array) -> Array:
    """Pure rotation."""
    return from_position_and_rotation(jnp.zeros(3), R)


def multiply(T1: Array, T2: Array) -> Array:
    """T1 @ T2: apply T2 first, then T1."""
    return jnp.matmul(T1, T2)


def get_position(T: Array) -> Array:
    """(..., 3) translation part."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """(..., 3, 3) rotation part."""
    return T[..., :3, :3]
