"""Small numpy vector/quaternion toolkit.

Quaternions are stored as ``[x, y, z, w]`` (scalar-last), matching the
layout rigid-body engines hand back from ``rotation()``.
"""
from __future__ import annotations

from typing import Sequence

import numpy as np

WORLD_UP = np.array([0.0, 1.0, 0.0])
LOCAL_FORWARD = np.array([0.0, 0.0, -1.0])
IDENTITY_QUAT = np.array([0.0, 0.0, 0.0, 1.0])


def vec3(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64).reshape(3)


def quat(q: Sequence[float]) -> np.ndarray:
    return np.asarray(q, dtype=np.float64).reshape(4)


def quat_normalize(q: Sequence[float]) -> np.ndarray:
    """Normalize to unit length; a degenerate quaternion becomes identity."""
    q = quat(q)
    norm = float(np.linalg.norm(q))
    if norm < 1e-12:
        return IDENTITY_QUAT.copy()
    return q / norm


def is_unit_quat(q: Sequence[float], tol: float = 1e-3) -> bool:
    q = quat(q)
    if not np.all(np.isfinite(q)):
        return False
    return abs(float(np.linalg.norm(q)) - 1.0) <= tol


def quat_multiply(q1: Sequence[float], q2: Sequence[float]) -> np.ndarray:
    """Hamilton product ``q1 * q2`` (apply q2 first, then q1)."""
    x1, y1, z1, w1 = quat(q1)
    x2, y2, z2, w2 = quat(q2)
    return np.array(
        [
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        ]
    )


def quat_rotate(q: Sequence[float], v: Sequence[float]) -> np.ndarray:
    """Rotate vector ``v`` by quaternion ``q``.

    Uses v' = v + 2 * (w * (u x v) + u x (u x v)) with u the vector part,
    which avoids two full quaternion products.
    """
    q = quat(q)
    v = vec3(v)
    u = q[:3]
    w = q[3]
    uv = np.cross(u, v)
    uuv = np.cross(u, uv)
    return v + 2.0 * (w * uv + uuv)


def quat_from_axis_angle(axis: Sequence[float], angle: float) -> np.ndarray:
    axis = vec3(axis)
    norm = float(np.linalg.norm(axis))
    if norm < 1e-12:
        return IDENTITY_QUAT.copy()
    half = 0.5 * float(angle)
    xyz = axis / norm * np.sin(half)
    return np.array([xyz[0], xyz[1], xyz[2], np.cos(half)])


def quat_from_yaw(yaw: float) -> np.ndarray:
    """Rotation about world +Y. ``yaw=0`` faces -Z, positive yaw turns left."""
    return quat_from_axis_angle(WORLD_UP, yaw)


def yaw_of(q: Sequence[float]) -> float:
    """Heading about +Y of the local forward axis, inverse of :func:`quat_from_yaw`."""
    fwd = quat_rotate(q, LOCAL_FORWARD)
    return float(np.arctan2(-fwd[0], -fwd[2]))


def forward_vector(q: Sequence[float]) -> np.ndarray:
    fwd = quat_rotate(q, LOCAL_FORWARD)
    norm = float(np.linalg.norm(fwd))
    return fwd / norm if norm > 1e-12 else LOCAL_FORWARD.copy()


def lerp(a: Sequence[float], b: Sequence[float], t: float) -> np.ndarray:
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    return a + (b - a) * float(t)


def slerp(q1: Sequence[float], q2: Sequence[float], t: float) -> np.ndarray:
    """Spherical interpolation along the shortest arc."""
    a = quat_normalize(q1)
    b = quat_normalize(q2)
    t = float(t)
    if t <= 0.0:
        return a
    if t >= 1.0:
        return b

    cos_half = float(np.dot(a, b))
    if cos_half < 0.0:
        b = -b
        cos_half = -cos_half

    sin_sq = 1.0 - cos_half * cos_half
    if sin_sq <= 1e-12:
        # nearly parallel: normalized lerp is accurate enough
        return quat_normalize(a * (1.0 - t) + b * t)

    sin_half = np.sqrt(sin_sq)
    half = np.arctan2(sin_half, cos_half)
    ra = np.sin((1.0 - t) * half) / sin_half
    rb = np.sin(t * half) / sin_half
    return quat_normalize(a * ra + b * rb)


def quat_from_matrix(m: np.ndarray) -> np.ndarray:
    """Quaternion of a pure 3x3 rotation matrix (columns are the basis axes)."""
    m = np.asarray(m, dtype=np.float64)
    m00, m01, m02 = m[0]
    m10, m11, m12 = m[1]
    m20, m21, m22 = m[2]
    trace = m00 + m11 + m22

    if trace > 0.0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (m21 - m12) * s
        y = (m02 - m20) * s
        z = (m10 - m01) * s
    elif m00 > m11 and m00 > m22:
        s = 2.0 * np.sqrt(1.0 + m00 - m11 - m22)
        w = (m21 - m12) / s
        x = 0.25 * s
        y = (m01 + m10) / s
        z = (m02 + m20) / s
    elif m11 > m22:
        s = 2.0 * np.sqrt(1.0 + m11 - m00 - m22)
        w = (m02 - m20) / s
        x = (m01 + m10) / s
        y = 0.25 * s
        z = (m12 + m21) / s
    else:
        s = 2.0 * np.sqrt(1.0 + m22 - m00 - m11)
        w = (m10 - m01) / s
        x = (m02 + m20) / s
        y = (m12 + m21) / s
        z = 0.25 * s
    return quat_normalize([x, y, z, w])


def look_at_quat(
    eye: Sequence[float],
    target: Sequence[float],
    up: Sequence[float] = WORLD_UP,
) -> np.ndarray:
    """Orientation of an observer at ``eye`` looking at ``target``.

    The observer looks down its local -Z axis with local +Y kept as close to
    ``up`` as possible.
    """
    eye = vec3(eye)
    target = vec3(target)
    up = vec3(up)

    z = eye - target
    if float(np.linalg.norm(z)) < 1e-12:
        z = np.array([0.0, 0.0, 1.0])
    z = z / np.linalg.norm(z)

    x = np.cross(up, z)
    if float(np.linalg.norm(x)) < 1e-12:
        # up is parallel to the view direction, nudge z sideways
        if abs(up[2]) >= 1.0 - 1e-9:
            z = z + np.array([1e-4, 0.0, 0.0])
        else:
            z = z + np.array([0.0, 0.0, 1e-4])
        z = z / np.linalg.norm(z)
        x = np.cross(up, z)
    x = x / np.linalg.norm(x)
    y = np.cross(z, x)

    return quat_from_matrix(np.column_stack([x, y, z]))
