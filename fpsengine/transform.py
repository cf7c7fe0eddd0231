"""Rigid transforms, quaternion helpers and vector utilities."""

from __future__ import annotations

import math
from typing import Any, Iterable, Mapping

import numpy as np

from .util import deserialize_vec3, serialize_vec3

WORLD_UP = np.array([0.0, 1.0, 0.0])

_EPSILON = 1e-7


def _vec3(value: Any, default: float) -> np.ndarray:
    if value is None:
        return np.full(3, default, dtype=float)
    return np.broadcast_to(np.asarray(value, dtype=float), (3,)).copy()


def _quat(value: Any) -> np.ndarray:
    if value is None:
        return np.array([1.0, 0.0, 0.0, 0.0])
    q = np.asarray(value, dtype=float)
    if q.shape != (4,):
        raise ValueError(f"a quaternion needs 4 components (w, x, y, z), got shape {q.shape}")
    return q.copy()


def quat_from_euler(angles: Iterable[float]) -> np.ndarray:
    """Quaternion (w, x, y, z) from pitch, yaw and roll in radians."""
    half = np.asarray(angles, dtype=float) * 0.5
    cx, cy, cz = np.cos(half)
    sx, sy, sz = np.sin(half)
    return np.array(
        [
            cx * cy * cz + sx * sy * sz,
            sx * cy * cz - cx * sy * sz,
            cx * sy * cz + sx * cy * sz,
            cx * cy * sz - sx * sy * cz,
        ]
    )


def euler_angles(q: Iterable[float]) -> np.ndarray:
    """Pitch, yaw and roll in radians of a quaternion (w, x, y, z)."""
    w, x, y, z = np.asarray(q, dtype=float)

    py = 2.0 * (y * z + w * x)
    px = w * w - x * x - y * y + z * z
    if abs(px) <= _EPSILON and abs(py) <= _EPSILON:
        pitch = 2.0 * math.atan2(x, w)
    else:
        pitch = math.atan2(py, px)

    yaw = math.asin(min(max(-2.0 * (x * z - w * y), -1.0), 1.0))
    roll = math.atan2(2.0 * (x * y + w * z), w * w + x * x - y * y - z * z)
    return np.array([pitch, yaw, roll])


def angle_axis(angle: float, axis: Iterable[float]) -> np.ndarray:
    """Quaternion rotating by ``angle`` radians around ``axis``."""
    half = angle * 0.5
    s = math.sin(half)
    ax = np.asarray(axis, dtype=float)
    return np.array([math.cos(half), ax[0] * s, ax[1] * s, ax[2] * s])


def quat_multiply(a: Iterable[float], b: Iterable[float]) -> np.ndarray:
    """Hamilton product ``a * b``: apply ``b`` first, then ``a``."""
    aw, ax, ay, az = np.asarray(a, dtype=float)
    bw, bx, by, bz = np.asarray(b, dtype=float)
    return np.array(
        [
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by + ay * bw + az * bx - ax * bz,
            aw * bz + az * bw + ax * by - ay * bx,
        ]
    )


def quat_rotate(q: Iterable[float], v: Iterable[float]) -> np.ndarray:
    """Rotate the 3-vector ``v`` by the quaternion ``q``."""
    qa = np.asarray(q, dtype=float)
    w, axis = qa[0], qa[1:]
    vec = np.asarray(v, dtype=float)[:3]
    uv = np.cross(axis, vec)
    uuv = np.cross(axis, uv)
    return vec + (uv * w + uuv) * 2.0


def quat_to_matrix(q: Iterable[float]) -> np.ndarray:
    """4x4 rotation matrix (applied as ``M @ v``) of a quaternion."""
    w, x, y, z = np.asarray(q, dtype=float)
    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z
    return np.array(
        [
            [1.0 - 2.0 * (yy + zz), 2.0 * (xy - wz), 2.0 * (xz + wy), 0.0],
            [2.0 * (xy + wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz - wx), 0.0],
            [2.0 * (xz - wy), 2.0 * (yz + wx), 1.0 - 2.0 * (xx + yy), 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]
    )


def _matrix_to_quat(r: np.ndarray) -> np.ndarray:
    trace = r[0, 0] + r[1, 1] + r[2, 2]
    if trace > 0.0:
        s = math.sqrt(trace + 1.0) * 2.0
        return np.array(
            [0.25 * s, (r[2, 1] - r[1, 2]) / s, (r[0, 2] - r[2, 0]) / s, (r[1, 0] - r[0, 1]) / s]
        )
    if r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = math.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2]) * 2.0
        return np.array(
            [(r[2, 1] - r[1, 2]) / s, 0.25 * s, (r[0, 1] + r[1, 0]) / s, (r[0, 2] + r[2, 0]) / s]
        )
    if r[1, 1] > r[2, 2]:
        s = math.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2]) * 2.0
        return np.array(
            [(r[0, 2] - r[2, 0]) / s, (r[0, 1] + r[1, 0]) / s, 0.25 * s, (r[1, 2] + r[2, 1]) / s]
        )
    s = math.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1]) * 2.0
    return np.array(
        [(r[1, 0] - r[0, 1]) / s, (r[0, 2] + r[2, 0]) / s, (r[1, 2] + r[2, 1]) / s, 0.25 * s]
    )


def angle_between(a: Iterable[float], b: Iterable[float]) -> float:
    """Unsigned angle in radians between two 3-vectors."""
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    return math.atan2(float(np.linalg.norm(np.cross(va, vb))), float(np.dot(va, vb)))


class Transform:
    """A coordinate system: position, rotation quaternion (w, x, y, z) and scale."""

    __slots__ = ("position", "rotation", "scale")

    def __init__(self, position=None, rotation=None, scale=None) -> None:
        self.position = _vec3(position, 0.0)
        self.rotation = _quat(rotation)
        self.scale = _vec3(scale, 1.0)

    @classmethod
    def from_euler(cls, position=None, euler=None, scale=None) -> "Transform":
        """Build a transform whose rotation is given as pitch, yaw, roll radians."""
        rotation = None if euler is None else quat_from_euler(euler)
        return cls(position, rotation, scale)

    @classmethod
    def from_matrix(cls, matrix) -> "Transform":
        """Decompose a 4x4 model matrix into position, rotation and scale."""
        m = np.asarray(matrix, dtype=float)
        if m.shape != (4, 4):
            raise ValueError(f"expected a 4x4 matrix, got shape {m.shape}")
        if abs(m[3, 3]) < _EPSILON:
            raise ValueError("matrix cannot be decomposed: homogeneous scale is zero")
        m = m / m[3, 3]

        position = m[:3, 3].copy()
        cols = [m[:3, i].copy() for i in range(3)]
        scale = np.zeros(3)

        scale[0] = np.linalg.norm(cols[0])
        if scale[0] < _EPSILON:
            raise ValueError("matrix cannot be decomposed: zero scale")
        cols[0] /= scale[0]

        cols[1] -= np.dot(cols[0], cols[1]) * cols[0]
        scale[1] = np.linalg.norm(cols[1])
        if scale[1] < _EPSILON:
            raise ValueError("matrix cannot be decomposed: zero scale")
        cols[1] /= scale[1]

        cols[2] -= np.dot(cols[0], cols[2]) * cols[0]
        cols[2] -= np.dot(cols[1], cols[2]) * cols[1]
        scale[2] = np.linalg.norm(cols[2])
        if scale[2] < _EPSILON:
            raise ValueError("matrix cannot be decomposed: zero scale")
        cols[2] /= scale[2]

        if np.dot(cols[0], np.cross(cols[1], cols[2])) < 0.0:
            scale = -scale
            cols = [-c for c in cols]

        rotation = _matrix_to_quat(np.column_stack(cols))
        return cls(position, rotation, scale)

    def rotation_matrix(self) -> np.ndarray:
        return quat_to_matrix(self.rotation)

    def model_matrix(self) -> np.ndarray:
        translate = np.eye(4)
        translate[:3, 3] = self.position
        scale = np.diag([*self.scale, 1.0])
        return translate @ quat_to_matrix(self.rotation) @ scale

    def front(self) -> np.ndarray:
        return quat_rotate(self.rotation, (0.0, 0.0, -1.0))

    def right(self) -> np.ndarray:
        return quat_rotate(self.rotation, (1.0, 0.0, 0.0))

    def up(self) -> np.ndarray:
        return quat_rotate(self.rotation, (0.0, 1.0, 0.0))

    def copy(self) -> "Transform":
        return Transform(self.position, self.rotation, self.scale)

    def to_json(self) -> dict[str, dict[str, float]]:
        return {
            "position": serialize_vec3(self.position),
            "rotation": serialize_vec3(euler_angles(self.rotation)),
            "scale": serialize_vec3(self.scale),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Transform":
        return cls.from_euler(
            deserialize_vec3(data["position"]),
            deserialize_vec3(data["rotation"]),
            deserialize_vec3(data["scale"]),
        )

    def __add__(self, other: object) -> "Transform":
        if not isinstance(other, Transform):
            return NotImplemented
        return Transform.from_euler(
            self.position + other.position,
            euler_angles(self.rotation) + euler_angles(other.rotation),
            self.scale + other.scale,
        )

    def __repr__(self) -> str:
        return (
            f"Transform(position={self.position.tolist()}, "
            f"rotation={self.rotation.tolist()}, scale={self.scale.tolist()})"
        )


def lerp(x: Transform, y: Transform, a: float) -> Transform:
    """Linear interpolation of two transforms, ``a`` in [0, 1]."""
    if not 0.0 <= a <= 1.0:
        raise ValueError(f"interpolation factor must lie in [0, 1], got {a}")
    return Transform(
        x.position + (y.position - x.position) * a,
        x.rotation * (1.0 - a) + y.rotation * a,
        x.scale + (y.scale - x.scale) * a,
    )