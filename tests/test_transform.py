import math

import numpy as np
import pytest

from fpsengine.transform import (
    WORLD_UP,
    Transform,
    angle_axis,
    angle_between,
    euler_angles,
    lerp,
    quat_from_euler,
    quat_multiply,
    quat_rotate,
    quat_to_matrix,
)


def same_rotation(a, b):
    np.testing.assert_allclose(quat_to_matrix(a), quat_to_matrix(b), atol=1e-9)


def test_identity_axes():
    t = Transform()
    np.testing.assert_allclose(t.front(), [0.0, 0.0, -1.0])
    np.testing.assert_allclose(t.right(), [1.0, 0.0, 0.0])
    np.testing.assert_allclose(t.up(), [0.0, 1.0, 0.0])
    np.testing.assert_allclose(t.model_matrix(), np.eye(4))


def test_scalar_scale_broadcasts():
    t = Transform(scale=2.0)
    np.testing.assert_allclose(t.scale, [2.0, 2.0, 2.0])


def test_bad_quaternion_shape():
    with pytest.raises(ValueError):
        Transform(rotation=[1.0, 0.0, 0.0])


@pytest.mark.parametrize("angles", [(0.3, -0.4, 0.2), (1.0, 0.5, -1.2), (-0.7, 0.1, 2.5)])
def test_euler_round_trip(angles):
    np.testing.assert_allclose(euler_angles(quat_from_euler(angles)), angles, atol=1e-9)


def test_axes_orthonormal_after_rotation():
    t = Transform.from_euler((1, 2, 3), (0.4, 1.1, -0.3))
    f, r, u = t.front(), t.right(), t.up()
    for v in (f, r, u):
        assert np.linalg.norm(v) == pytest.approx(1.0)
    assert np.dot(f, r) == pytest.approx(0.0, abs=1e-9)
    assert np.dot(f, u) == pytest.approx(0.0, abs=1e-9)
    np.testing.assert_allclose(np.cross(r, u), -f, atol=1e-9)


def test_matrix_matches_rotate():
    q = quat_from_euler((0.2, -0.9, 0.5))
    v = np.array([0.3, -1.2, 2.0])
    np.testing.assert_allclose((quat_to_matrix(q) @ np.append(v, 1.0))[:3], quat_rotate(q, v))


def test_quat_multiply_composes():
    a = angle_axis(0.7, WORLD_UP)
    b = angle_axis(-0.4, (1.0, 0.0, 0.0))
    v = np.array([1.0, 2.0, 3.0])
    np.testing.assert_allclose(
        quat_rotate(quat_multiply(a, b), v), quat_rotate(a, quat_rotate(b, v)), atol=1e-9
    )


def test_angle_axis_keeps_axis_fixed():
    q = angle_axis(1.3, WORLD_UP)
    np.testing.assert_allclose(quat_rotate(q, WORLD_UP), WORLD_UP, atol=1e-12)


def test_from_matrix_round_trip():
    t = Transform.from_euler((1.0, -2.0, 3.5), (0.3, 0.6, -0.2), (2.0, 0.5, 1.5))
    d = Transform.from_matrix(t.model_matrix())
    np.testing.assert_allclose(d.position, t.position, atol=1e-9)
    np.testing.assert_allclose(d.scale, t.scale, atol=1e-9)
    same_rotation(d.rotation, t.rotation)
    np.testing.assert_allclose(d.model_matrix(), t.model_matrix(), atol=1e-9)


def test_from_matrix_rejects_bad_input():
    with pytest.raises(ValueError):
        Transform.from_matrix(np.eye(3))
    with pytest.raises(ValueError):
        Transform.from_matrix(np.zeros((4, 4)))


def test_json_round_trip():
    t = Transform.from_euler((0.5, 1.5, -2.5), (0.1, -0.2, 0.3), (1.0, 2.0, 3.0))
    data = t.to_json()
    assert set(data) == {"position", "rotation", "scale"}
    assert set(data["position"]) == {"x", "y", "z"}
    back = Transform.from_json(data)
    np.testing.assert_allclose(back.position, t.position)
    np.testing.assert_allclose(back.scale, t.scale)
    same_rotation(back.rotation, t.rotation)


def test_add_with_identity_rotation():
    a = Transform.from_euler((1, 2, 3), (0.2, 0.1, -0.3), (1, 1, 1))
    b = Transform((4, 5, 6))
    s = a + b
    np.testing.assert_allclose(s.position, a.position + b.position)
    np.testing.assert_allclose(s.scale, a.scale + b.scale)
    same_rotation(s.rotation, a.rotation)


def test_lerp_endpoints_and_midpoint():
    x = Transform((0, 0, 0), scale=(1, 1, 1))
    y = Transform((2, 4, -6), scale=(3, 3, 3))
    np.testing.assert_allclose(lerp(x, y, 0.0).position, x.position)
    np.testing.assert_allclose(lerp(x, y, 1.0).position, y.position)
    np.testing.assert_allclose(lerp(x, y, 0.5).position, (x.position + y.position) / 2)
    np.testing.assert_allclose(lerp(x, y, 0.5).scale, (x.scale + y.scale) / 2)


def test_lerp_out_of_range():
    with pytest.raises(ValueError):
        lerp(Transform(), Transform(), 1.5)


def test_angle_between():
    assert angle_between((1, 0, 0), (0, 1, 0)) == pytest.approx(math.pi / 2)
    assert angle_between((1, 2, 3), (1, 2, 3)) == pytest.approx(0.0)


def test_copy_is_independent():
    t = Transform((1, 2, 3))
    c = t.copy()
    c.position[0] = 10.0
    assert t.position[0] == 1.0