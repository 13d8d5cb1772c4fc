"""
test_camera.py - Checks for the chase camera and the quaternion helpers it uses

Run with: python test_camera.py  (or pytest)
"""

import numpy as np

from zonedrive_env import CameraConfig, ChaseCamera
from zonedrive_env.geometry import (
    IDENTITY_QUAT,
    LOCAL_FORWARD,
    look_at_quat,
    quat_from_yaw,
    quat_rotate,
    slerp,
    yaw_of,
)


def _angle_between(q1, q2):
    d = abs(float(np.dot(q1, q2)))
    return 2.0 * np.arccos(min(d, 1.0))


def test_geometry_basics():
    q = quat_from_yaw(0.3)
    assert np.isclose(yaw_of(q), 0.3)
    assert np.allclose(quat_rotate(IDENTITY_QUAT, [1.0, 2.0, 3.0]), [1.0, 2.0, 3.0])
    # Positive yaw swings the nose toward -X (left when facing -Z).
    assert quat_rotate(quat_from_yaw(0.5), LOCAL_FORWARD)[0] < 0.0

    look = look_at_quat([0.0, 0.0, 5.0], [0.0, 0.0, 0.0])
    assert np.allclose(quat_rotate(look, LOCAL_FORWARD), [0.0, 0.0, -1.0])
    assert np.allclose(quat_rotate(look, [0.0, 1.0, 0.0]), [0.0, 1.0, 0.0])

    # Looking straight down must not blow up.
    down = look_at_quat([0.0, 10.0, 0.0], [0.0, 0.0, 0.0])
    assert np.all(np.isfinite(down))
    assert np.allclose(quat_rotate(down, LOCAL_FORWARD), [0.0, -1.0, 0.0], atol=1e-3)
    print("✓ Quaternion helpers behave")


def test_slerp_endpoints_and_shortest_path():
    a = quat_from_yaw(0.0)
    b = quat_from_yaw(1.0)
    assert np.allclose(slerp(a, b, 0.0), a)
    assert np.allclose(slerp(a, b, 1.0), b)
    assert np.isclose(yaw_of(slerp(a, b, 0.25)), 0.25)
    # -b is the same rotation; interpolation must still take the short arc.
    assert np.isclose(yaw_of(slerp(a, -b, 0.5)), 0.5)
    print("✓ slerp hits endpoints and takes the shortest arc")


def test_first_tick_position():
    cam = ChaseCamera()
    state = cam.initial_state()
    assert np.allclose(state.position, [0.0, 15.0, 20.0])

    position, _ = cam.update([0.0, 0.0, 0.0], IDENTITY_QUAT, state.position, state.orientation)
    # desired = (0, 1.5, 0) + (0, 5, 12)
    assert np.allclose(position, [0.0, 15.0 + (6.5 - 15.0) * 0.08, 20.0 + (12.0 - 20.0) * 0.08])
    print(f"✓ First tick moves camera to {position}")


def test_position_stays_between_previous_and_desired():
    cam = ChaseCamera()
    rng = np.random.default_rng(3)
    for _ in range(50):
        vehicle_pos = rng.uniform(-40.0, 40.0, size=3)
        vehicle_rot = quat_from_yaw(rng.uniform(-np.pi, np.pi))
        prev = rng.uniform(-60.0, 60.0, size=3)
        desired = cam.desired_position(vehicle_pos, vehicle_rot)

        position, _ = cam.update(vehicle_pos, vehicle_rot, prev, IDENTITY_QUAT)
        full = np.linalg.norm(desired - prev)
        assert np.isclose(np.linalg.norm(position - prev) + np.linalg.norm(desired - position), full)
        assert 0.0 < np.linalg.norm(position - prev) < full
    print("✓ Camera never overshoots the desired position")


def test_offset_follows_vehicle_heading():
    cam = ChaseCamera()
    facing_west = quat_from_yaw(np.pi / 2.0)
    desired = cam.desired_position([0.0, 0.0, 0.0], facing_west)
    # Behind a car facing -X is +X.
    assert np.allclose(desired, [12.0, 6.5, 0.0])
    print(f"✓ Trailing offset rotates with the car: {desired}")


def test_orientation_converges_without_snapping():
    cam = ChaseCamera()
    state = cam.initial_state()
    vehicle_pos = np.array([5.0, 0.6, -8.0])
    vehicle_rot = quat_from_yaw(0.7)

    prev_gap = None
    for _ in range(400):
        new_state = cam.track(state, vehicle_pos, vehicle_rot)
        look = look_at_quat(new_state.position, cam.target_point(vehicle_pos))
        gap = _angle_between(new_state.orientation, look)
        step = _angle_between(new_state.orientation, state.orientation)
        assert step < 0.5, "orientation must not snap"
        prev_gap = gap
        state = new_state

    view = quat_rotate(state.orientation, LOCAL_FORWARD)
    to_target = cam.target_point(vehicle_pos) - state.position
    to_target /= np.linalg.norm(to_target)
    assert np.allclose(state.position, cam.desired_position(vehicle_pos, vehicle_rot), atol=1e-6)
    assert float(np.dot(view, to_target)) > 0.9999
    assert prev_gap < 1e-4
    print("✓ Camera settles behind the car looking at it")


def test_time_based_smoothing():
    cam = ChaseCamera(CameraConfig(smoothing="time_based"))
    pos_f, rot_f = cam.blend_factors(1.0 / 60.0)
    assert np.isclose(pos_f, 0.08) and np.isclose(rot_f, 0.12)

    pos_f, _ = cam.blend_factors(1.0 / 30.0)
    assert np.isclose(pos_f, 1.0 - 0.92 ** 2)
    assert cam.blend_factors(0.0)[0] == 0.0

    fixed = ChaseCamera()
    assert fixed.blend_factors(1.0 / 30.0) == (0.08, 0.12)
    print("✓ Time-based smoothing matches the per-tick factors at the reference rate")


def test_bad_camera_config():
    for cfg in (CameraConfig(smoothing="spring"), CameraConfig(reference_fps=0.0)):
        try:
            ChaseCamera(cfg)
        except ValueError:
            continue
        raise AssertionError(f"{cfg} should be rejected")
    print("✓ Invalid camera config raises ValueError")


if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("Testing ChaseCamera")
    print("=" * 60)
    test_geometry_basics()
    test_slerp_endpoints_and_shortest_path()
    test_first_tick_position()
    test_position_stays_between_previous_and_desired()
    test_offset_follows_vehicle_heading()
    test_orientation_converges_without_snapping()
    test_time_based_smoothing()
    test_bad_camera_config()
    print("\n✅ All camera tests passed!\n")
