"""
Arcade vehicle integrator: key intents -> new linear velocity + yaw impulse.

The physics engine owns position and rotation. Every tick this model only
rewrites the body's linear velocity and optionally kicks its yaw rate.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

import numpy as np

from .config import VehicleTuning
from .controls import ControlSnapshot, InputState
from .geometry import forward_vector, quat, vec3


class RigidBodyLike(Protocol):
    """Subset of a rigid-body handle the driving loop talks to."""

    def translation(self) -> np.ndarray: ...

    def rotation(self) -> np.ndarray: ...

    def linvel(self) -> np.ndarray: ...

    def set_linvel(self, velocity: Sequence[float], wake: bool) -> None: ...

    def apply_torque_impulse(self, impulse: Sequence[float], wake: bool) -> None: ...


@dataclass
class IntegratorOutput:
    velocity: np.ndarray
    yaw_torque: Optional[float]  # None when no steering input this tick
    forward_speed: float  # signed speed before the update
    new_forward_speed: float
    accel_rate: float

    @property
    def torque_impulse(self) -> Optional[np.ndarray]:
        if self.yaw_torque is None:
            return None
        return np.array([0.0, self.yaw_torque, 0.0])


def _same_direction(a: float, b: float) -> bool:
    # Zero matches either sign so pulling away from rest uses normal accel.
    if a == 0.0 or b == 0.0:
        return True
    return (a > 0.0) == (b > 0.0)


class VehicleIntegrator:
    def __init__(self, tuning: Optional[VehicleTuning] = None):
        self.tuning = tuning or VehicleTuning()

    def desired_speed(self, controls: ControlSnapshot | InputState, forward_speed: float, dt: float) -> float:
        t = self.tuning
        if controls.forward:
            return t.max_forward
        if controls.backward:
            return -t.max_reverse
        # Coast: momentum carries with a gentle decay that never flips sign.
        return forward_speed * max(1.0 - t.coast_drag * dt, 0.0)

    def steering_torque(
        self,
        controls: ControlSnapshot | InputState,
        velocity: np.ndarray,
    ) -> Optional[float]:
        t = self.tuning
        steer_input = (1 if controls.left else 0) + (-1 if controls.right else 0)
        if steer_input == 0:
            return None

        # Mirror steering when backing up, like a real car.
        direction = -1.0 if (controls.backward and not controls.forward) else 1.0
        horiz_speed = float(np.hypot(velocity[0], velocity[2]))
        speed_scale = min((horiz_speed / t.low_speed_reference) ** 2, 1.0)
        coasting = 1.0 if (controls.forward or controls.backward) else t.coasting_steer_penalty
        return t.rotation_speed * steer_input * direction * speed_scale * coasting

    def step(
        self,
        orientation: Sequence[float],
        velocity: Sequence[float],
        controls: ControlSnapshot | InputState,
        dt: float,
    ) -> IntegratorOutput:
        """Compute the velocity to set and the yaw impulse to apply for one tick.

        ``orientation`` must be a unit quaternion ``[x, y, z, w]``.
        """
        t = self.tuning
        dt = float(dt)
        velocity = vec3(velocity)
        forward = forward_vector(quat(orientation))

        speed = float(np.dot(forward, velocity))
        target = self.desired_speed(controls, speed, dt)

        # Limit how quickly speed changes to avoid instant direction flips.
        diff = target - speed
        accel_rate = t.accel if _same_direction(diff, speed) else t.brake_accel
        max_step = accel_rate * dt
        new_speed = speed + float(np.clip(diff, -max_step, max_step))

        # Keep (most of) the sideways slide so drifts feel natural.
        lateral = (velocity - forward * speed) * t.lateral_damping
        new_velocity = forward * new_speed + lateral
        new_velocity[1] = velocity[1]  # gravity owns the vertical axis

        return IntegratorOutput(
            velocity=new_velocity,
            yaw_torque=self.steering_torque(controls, velocity),
            forward_speed=speed,
            new_forward_speed=new_speed,
            accel_rate=accel_rate,
        )

    def apply(self, body: RigidBodyLike, controls: ControlSnapshot | InputState, dt: float) -> IntegratorOutput:
        """Run :meth:`step` against a live body and push the result into it."""
        out = self.step(body.rotation(), body.linvel(), controls, dt)
        body.set_linvel(out.velocity, True)
        impulse = out.torque_impulse
        if impulse is not None:
            body.apply_torque_impulse(impulse, True)
        return out
