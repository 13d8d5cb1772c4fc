"""
Minimal single-body stand-in for the rigid-body engine.

It exposes the same handle surface a physics engine gives the driving loop
and integrates one box over a flat ground: gravity, linear/angular damping,
a yaw spin friction while grounded, and rotation about world +Y only. No
collisions, suspension or tire model.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .config import BodyConfig
from .geometry import WORLD_UP, quat_from_axis_angle, quat_from_yaw, quat_multiply, quat_normalize, vec3
from .state import VehiclePose


class GroundVehicleBody:
    def __init__(self, cfg: Optional[BodyConfig] = None):
        self.cfg = cfg or BodyConfig()
        if self.cfg.mass <= 0.0:
            raise ValueError("BodyConfig.mass must be positive")
        if self.cfg.yaw_inertia <= 0.0:
            raise ValueError("BodyConfig.yaw_inertia must be positive")
        self.reset()

    def reset(self) -> None:
        self._position = vec3(self.cfg.start_position)
        self._orientation = quat_from_yaw(self.cfg.start_yaw)
        self._velocity = np.zeros(3)
        self._yaw_rate = 0.0
        self.awake = True

    # ------------------------------------------------------------------ #
    # Engine handle surface
    # ------------------------------------------------------------------ #
    def translation(self) -> np.ndarray:
        return self._position.copy()

    def rotation(self) -> np.ndarray:
        return self._orientation.copy()

    def linvel(self) -> np.ndarray:
        return self._velocity.copy()

    def angvel(self) -> np.ndarray:
        return np.array([0.0, self._yaw_rate, 0.0])

    def set_linvel(self, velocity: Sequence[float], wake: bool = True) -> None:
        self._velocity = vec3(velocity)
        if wake:
            self.awake = True

    def apply_torque_impulse(self, impulse: Sequence[float], wake: bool = True) -> None:
        impulse = vec3(impulse)
        self._yaw_rate += float(impulse[1]) / self.cfg.yaw_inertia
        if wake:
            self.awake = True

    def set_rotation(self, orientation: Sequence[float]) -> None:
        self._orientation = np.asarray(orientation, dtype=np.float64).reshape(4).copy()

    def set_translation(self, position: Sequence[float]) -> None:
        self._position = vec3(position)

    # ------------------------------------------------------------------ #
    # Integration
    # ------------------------------------------------------------------ #
    @property
    def grounded(self) -> bool:
        return self._position[1] <= self.cfg.ride_height + 1e-6

    def integrate(self, dt: float) -> None:
        dt = float(dt)
        if dt <= 0.0:
            return

        cfg = self.cfg
        self._velocity[1] += cfg.gravity * dt
        self._velocity *= 1.0 / (1.0 + dt * cfg.linear_damping)
        self._yaw_rate *= 1.0 / (1.0 + dt * cfg.angular_damping)

        if self.grounded and self._yaw_rate != 0.0:
            # Coulomb-style: decelerate toward zero, never past it.
            friction = cfg.spin_friction * cfg.mass * abs(cfg.gravity) * cfg.contact_radius / cfg.yaw_inertia
            slow = min(abs(self._yaw_rate), friction * dt)
            self._yaw_rate -= np.sign(self._yaw_rate) * slow

        self._position = self._position + self._velocity * dt
        if self._position[1] < cfg.ride_height:
            self._position[1] = cfg.ride_height
            if self._velocity[1] < 0.0:
                self._velocity[1] = 0.0

        if self._yaw_rate != 0.0:
            spin = quat_from_axis_angle(WORLD_UP, self._yaw_rate * dt)
            self._orientation = quat_normalize(quat_multiply(spin, self._orientation))

    def pose(self) -> VehiclePose:
        return VehiclePose(
            position=self.translation(),
            orientation=self.rotation(),
            velocity=self.linvel(),
            yaw_rate=float(self._yaw_rate),
        )
