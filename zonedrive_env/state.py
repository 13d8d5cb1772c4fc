from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .geometry import IDENTITY_QUAT, forward_vector, yaw_of


@dataclass
class VehiclePose:
    """Snapshot of the body as the physics engine reports it."""

    position: np.ndarray
    orientation: np.ndarray  # unit quaternion [x, y, z, w]
    velocity: np.ndarray
    yaw_rate: float = 0.0

    @property
    def heading(self) -> float:
        return yaw_of(self.orientation)

    @property
    def forward_speed(self) -> float:
        return float(np.dot(forward_vector(self.orientation), self.velocity))

    @property
    def horizontal_speed(self) -> float:
        return float(np.hypot(self.velocity[0], self.velocity[2]))

    def copy(self) -> "VehiclePose":
        return VehiclePose(
            position=self.position.copy(),
            orientation=self.orientation.copy(),
            velocity=self.velocity.copy(),
            yaw_rate=self.yaw_rate,
        )

    def as_vector(self) -> np.ndarray:
        """Return [px, py, pz, vx, vy, vz, yaw, forward_speed, yaw_rate]."""
        return np.array(
            [
                self.position[0],
                self.position[1],
                self.position[2],
                self.velocity[0],
                self.velocity[1],
                self.velocity[2],
                self.heading,
                self.forward_speed,
                self.yaw_rate,
            ],
            dtype=np.float32,
        )


@dataclass
class CameraState:
    """Camera transform carried from one tick to the next."""

    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 15.0, 20.0]))
    orientation: np.ndarray = field(default_factory=lambda: IDENTITY_QUAT.copy())
