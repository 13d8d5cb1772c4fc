from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from .config import CameraConfig
from .geometry import WORLD_UP, IDENTITY_QUAT, lerp, look_at_quat, quat_rotate, slerp, vec3
from .state import CameraState

SMOOTHING_MODES = ("per_tick", "time_based")


class ChaseCamera:
    """Trails the vehicle from behind and above with lagged smoothing.

    With ``smoothing="per_tick"`` the blend factors are applied once per tick
    whatever the tick length, so lag depends on frame rate. ``"time_based"``
    turns each factor into ``1 - exp(-k * dt)`` with ``k`` picked so a tick at
    ``reference_fps`` blends by exactly the configured factor.
    """

    def __init__(self, cfg: Optional[CameraConfig] = None):
        self.cfg = cfg or CameraConfig()
        if self.cfg.smoothing not in SMOOTHING_MODES:
            raise ValueError(f"Unsupported camera smoothing '{self.cfg.smoothing}'")
        if self.cfg.reference_fps <= 0.0:
            raise ValueError("CameraConfig.reference_fps must be positive")
        self._offset = vec3(self.cfg.offset)
        self._eye = np.array([0.0, self.cfg.eye_height, 0.0])
        self._pos_rate = self._decay_rate(self.cfg.position_factor)
        self._rot_rate = self._decay_rate(self.cfg.rotation_factor)

    def _decay_rate(self, factor: float) -> float:
        factor = float(np.clip(factor, 0.0, 1.0 - 1e-9))
        return -np.log(1.0 - factor) * self.cfg.reference_fps

    def blend_factors(self, dt: Optional[float] = None) -> Tuple[float, float]:
        if self.cfg.smoothing == "per_tick" or dt is None:
            return self.cfg.position_factor, self.cfg.rotation_factor
        dt = max(float(dt), 0.0)
        return 1.0 - np.exp(-self._pos_rate * dt), 1.0 - np.exp(-self._rot_rate * dt)

    def target_point(self, vehicle_position: Sequence[float]) -> np.ndarray:
        return vec3(vehicle_position) + self._eye

    def desired_position(self, vehicle_position: Sequence[float], vehicle_orientation: Sequence[float]) -> np.ndarray:
        return self.target_point(vehicle_position) + quat_rotate(vehicle_orientation, self._offset)

    def update(
        self,
        vehicle_position: Sequence[float],
        vehicle_orientation: Sequence[float],
        previous_position: Sequence[float],
        previous_orientation: Sequence[float],
        dt: Optional[float] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Return the new ``(position, orientation)`` of the camera."""
        pos_factor, rot_factor = self.blend_factors(dt)
        target = self.target_point(vehicle_position)
        desired = self.desired_position(vehicle_position, vehicle_orientation)

        position = lerp(previous_position, desired, pos_factor)
        look = look_at_quat(position, target, WORLD_UP)
        orientation = slerp(previous_orientation, look, rot_factor)
        return position, orientation

    def track(
        self,
        state: CameraState,
        vehicle_position: Sequence[float],
        vehicle_orientation: Sequence[float],
        dt: Optional[float] = None,
    ) -> CameraState:
        position, orientation = self.update(
            vehicle_position, vehicle_orientation, state.position, state.orientation, dt
        )
        return CameraState(position=position, orientation=orientation)

    def initial_state(self) -> CameraState:
        return CameraState(position=vec3(self.cfg.initial_position), orientation=IDENTITY_QUAT.copy())
