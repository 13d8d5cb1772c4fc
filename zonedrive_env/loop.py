from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .body import GroundVehicleBody
from .camera import ChaseCamera
from .config import CameraConfig, VehicleTuning
from .controls import InputState
from .geometry import is_unit_quat
from .integrator import IntegratorOutput, RigidBodyLike, VehicleIntegrator
from .state import CameraState, VehiclePose


@dataclass
class TickResult:
    output: IntegratorOutput
    pose: VehiclePose  # after the body integrated this tick
    camera: CameraState
    dt: float


class DriveLoop:
    """One frame of driving: input -> integrator -> body -> camera.

    A tick is skipped (nothing emitted, ``None`` returned) while the body
    handle is missing, ``dt`` is negative or not finite, or the body reports
    a non-unit orientation.
    """

    def __init__(
        self,
        body: Optional[RigidBodyLike] = None,
        tuning: Optional[VehicleTuning] = None,
        camera_cfg: Optional[CameraConfig] = None,
        controls: Optional[InputState] = None,
    ):
        self.body = body
        self.controls = controls or InputState()
        self.integrator = VehicleIntegrator(tuning)
        self.camera = ChaseCamera(camera_cfg)
        self.camera_state = self.camera.initial_state()
        self.ticks = 0
        self.skipped = 0

    def ready(self, dt: float) -> bool:
        if self.body is None:
            return False
        if not np.isfinite(dt) or dt < 0.0:
            return False
        return is_unit_quat(self.body.rotation())

    def tick(self, dt: float) -> Optional[TickResult]:
        dt = float(dt)
        if not self.ready(dt):
            self.skipped += 1
            return None

        body = self.body
        # Intents are read once; key events during the tick land next tick.
        controls = self.controls.snapshot()
        output = self.integrator.apply(body, controls, dt)

        if hasattr(body, "integrate"):
            body.integrate(dt)

        if hasattr(body, "pose"):
            pose = body.pose()
        else:
            pose = VehiclePose(
                position=np.asarray(body.translation(), dtype=np.float64),
                orientation=np.asarray(body.rotation(), dtype=np.float64),
                velocity=np.asarray(body.linvel(), dtype=np.float64),
            )

        self.camera_state = self.camera.track(self.camera_state, pose.position, pose.orientation, dt)
        self.ticks += 1
        return TickResult(output=output, pose=pose, camera=self.camera_state, dt=dt)

    def reset(self) -> None:
        self.controls.reset()
        if isinstance(self.body, GroundVehicleBody):
            self.body.reset()
        self.camera_state = self.camera.initial_state()
        self.ticks = 0
        self.skipped = 0
