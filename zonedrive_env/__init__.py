"""Public entrypoint for the ZoneDrive package."""

from .body import GroundVehicleBody
from .camera import ChaseCamera
from .config import BodyConfig, CameraConfig, SceneConfig, VehicleTuning, Zone, default_zones, load_tuning
from .controls import ControlSnapshot, InputState
from .env import ZoneDriveEnv
from .integrator import IntegratorOutput, VehicleIntegrator
from .loop import DriveLoop, TickResult
from .state import CameraState, VehiclePose
from .zones import ZoneField

__all__ = [
    "BodyConfig",
    "CameraConfig",
    "CameraState",
    "ChaseCamera",
    "ControlSnapshot",
    "DriveLoop",
    "GroundVehicleBody",
    "InputState",
    "IntegratorOutput",
    "SceneConfig",
    "TickResult",
    "VehicleIntegrator",
    "VehiclePose",
    "VehicleTuning",
    "Zone",
    "ZoneDriveEnv",
    "ZoneField",
    "default_zones",
    "load_tuning",
]
