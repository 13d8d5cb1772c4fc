from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class VehicleTuning:
    """Feel constants for the arcade vehicle. Changing them re-tunes, never breaks."""

    base_speed: float = 1.3
    rotation_speed: float = 2.0  # peak yaw impulse per tick
    forward_speed_factor: float = 10.0  # max_forward = base_speed * factor (~13 m/s)
    reverse_speed_factor: float = 8.0  # slightly slower in reverse
    accel: float = 30.0  # m/s^2
    brake_accel: float = 40.0  # m/s^2, used when changing direction
    coast_drag: float = 0.6  # 1/s, decay rate with no throttle
    lateral_damping: float = 0.98  # per-tick multiplier on sideways slide
    low_speed_reference: float = 1.5  # m/s, full steering authority above this
    coasting_steer_penalty: float = 0.4

    @property
    def max_forward(self) -> float:
        return self.base_speed * self.forward_speed_factor

    @property
    def max_reverse(self) -> float:
        return self.base_speed * self.reverse_speed_factor


@dataclass
class CameraConfig:
    """Chase camera placement and smoothing."""

    eye_height: float = 1.5  # look-at point above the vehicle origin
    offset: Tuple[float, float, float] = (0.0, 5.0, 12.0)  # local, behind and above
    position_factor: float = 0.08
    rotation_factor: float = 0.12
    smoothing: str = "per_tick"  # "per_tick" or "time_based"
    reference_fps: float = 60.0  # tick rate the fixed factors were tuned at
    initial_position: Tuple[float, float, float] = (0.0, 15.0, 20.0)
    fov_deg: float = 60.0


@dataclass
class BodyConfig:
    """Stand-in rigid body: one box on a flat ground plane."""

    start_position: Tuple[float, float, float] = (0.0, 2.0, 0.0)
    start_yaw: float = 0.0  # radians, 0 faces -Z
    mass: float = 9.0  # kg, box density mass plus the 1 kg override
    yaw_inertia: float = 15.0  # kg m^2 about +Y
    linear_damping: float = 0.2
    angular_damping: float = 0.12
    gravity: float = -9.81
    ground_height: float = 0.1  # top face of the ground collider
    half_height: float = 0.5  # collider half extent along Y
    spin_friction: float = 0.5  # ground friction coefficient resisting yaw while grounded
    contact_radius: float = 1.0  # m, lever arm of the friction torque

    @property
    def ride_height(self) -> float:
        return self.ground_height + self.half_height


@dataclass(frozen=True)
class Zone:
    label: str
    color: str
    center: Tuple[float, float, float]
    half_extent: float = 2.0


def default_zones() -> List[Zone]:
    return [
        Zone("High-value", "#ef4444", (10.0, 1.0, 10.0)),
        Zone("Mid-range", "#f59e0b", (-10.0, 1.0, 10.0)),
        Zone("Budget", "#8b5cf6", (10.0, 1.0, -10.0)),
        Zone("Premium", "#06b6d4", (-10.0, 1.0, -10.0)),
    ]


@dataclass
class SceneConfig:
    """All knobs for the ZoneDriveEnv."""

    tuning: VehicleTuning = field(default_factory=VehicleTuning)
    camera: CameraConfig = field(default_factory=CameraConfig)
    body: BodyConfig = field(default_factory=BodyConfig)

    # World
    zones: List[Zone] = field(default_factory=default_zones)
    ground_half_size: float = 50.0  # ground is 100 x 100 m
    dt: float = 1.0 / 60.0  # nominal seconds per step
    max_steps: int = 3600

    # Task
    arrival_margin: float = 1.5  # meters beyond a zone footprint that still counts as arrived
    r_zone: float = 100.0
    step_penalty: float = -0.01

    # Rendering
    render_agent_trail: bool = True
    render_camera: bool = True


def load_tuning(path: Optional[str | Path], base: Optional[VehicleTuning] = None) -> VehicleTuning:
    """Return ``base`` (or defaults) with overrides read from a JSON object file."""
    tuning = base or VehicleTuning()
    if path is None:
        return tuning
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Tuning file '{p}' not found.")
    with p.open("r", encoding="utf-8") as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"Tuning file '{p}' must contain a JSON object.")
    known = {f.name for f in dataclasses.fields(VehicleTuning)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown VehicleTuning fields: {', '.join(unknown)}")
    return dataclasses.replace(tuning, **{k: float(v) for k, v in overrides.items()})
