"""
ZoneDriveEnv: drive an arcade car across the ground plane and visit every
marker zone while a chase camera trails behind.
"""
from __future__ import annotations

from typing import List, Optional, Set, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

try:
    import matplotlib.pyplot as plt
    from matplotlib.patches import Rectangle

    _HAS_PLT = True
except Exception:  # pragma: no cover - optional dependency
    _HAS_PLT = False

from .body import GroundVehicleBody
from .config import SceneConfig
from .geometry import forward_vector
from .loop import DriveLoop, TickResult
from .state import VehiclePose
from .zones import ZoneField


class ZoneDriveEnv(gym.Env):
    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(self, config: Optional[SceneConfig] = None, render_mode: Optional[str] = None):
        super().__init__()
        self.cfg = config or SceneConfig()
        self.render_mode = render_mode
        self.dt = self.cfg.dt

        self.body = GroundVehicleBody(self.cfg.body)
        self.loop = DriveLoop(self.body, tuning=self.cfg.tuning, camera_cfg=self.cfg.camera)
        self.zone_field = ZoneField(list(self.cfg.zones), self.cfg.arrival_margin)

        # [forward, backward, left, right]
        self.action_space = spaces.MultiBinary(4)
        obs_dim = 9 + 2 * len(self.zone_field.zones)
        high = np.full((obs_dim,), np.finfo(np.float32).max, dtype=np.float32)
        self.observation_space = spaces.Box(-high, high, dtype=np.float32)

        self._pose: Optional[VehiclePose] = None
        self._last: Optional[TickResult] = None
        self.visited: Set[str] = set()
        self.steps = 0

        # Rendering
        self._fig = None
        self._ax = None
        self._trail: List[Tuple[float, float]] = []

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None):
        super().reset(seed=seed)
        self.loop.reset()
        self._pose = self.body.pose()
        self._last = None
        self.visited = set()
        self.steps = 0
        self._trail = []
        return self._get_obs(), self._build_info(new_zone=None)

    def step(self, action):
        if self._pose is None:
            raise RuntimeError("Call reset() before step().")
        self.loop.controls.set_from_action(np.asarray(action).reshape(-1))
        return self.advance(self.dt)

    def advance(self, dt: float):
        """Tick once with whatever intents the input state currently holds."""
        if self._pose is None:
            raise RuntimeError("Call reset() before advance().")

        self.steps += 1
        result = self.loop.tick(dt)
        if result is not None:
            self._last = result
            self._pose = result.pose
        if self.cfg.render_agent_trail:
            self._trail.append((float(self._pose.position[0]), float(self._pose.position[2])))

        reward = self.cfg.step_penalty
        zone = self.zone_field.zone_at(self._pose.position)
        new_zone = None
        if zone is not None and zone.label not in self.visited:
            self.visited.add(zone.label)
            new_zone = zone.label
            reward += self.cfg.r_zone

        terminated = len(self.visited) == len(self.zone_field.zones) > 0
        truncated = bool(self.steps >= self.cfg.max_steps and not terminated)
        info = self._build_info(new_zone=new_zone)
        info["skipped"] = result is None
        return self._get_obs(), float(reward), bool(terminated), truncated, info

    # --------------------------------------------------------------------- #
    # Helpers
    # --------------------------------------------------------------------- #
    def _build_info(self, new_zone: Optional[str]) -> dict:
        if self._pose is None:
            raise RuntimeError("State is undefined. Call reset first.")

        zone, gap = self.zone_field.nearest(self._pose.position)
        cam = self.loop.camera_state
        info = {
            "forward_speed": self._pose.forward_speed,
            "horizontal_speed": self._pose.horizontal_speed,
            "heading": self._pose.heading,
            "yaw_rate": float(self._pose.yaw_rate),
            "nearest_zone": zone.label if zone is not None else None,
            "nearest_zone_distance": gap,
            "new_zone": new_zone,
            "visited": sorted(self.visited),
            "camera_position": cam.position.copy(),
            "camera_orientation": cam.orientation.copy(),
        }
        if self._last is not None:
            info["yaw_torque"] = self._last.output.yaw_torque
            info["accel_rate"] = self._last.output.accel_rate
        return info

    def _get_obs(self) -> np.ndarray:
        if self._pose is None:
            raise RuntimeError("State is undefined. Call reset first.")
        feats = self.zone_field.relative_features(self._pose.position)
        return np.concatenate([self._pose.as_vector(), np.asarray(feats, dtype=np.float32)]).astype(np.float32)

    # --------------------------------------------------------------------- #
    # Rendering
    # --------------------------------------------------------------------- #
    def render(self, mode: Optional[str] = None):
        mode = mode or self.render_mode or "human"
        if not _HAS_PLT:
            raise RuntimeError("matplotlib is required for rendering")
        if self._pose is None:
            raise RuntimeError("Call reset() before render().")

        half = self.cfg.ground_half_size
        if self._fig is None:
            self._fig, self._ax = plt.subplots(figsize=(6, 6))

        ax = self._ax
        ax.clear()
        ax.set_aspect("equal", "box")
        ax.set_xlim(-half, half)
        # -Z (the default heading) points up the screen.
        ax.set_ylim(half, -half)
        ax.set_facecolor("#10b981")
        ax.grid(True, alpha=0.3)
        ax.set_title("ZoneDrive")

        for zone in self.zone_field.zones:
            cx, _, cz = zone.center
            e = zone.half_extent
            alpha = 0.9 if zone.label in self.visited else 0.5
            ax.add_patch(Rectangle((cx - e, cz - e), 2 * e, 2 * e, color=zone.color, alpha=alpha))
            ax.text(cx, cz, zone.label, ha="center", va="center", fontsize=7, color="white")

        px, _, pz = self._pose.position
        fwd = forward_vector(self._pose.orientation)
        ax.scatter([px], [pz], s=50, color="#3b82f6", label="car")
        ax.arrow(px, pz, fwd[0] * 2.0, fwd[2] * 2.0, head_width=0.8, length_includes_head=True, color="#2563eb")

        if self.cfg.render_agent_trail and len(self._trail) > 1:
            xs, zs = zip(*self._trail)
            ax.plot(xs, zs, alpha=0.5, color="white")

        if self.cfg.render_camera:
            cam = self.loop.camera_state.position
            ax.scatter([cam[0]], [cam[2]], marker="^", s=40, color="black", label="camera")
            ax.plot([cam[0], px], [cam[2], pz], linestyle="--", alpha=0.5, color="black")

        ax.legend(loc="upper left")
        self._fig.canvas.draw()
        if mode == "rgb_array":
            img = np.asarray(self._fig.canvas.buffer_rgba())
            return img[..., :3].copy()
        elif mode == "human":
            plt.pause(0.001)
        else:
            raise NotImplementedError(f"Unsupported render mode {mode}")

    def close(self):
        if self._fig is not None:
            plt.close(self._fig)
            self._fig, self._ax = None, None
