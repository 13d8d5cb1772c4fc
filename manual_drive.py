#!/usr/bin/env python3
"""Manual keyboard driver for ZoneDriveEnv.

Run this script to drive the car to the coloured zones with WASD / arrow keys.
The frame clock is real elapsed time, so the integrator sees a variable dt.
"""
from __future__ import annotations

import argparse
import dataclasses
import time
from pathlib import Path

from zonedrive_env import CameraConfig, SceneConfig, ZoneDriveEnv, load_tuning

try:
    import matplotlib
    backend = matplotlib.get_backend().lower()
    if backend in {"agg", "cairoagg", "figurecanvasagg"}:
        for candidate in ("QtAgg", "Qt5Agg", "TkAgg"):
            try:
                matplotlib.use(candidate, force=True)
                print(f"Switching Matplotlib backend to {candidate}")
                break
            except Exception:
                continue
    import matplotlib.pyplot as plt
    backend = plt.get_backend().lower()
    if backend in {"agg", "cairoagg", "figurecanvasagg"}:
        raise RuntimeError(
            "Matplotlib is using a non-interactive backend (Agg). "
            "Set MPLBACKEND=TkAgg (or QtAgg/Qt5Agg) before running, "
            "and ensure the corresponding GUI toolkit is installed."
        )
except Exception as exc:  # pragma: no cover - informative failure
    raise RuntimeError(
        "matplotlib with an interactive backend is required for manual control. "
        "Install it via `python -m pip install matplotlib pyqt5` (or tkinter)."
    ) from exc


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive the ZoneDrive car with the keyboard.")
    parser.add_argument("--tuning", type=Path, default=None, help="JSON file with VehicleTuning overrides.")
    parser.add_argument(
        "--camera-smoothing",
        choices=["per_tick", "time_based"],
        default="per_tick",
        help="Fixed per-tick camera blending, or dt-normalised decay.",
    )
    parser.add_argument("--max-dt", type=float, default=None, help="Optional cap on a single frame's dt after a stall.")
    return parser.parse_args()


def manual_drive(config: SceneConfig | None = None, max_dt: float | None = None) -> None:
    """Launch a keyboard-controlled session until the window closes."""
    plt.ion()
    env = ZoneDriveEnv(config or SceneConfig())
    env.reset()

    running = True
    controls = env.loop.controls

    env.render()
    fig = env._fig
    if fig is None:
        raise RuntimeError(
            "Matplotlib did not create a window. "
            "Ensure you are running with a GUI backend (e.g., `python -m pip install pyqt5`)."
        )

    def on_key_press(event) -> None:
        nonlocal running
        key = (event.key or "").lower()
        if key in {"escape", "q"}:
            running = False
            return
        if key == "r":
            env.reset()
            return
        # Auto-repeat presses are no-ops for an already held direction.
        controls.handle_key(key, True)

    def on_key_release(event) -> None:
        controls.handle_key(event.key, False)

    def on_close(_event) -> None:
        nonlocal running
        running = False

    fig.canvas.mpl_connect("key_press_event", on_key_press)
    fig.canvas.mpl_connect("key_release_event", on_key_release)
    fig.canvas.mpl_connect("close_event", on_close)

    print(
        "Manual drive controls:\n"
        "  - W / Up: forward\n"
        "  - S / Down: backward\n"
        "  - A / Left, D / Right: steer\n"
        "  - R: reset, Q or Esc: quit\n"
        "Drive to the coloured zones. Close the window or press Esc to exit."
    )

    last = time.perf_counter()
    try:
        while running:
            now = time.perf_counter()
            dt = now - last if max_dt is None else min(now - last, max_dt)
            last = now

            _, _, terminated, truncated, info = env.advance(dt)
            env.render()
            print(
                f"speed {info['forward_speed']:+6.2f} m/s | "
                f"nearest {info['nearest_zone']} ({info['nearest_zone_distance']:5.1f} m) | "
                f"visited {len(info['visited'])}/{len(env.zone_field.zones)}",
                end="\r",
                flush=True,
            )
            if info.get("new_zone"):
                print(f"\nReached zone: {info['new_zone']}")

            if terminated or truncated:
                reason = "all zones visited" if terminated else "truncated"
                print(f"\nEpisode finished ({reason}). Resetting...")
                time.sleep(0.75)
                env.reset()
                last = time.perf_counter()
    finally:
        env.close()
        plt.ioff()


if __name__ == "__main__":
    args = parse_args()
    base = SceneConfig()
    cfg = dataclasses.replace(
        base,
        tuning=load_tuning(args.tuning),
        camera=CameraConfig(smoothing=args.camera_smoothing),
        max_steps=10**9,
    )
    manual_drive(cfg, max_dt=args.max_dt)
