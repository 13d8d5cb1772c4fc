"""Scripted, headless rollout of the ZoneDrive car.

Drives a fixed sequence of manoeuvres through the same loop the keyboard
driver uses, optionally with a jittery frame clock and a stall spike, and
reports per-phase telemetry. Useful for checking feel after tuning changes.
"""
from __future__ import annotations

import argparse
import dataclasses
import json
from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np
from tqdm import trange

from zonedrive_env import CameraConfig, SceneConfig, ZoneDriveEnv, load_tuning

# (phase name, seconds, [forward, backward, left, right])
MANEUVERS: List[Tuple[str, float, List[int]]] = [
    ("launch", 1.5, [1, 0, 0, 0]),
    ("turn-left", 1.0, [1, 0, 1, 0]),
    ("coast", 2.0, [0, 0, 0, 0]),
    ("brake-to-reverse", 1.5, [0, 1, 0, 0]),
    ("reverse-right", 1.0, [0, 1, 0, 1]),
    ("coast-turn", 1.0, [0, 0, 1, 0]),
]


def parse_args() -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Run a scripted ZoneDrive manoeuvre sequence.")
    ap.add_argument("--fps", type=float, default=60.0, help="Nominal tick rate.")
    ap.add_argument("--jitter", type=float, default=0.0, help="Relative dt jitter, e.g. 0.3 for +-30%%.")
    ap.add_argument("--stall", type=float, default=0.0, help="Inject one dt spike of this many seconds mid-run.")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--tuning", type=Path, default=None, help="JSON file with VehicleTuning overrides.")
    ap.add_argument("--camera-smoothing", choices=["per_tick", "time_based"], default="per_tick")
    ap.add_argument("--plot", type=Path, default=None, help="Save a speed/trajectory figure here.")
    ap.add_argument("--stats", type=Path, default=None, help="Save per-phase stats as JSON here.")
    return ap.parse_args()


def build_schedule(fps: float, jitter: float, stall: float, rng: np.random.Generator):
    nominal = 1.0 / fps
    schedule = []
    for name, seconds, action in MANEUVERS:
        n = max(1, int(round(seconds * fps)))
        for _ in range(n):
            dt = nominal * (1.0 + rng.uniform(-jitter, jitter)) if jitter > 0.0 else nominal
            schedule.append((name, max(dt, 0.0), action))
    if stall > 0.0 and schedule:
        mid = len(schedule) // 2
        name, _, action = schedule[mid]
        schedule[mid] = (name, stall, action)
    return schedule


def run(env: ZoneDriveEnv, schedule) -> Dict[str, List[dict]]:
    env.reset()
    records: Dict[str, List[dict]] = {}
    for i in trange(len(schedule), desc="Rollout"):
        name, dt, action = schedule[i]
        env.loop.controls.set_from_action(action)
        _, _, _, _, info = env.advance(dt)
        records.setdefault(name, []).append(
            {
                "dt": dt,
                "forward_speed": float(info["forward_speed"]),
                "heading": float(info["heading"]),
                "yaw_torque": info.get("yaw_torque"),
                "x": float(env.body.translation()[0]),
                "z": float(env.body.translation()[2]),
                "camera_lag": float(
                    np.linalg.norm(
                        info["camera_position"]
                        - env.loop.camera.desired_position(env.body.translation(), env.body.rotation())
                    )
                ),
            }
        )
    return records


def summarize(records: Dict[str, List[dict]]) -> Dict[str, dict]:
    stats = {}
    for name, rows in records.items():
        speeds = np.array([r["forward_speed"] for r in rows])
        headings = np.unwrap(np.array([r["heading"] for r in rows]))
        stats[name] = {
            "ticks": len(rows),
            "seconds": float(sum(r["dt"] for r in rows)),
            "speed_start": float(speeds[0]),
            "speed_end": float(speeds[-1]),
            "speed_max_abs": float(np.max(np.abs(speeds))),
            "heading_change_deg": float(np.degrees(headings[-1] - headings[0])),
            "camera_lag_end": float(rows[-1]["camera_lag"]),
        }
    return stats


def plot(records: Dict[str, List[dict]], path: Path) -> None:
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, (ax_speed, ax_path) = plt.subplots(1, 2, figsize=(11, 4.5))
    t0 = 0.0
    for name, rows in records.items():
        ts = t0 + np.cumsum([r["dt"] for r in rows])
        ax_speed.plot(ts, [r["forward_speed"] for r in rows], label=name)
        ax_path.plot([r["x"] for r in rows], [r["z"] for r in rows], label=name)
        t0 = float(ts[-1])
    ax_speed.set_xlabel("time [s]")
    ax_speed.set_ylabel("signed forward speed [m/s]")
    ax_speed.grid(True, alpha=0.3)
    ax_speed.legend(fontsize=7)
    ax_path.set_aspect("equal", "datalim")
    ax_path.invert_yaxis()
    ax_path.set_xlabel("x [m]")
    ax_path.set_ylabel("z [m]")
    ax_path.grid(True, alpha=0.3)
    fig.tight_layout()
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=120)
    plt.close(fig)


def main():
    args = parse_args()
    base = SceneConfig()
    cfg = dataclasses.replace(
        base,
        tuning=load_tuning(args.tuning),
        camera=CameraConfig(smoothing=args.camera_smoothing),
        max_steps=10**9,
    )
    env = ZoneDriveEnv(cfg)
    rng = np.random.default_rng(args.seed)
    schedule = build_schedule(args.fps, args.jitter, args.stall, rng)

    records = run(env, schedule)
    stats = summarize(records)

    print("\n" + "=" * 78)
    print(f"{'phase':<18}{'ticks':>6}{'v0':>9}{'v1':>9}{'|v|max':>9}{'dHead':>10}{'camLag':>9}")
    print("-" * 78)
    for name, s in stats.items():
        print(
            f"{name:<18}{s['ticks']:>6}{s['speed_start']:>9.2f}{s['speed_end']:>9.2f}"
            f"{s['speed_max_abs']:>9.2f}{s['heading_change_deg']:>10.1f}{s['camera_lag_end']:>9.2f}"
        )
    print("=" * 78)
    print(f"Max forward {cfg.tuning.max_forward:.1f} m/s | max reverse {cfg.tuning.max_reverse:.1f} m/s")

    if args.stats is not None:
        args.stats.parent.mkdir(parents=True, exist_ok=True)
        with args.stats.open("w", encoding="utf-8") as f:
            json.dump(stats, f, indent=2)
        print(f"Stats saved to {args.stats}")
    if args.plot is not None:
        plot(records, args.plot)
        print(f"Figure saved to {args.plot}")


if __name__ == "__main__":
    main()
