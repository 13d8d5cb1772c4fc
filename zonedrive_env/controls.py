from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence

DIRECTIONS = ("forward", "backward", "left", "right")

# Accepts matplotlib ("up", "left") and browser style ("arrowup") key names.
KEY_BINDINGS: Dict[str, str] = {
    "w": "forward",
    "up": "forward",
    "arrowup": "forward",
    "s": "backward",
    "down": "backward",
    "arrowdown": "backward",
    "a": "left",
    "left": "left",
    "arrowleft": "left",
    "d": "right",
    "right": "right",
    "arrowright": "right",
}


def direction_for_key(key: Optional[str]) -> Optional[str]:
    return KEY_BINDINGS.get((key or "").lower())


@dataclass(frozen=True)
class ControlSnapshot:
    """Read-only view of the intents for one tick."""

    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False

    @property
    def throttle(self) -> bool:
        return self.forward or self.backward

    @property
    def steer(self) -> int:
        """+1 for left, -1 for right, 0 when neither or both are held."""
        return (1 if self.left else 0) + (-1 if self.right else 0)


class InputState:
    """Four boolean driving intents mutated by key edge events.

    Fields are independent: forward and backward may both be held, the
    integrator decides which one wins.
    """

    def __init__(self):
        self.forward = False
        self.backward = False
        self.left = False
        self.right = False

    def set_intent(self, direction: str, active: bool) -> None:
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction '{direction}', expected one of {DIRECTIONS}")
        setattr(self, direction, bool(active))

    def handle_key(self, key: Optional[str], pressed: bool) -> bool:
        """Apply a key-down/up edge. Returns True when an intent changed."""
        direction = direction_for_key(key)
        if direction is None:
            return False
        if getattr(self, direction) == bool(pressed):
            return False
        self.set_intent(direction, pressed)
        return True

    def reset(self) -> None:
        for direction in DIRECTIONS:
            setattr(self, direction, False)

    def snapshot(self) -> ControlSnapshot:
        return ControlSnapshot(
            forward=self.forward,
            backward=self.backward,
            left=self.left,
            right=self.right,
        )

    def set_from_action(self, action: Sequence[float]) -> None:
        """Load intents from a 4-element ``[forward, backward, left, right]`` action."""
        if len(action) != len(DIRECTIONS):
            raise ValueError(f"Action must have {len(DIRECTIONS)} entries, got {len(action)}")
        for direction, value in zip(DIRECTIONS, action):
            self.set_intent(direction, float(value) > 0.5)

    @classmethod
    def from_action(cls, action: Sequence[float]) -> "InputState":
        state = cls()
        state.set_from_action(action)
        return state

    def __repr__(self) -> str:
        held = [d for d in DIRECTIONS if getattr(self, d)]
        return f"InputState({', '.join(held) or 'idle'})"
