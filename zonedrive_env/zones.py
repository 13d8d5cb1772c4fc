from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import Zone


@dataclass
class ZoneField:
    """Static marker zones on the ground plane + arrival helpers."""

    zones: List[Zone] = field(default_factory=list)
    arrival_margin: float = 1.5

    def _footprint_gap(self, zone: Zone, px: float, pz: float) -> float:
        """Horizontal distance from the point to the zone's square footprint (0 inside)."""
        cx, _, cz = zone.center
        dx = max(abs(px - cx) - zone.half_extent, 0.0)
        dz = max(abs(pz - cz) - zone.half_extent, 0.0)
        return float(np.hypot(dx, dz))

    def zone_at(self, position: Sequence[float]) -> Optional[Zone]:
        px, pz = float(position[0]), float(position[2])
        for zone in self.zones:
            cx, _, cz = zone.center
            reach = zone.half_extent + self.arrival_margin
            if abs(px - cx) <= reach and abs(pz - cz) <= reach:
                return zone
        return None

    def nearest(self, position: Sequence[float]) -> Tuple[Optional[Zone], float]:
        px, pz = float(position[0]), float(position[2])
        best: Optional[Zone] = None
        best_gap = float("inf")
        for zone in self.zones:
            gap = self._footprint_gap(zone, px, pz)
            if gap < best_gap:
                best, best_gap = zone, gap
        return best, best_gap

    def relative_features(self, position: Sequence[float]) -> List[float]:
        px, pz = float(position[0]), float(position[2])
        feats: List[float] = []
        for zone in self.zones:
            cx, _, cz = zone.center
            feats += [cx - px, cz - pz]
        return feats
