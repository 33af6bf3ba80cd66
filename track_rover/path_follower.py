from __future__ import annotations

from typing import Optional, Sequence, Tuple
import math

import numpy as np

from .geometry_utils import distance_sq
from .track import Point


class CenterlineFollower:
    """Tracks the rover's position along a closed centerline.

    Produces the lookahead target heading fed to the controller. The nearest
    sample search is windowed around the previous answer and only falls back
    to a full scan when the rover is far from that window.
    """

    def __init__(
        self,
        center_line: Sequence[Point],
        lookahead: float = 140.0,
        window: int = 40,
        reacquire_distance: float = 300.0,
        start_index: int = 0,
    ) -> None:
        self.points = [(p.x, p.y) for p in center_line]
        self._array = np.asarray(self.points, dtype=np.float64).reshape(-1, 2)
        self.lookahead = lookahead
        self.window = window
        self.reacquire_distance = reacquire_distance
        self.index = start_index if self.points else 0

    def closest_index(self, x: float, y: float) -> int:
        n = len(self.points)
        if n == 0:
            return 0
        best = self.index % n
        best_d = distance_sq(self.points[best][0], self.points[best][1], x, y)
        for k in range(-self.window, self.window + 1):
            i = (self.index + k) % n
            d = distance_sq(self.points[i][0], self.points[i][1], x, y)
            if d < best_d:
                best_d = d
                best = i
        if best_d > self.reacquire_distance * self.reacquire_distance:
            d_all = np.sum((self._array - (x, y)) ** 2, axis=1)
            best = int(np.argmin(d_all))
        self.index = best
        return best

    def lookahead_point(self, from_index: int, dist: Optional[float] = None) -> Tuple[float, float]:
        """Point `dist` arc-length ahead of sample `from_index` along the loop."""
        pts = self.points
        n = len(pts)
        if n == 0:
            return (0.0, 0.0)
        remaining = self.lookahead if dist is None else dist
        i = from_index % n
        for _ in range(n):
            if remaining <= 0.0:
                break
            ax, ay = pts[i]
            bx, by = pts[(i + 1) % n]
            seg = math.hypot(bx - ax, by - ay)
            if seg >= remaining:
                t = remaining / seg if seg > 0.0 else 0.0
                return (ax + (bx - ax) * t, ay + (by - ay) * t)
            remaining -= seg
            i = (i + 1) % n
        return pts[i]

    def target_heading(self, x: float, y: float) -> float:
        """World heading from (x, y) toward the lookahead point."""
        idx = self.closest_index(x, y)
        tx, ty = self.lookahead_point(idx)
        return math.atan2(ty - y, tx - x)
