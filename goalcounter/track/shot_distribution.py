from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from goalcounter import config
from goalcounter.storage.stat_file_defs import Vector


class ShotDistributionTracker:
    """
    Accumulates ball impact locations into a heatmap over the goal plane.

    Coordinates:
      - x: horizontal position, 0 is the center of the goal
      - y: depth (ignored by the heatmap, kept in the raw samples)
      - z: height above the ground

    The grid is indexed [row, col] with row 0 at the top of the goal, so it can
    be drawn as an image without flipping.
    """

    def __init__(
        self,
        bins_x: Optional[int] = None,
        bins_z: Optional[int] = None,
        half_width: float = config.GOAL_HALF_WIDTH,
        height: float = config.GOAL_HEIGHT,
    ):
        self.bins_x = max(1, int(bins_x if bins_x is not None else config.HEATMAP_BINS_X))
        self.bins_z = max(1, int(bins_z if bins_z is not None else config.HEATMAP_BINS_Z))
        self.half_width = float(half_width)
        self.height = float(height)

        self._locations: List[Vector] = []
        self._grid = np.zeros((self.bins_z, self.bins_x), dtype=np.int32)
        self.out_of_bounds = 0

    def reset(self) -> None:
        self._locations.clear()
        self._grid.fill(0)
        self.out_of_bounds = 0

    def cell_of(self, location: Vector) -> Optional[Tuple[int, int]]:
        """(row, col) of the heatmap cell hit by `location`, or None outside the goal."""
        x, _, z = location
        if not (-self.half_width <= x <= self.half_width) or not (0.0 <= z <= self.height):
            return None

        col = int((x + self.half_width) / (2.0 * self.half_width) * self.bins_x)
        row_from_bottom = int(z / self.height * self.bins_z)
        # the upper/right borders belong to the last cell
        col = min(col, self.bins_x - 1)
        row_from_bottom = min(row_from_bottom, self.bins_z - 1)
        return self.bins_z - 1 - row_from_bottom, col

    def register_impact_location(self, location: Vector) -> None:
        vec = (float(location[0]), float(location[1]), float(location[2]))
        self._locations.append(vec)

        cell = self.cell_of(vec)
        if cell is None:
            self.out_of_bounds += 1
            return
        self._grid[cell] += 1

    @property
    def impact_locations(self) -> List[Vector]:
        return list(self._locations)

    @property
    def heatmap(self) -> np.ndarray:
        return self._grid.copy()

    def normalized_heatmap(self) -> np.ndarray:
        """Heatmap scaled to [0, 1]; all zeros when nothing was registered."""
        peak = int(self._grid.max()) if self._grid.size else 0
        if peak <= 0:
            return np.zeros(self._grid.shape, dtype=np.float32)
        return self._grid.astype(np.float32) / float(peak)
