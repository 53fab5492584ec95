from __future__ import annotations

from typing import List, Optional

import numpy as np


class GoalSpeed:
    """
    Distribution of ball speeds measured at the moment a goal was scored.

    All raw values are kept so median/stddev stay exact. Historical files only
    store the aggregated values, so a restored snapshot starts with an empty
    distribution.
    """

    def __init__(self):
        self._values: List[float] = []

    def insert(self, value: float) -> None:
        self._values.append(float(value))

    def reset(self) -> None:
        self._values.clear()

    @property
    def count(self) -> int:
        return len(self._values)

    def get_latest(self) -> float:
        return self._values[-1] if self._values else 0.0

    def get_min(self) -> float:
        return float(np.min(self._values)) if self._values else 0.0

    def get_max(self) -> float:
        return float(np.max(self._values)) if self._values else 0.0

    def get_median(self) -> float:
        return float(np.median(self._values)) if self._values else 0.0

    def get_mean(self) -> float:
        return float(np.mean(self._values)) if self._values else 0.0

    def get_std_dev(self) -> float:
        # population stddev, a single goal has no spread
        return float(np.std(self._values)) if self._values else 0.0

    def values(self) -> List[float]:
        return list(self._values)

    def __repr__(self) -> str:
        latest: Optional[float] = self._values[-1] if self._values else None
        return f"GoalSpeed(count={self.count}, latest={latest})"
