from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List

from goalcounter import config
from goalcounter.stats.goal_speed import GoalSpeed


def round_half_up(value: float, digits: int = 2) -> float:
    """Round a non-negative value, halves away from zero (312.5 -> 313, not 312)."""
    scale = 10.0 ** digits
    return math.floor(value * scale + 0.5) / scale


def to_percentage(numerator: float, denominator: float) -> float:
    """Percentage with two decimal digits, 0.0 when there is nothing to divide by."""
    if denominator <= 0:
        return 0.0
    return math.floor((float(numerator) / float(denominator)) * 10000.0 + 0.5) / 100.0


def make_last_shots(values: Iterable[bool] = ()) -> Deque[bool]:
    return deque(values, maxlen=config.LAST_SHOTS_WINDOW)


@dataclass
class GoalSpeedDiff:
    """Differences of goal speed values between two snapshots."""
    min_value: float = 0.0
    max_value: float = 0.0
    median_value: float = 0.0
    mean_value: float = 0.0
    std_dev_value: float = 0.0


@dataclass
class StatSnapshot:
    """
    Aggregate statistics of a training session (or of a single shot of a pack).

    Raw counters are mutated by the StatUpdater only; the derived percentages
    are recomputed from them by StatUpdater.update_data(). Everybody else
    (renderer, file comparison) treats a snapshot as read-only.

    Invariants kept by the updater:
    - goals <= attempts
    - at most one of goal_streak / miss_streak is nonzero
    - longest_* never decrease within a session
    - last_50_shots holds at most LAST_SHOTS_WINDOW entries, newest at the end
    """

    attempts: int = 0
    goals: int = 0
    last_50_shots: Deque[bool] = field(default_factory=make_last_shots)
    goal_streak: int = 0
    miss_streak: int = 0
    longest_goal_streak: int = 0
    longest_miss_streak: int = 0
    initial_hits: int = 0
    goal_speed: GoalSpeed = field(default_factory=GoalSpeed, compare=False)

    # Extended counters (filled by restored files or by host-side detectors)
    max_air_dribble_touches: int = 0
    max_air_dribble_time: float = 0.0
    max_ground_dribble_time: float = 0.0
    double_tap_goals: int = 0
    total_flip_resets: int = 0
    max_flip_resets: int = 0
    flip_reset_attempts_scored: int = 0
    close_misses: int = 0

    # Goal directly followed by a shot reset must not count as a miss
    ignore_next_shot_reset: bool = False

    # Derived values
    success_percentage: float = 0.0
    peak_success_percentage: float = 0.0
    peak_shot_number: int = 0
    initial_hit_percentage: float = 0.0
    double_tap_goal_percentage: float = 0.0
    average_flip_resets_per_attempt: float = 0.0
    flip_reset_goal_percentage: float = 0.0
    close_miss_percentage: float = 0.0

    def get_goal_speed_differences(self, other: StatSnapshot) -> GoalSpeedDiff:
        return GoalSpeedDiff(
            min_value=self.goal_speed.get_min() - other.goal_speed.get_min(),
            max_value=self.goal_speed.get_max() - other.goal_speed.get_max(),
            median_value=self.goal_speed.get_median() - other.goal_speed.get_median(),
            mean_value=self.goal_speed.get_mean() - other.goal_speed.get_mean(),
            std_dev_value=self.goal_speed.get_std_dev() - other.goal_speed.get_std_dev(),
        )

    def differences(self, other: StatSnapshot) -> SnapshotDiff:
        """
        Compare this snapshot to `other`; positive values mean "self is better".

        Only values that cover all shots are compared. Close misses are left out:
        fewer close misses may mean more goals or more shots that were way off.
        """
        return SnapshotDiff(
            goals=self.goals - other.goals,
            # inverted so that a positive value is an improvement
            longest_goal_streak=self.longest_goal_streak - other.longest_goal_streak,
            longest_miss_streak=other.longest_miss_streak - self.longest_miss_streak,
            initial_hits=self.initial_hits - other.initial_hits,
            max_air_dribble_touches=self.max_air_dribble_touches - other.max_air_dribble_touches,
            max_air_dribble_time=self.max_air_dribble_time - other.max_air_dribble_time,
            max_ground_dribble_time=self.max_ground_dribble_time - other.max_ground_dribble_time,
            double_tap_goals=self.double_tap_goals - other.double_tap_goals,
            total_flip_resets=self.total_flip_resets - other.total_flip_resets,
            max_flip_resets=self.max_flip_resets - other.max_flip_resets,
            flip_reset_attempts_scored=self.flip_reset_attempts_scored - other.flip_reset_attempts_scored,
            success_percentage=round(self.success_percentage - other.success_percentage, 2),
            goal_speed=self.get_goal_speed_differences(other),
        )


@dataclass
class SnapshotDiff:
    """Result of StatSnapshot.differences()."""
    goals: int = 0
    longest_goal_streak: int = 0
    longest_miss_streak: int = 0
    initial_hits: int = 0
    max_air_dribble_touches: int = 0
    max_air_dribble_time: float = 0.0
    max_ground_dribble_time: float = 0.0
    double_tap_goals: int = 0
    total_flip_resets: int = 0
    max_flip_resets: int = 0
    flip_reset_attempts_scored: int = 0
    success_percentage: float = 0.0
    goal_speed: GoalSpeedDiff = field(default_factory=GoalSpeedDiff)


@dataclass
class ShotStats:
    """Statistics over all shots of a pack plus one snapshot per shot (round)."""
    all_shots: StatSnapshot = field(default_factory=StatSnapshot)
    per_shot: List[StatSnapshot] = field(default_factory=list)

    @classmethod
    def for_rounds(cls, total_rounds: int) -> ShotStats:
        return cls(per_shot=[StatSnapshot() for _ in range(max(0, int(total_rounds)))])
