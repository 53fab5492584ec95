from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from goalcounter.events.session_context import SessionContext
from goalcounter.stats.player_stats import ShotStats, StatSnapshot, round_half_up, to_percentage

logger = logging.getLogger(__name__)


class IStatUpdater(Protocol):
    """Semantic events the TrainingStateMachine emits once raw events are de-duplicated."""

    def process_goal(self) -> None: ...

    def process_new_attempt(self) -> None: ...

    def process_shot_reset(self) -> None: ...

    def process_initial_ball_hit(self) -> None: ...

    def process_manual_stat_reset(self) -> None: ...

    def handle_training_pack_load(self, total_rounds: int) -> None: ...

    def update_data(self) -> None: ...


class StatUpdater:
    """
    Applies semantic events to the session statistics.

    Every event is applied twice: to the "all shots" snapshot and to the
    snapshot of the round that was active during the attempt. The round index
    comes from the shared SessionContext, so the caller decides which round an
    attempt belongs to.

    Two flags make shot resets safe to forward blindly:
    - SessionContext.is_first_spawn: the first spawn after a pack load closes no attempt.
    - StatSnapshot.ignore_next_shot_reset: a reset right after a goal is not a miss.
    """

    def __init__(self, context: SessionContext, stats: Optional[ShotStats] = None):
        self.context = context
        self.stats = stats if stats is not None else ShotStats()

    # -----------------------------
    # Read access
    # -----------------------------
    @property
    def snapshot(self) -> StatSnapshot:
        return self.stats.all_shots

    def _targets(self) -> List[StatSnapshot]:
        targets = [self.stats.all_shots]
        idx = self.context.current_round_index
        if 0 <= idx < len(self.stats.per_shot):
            targets.append(self.stats.per_shot[idx])
        return targets

    # -----------------------------
    # Semantic events
    # -----------------------------
    def process_goal(self) -> None:
        for snap in self._targets():
            _apply_goal(snap, self.context.ball_speed)
        self.update_data()

    def process_new_attempt(self) -> None:
        # Once an attempt has started, the next reset closes a real attempt
        self.context.is_first_spawn = False
        for snap in self._targets():
            snap.ignore_next_shot_reset = False

    def process_shot_reset(self) -> None:
        if self.context.is_first_spawn:
            self.context.is_first_spawn = False
            logger.debug("Ignoring the initial spawn after loading a training pack")
            return

        for snap in self._targets():
            _apply_shot_reset(snap)
        self.update_data()

    def process_initial_ball_hit(self) -> None:
        for snap in self._targets():
            snap.initial_hits += 1
        self.update_data()

    def process_manual_stat_reset(self) -> None:
        self.stats = ShotStats.for_rounds(len(self.stats.per_shot))
        self.update_data()

    def handle_training_pack_load(self, total_rounds: int) -> None:
        self.stats = ShotStats.for_rounds(total_rounds)
        self.update_data()

    # -----------------------------
    # Derived values
    # -----------------------------
    def update_data(self) -> None:
        update_derived(self.stats.all_shots)
        for snap in self.stats.per_shot:
            update_derived(snap)


def _apply_goal(snap: StatSnapshot, ball_speed: float) -> None:
    snap.attempts += 1
    snap.goals += 1
    snap.miss_streak = 0
    snap.goal_streak += 1
    snap.longest_goal_streak = max(snap.longest_goal_streak, snap.goal_streak)
    snap.last_50_shots.append(True)
    snap.goal_speed.insert(ball_speed)

    # A reset pressed right after the goal must not count as a miss
    snap.ignore_next_shot_reset = True


def _apply_shot_reset(snap: StatSnapshot) -> None:
    if snap.ignore_next_shot_reset:
        # Goal, then reset: the attempt was already counted by the goal
        snap.ignore_next_shot_reset = False
        return

    snap.attempts += 1
    snap.goal_streak = 0
    snap.miss_streak += 1
    snap.longest_miss_streak = max(snap.longest_miss_streak, snap.miss_streak)
    snap.last_50_shots.append(False)


def update_derived(snap: StatSnapshot) -> None:
    """Recompute percentages from the raw counters; the peak only ever increases."""
    snap.success_percentage = to_percentage(snap.goals, snap.attempts)
    if snap.success_percentage > snap.peak_success_percentage:
        snap.peak_success_percentage = snap.success_percentage
        snap.peak_shot_number = snap.attempts

    snap.initial_hit_percentage = to_percentage(snap.initial_hits, snap.attempts)
    snap.double_tap_goal_percentage = to_percentage(snap.double_tap_goals, snap.goals)
    snap.flip_reset_goal_percentage = to_percentage(snap.flip_reset_attempts_scored, snap.goals)
    snap.close_miss_percentage = to_percentage(snap.close_misses, snap.attempts)
    snap.average_flip_resets_per_attempt = (
        round_half_up(snap.total_flip_resets / snap.attempts) if snap.attempts > 0 else 0.0
    )
