from __future__ import annotations

import pytest

from goalcounter.events.session_context import SessionContext
from goalcounter.stats.player_stats import StatSnapshot
from goalcounter.stats.stat_updater import StatUpdater, update_derived


@pytest.fixture
def context() -> SessionContext:
    ctx = SessionContext()
    ctx.reset(total_rounds=2)
    return ctx


@pytest.fixture
def updater(context) -> StatUpdater:
    u = StatUpdater(context)
    u.handle_training_pack_load(context.total_rounds)
    return u


def start_attempt(updater: StatUpdater, round_index: int = 0) -> None:
    updater.context.current_round_index = round_index
    updater.process_new_attempt()


def test_first_shot_reset_after_pack_load_is_not_an_attempt(updater):
    updater.process_shot_reset()
    assert updater.snapshot.attempts == 0
    assert updater.snapshot.miss_streak == 0
    assert updater.context.is_first_spawn is False

    updater.process_shot_reset()
    assert updater.snapshot.attempts == 1
    assert updater.snapshot.miss_streak == 1


def test_goal_counts_attempt_and_streak(updater):
    start_attempt(updater)
    updater.context.ball_speed = 1234.5
    updater.process_goal()

    snap = updater.snapshot
    assert (snap.attempts, snap.goals) == (1, 1)
    assert snap.goal_streak == 1 and snap.miss_streak == 0
    assert snap.longest_goal_streak == 1
    assert snap.ignore_next_shot_reset is True
    assert list(snap.last_50_shots) == [True]
    assert snap.goal_speed.get_latest() == pytest.approx(1234.5)
    assert snap.success_percentage == 100.0


def test_shot_reset_right_after_goal_is_ignored(updater):
    start_attempt(updater)
    updater.process_goal()
    updater.process_shot_reset()

    snap = updater.snapshot
    assert snap.attempts == 1
    assert snap.miss_streak == 0
    assert snap.goal_streak == 1
    assert snap.ignore_next_shot_reset is False

    # the latch only swallows one reset
    updater.process_shot_reset()
    assert snap.attempts == 2
    assert snap.miss_streak == 1
    assert snap.goal_streak == 0


def test_new_attempt_closes_the_latch_window(updater):
    start_attempt(updater)
    updater.process_goal()
    start_attempt(updater)
    updater.process_shot_reset()

    snap = updater.snapshot
    assert snap.attempts == 2
    assert snap.miss_streak == 1
    assert snap.longest_miss_streak == 1


def test_streaks_track_longest_runs(updater):
    outcomes = [True, True, False, False, False, True, False, True, True, True]
    for is_goal in outcomes:
        start_attempt(updater)
        if is_goal:
            updater.process_goal()
        else:
            updater.process_shot_reset()

    snap = updater.snapshot
    assert snap.attempts == 10
    assert snap.goals == 6
    assert snap.longest_goal_streak == 3
    assert snap.longest_miss_streak == 3
    assert snap.goal_streak == 3 and snap.miss_streak == 0
    assert snap.success_percentage == 60.0
    assert snap.peak_success_percentage == 100.0
    assert snap.peak_shot_number == 1


def test_success_percentage_rounding(updater):
    for is_goal in (True, False, False):
        start_attempt(updater)
        if is_goal:
            updater.process_goal()
        else:
            updater.process_shot_reset()
    assert updater.snapshot.success_percentage == 33.33


def test_per_shot_snapshot_follows_round_index(updater):
    start_attempt(updater, round_index=1)
    updater.process_goal()
    start_attempt(updater, round_index=0)
    updater.process_shot_reset()

    first, second = updater.stats.per_shot
    assert (first.attempts, first.goals) == (1, 0)
    assert (second.attempts, second.goals) == (1, 1)
    assert updater.snapshot.attempts == 2


def test_out_of_range_round_only_updates_all_shots(updater):
    start_attempt(updater, round_index=7)
    updater.process_goal()
    assert updater.snapshot.goals == 1
    assert all(s.attempts == 0 for s in updater.stats.per_shot)


def test_initial_ball_hit(updater):
    start_attempt(updater)
    updater.process_initial_ball_hit()
    updater.process_goal()
    assert updater.snapshot.initial_hits == 1
    assert updater.snapshot.initial_hit_percentage == 100.0


def test_manual_reset_zeroes_everything_but_keeps_rounds(updater):
    start_attempt(updater)
    updater.process_goal()
    updater.process_manual_stat_reset()

    snap = updater.snapshot
    assert snap == StatSnapshot()
    assert len(updater.stats.per_shot) == 2


def test_pack_load_rebuilds_per_shot_stats(updater):
    updater.handle_training_pack_load(5)
    assert len(updater.stats.per_shot) == 5
    assert updater.snapshot.attempts == 0


def test_last_shots_window_is_capped(updater):
    for idx in range(60):
        start_attempt(updater)
        if idx % 2:
            updater.process_goal()
        else:
            updater.process_shot_reset()

    shots = updater.snapshot.last_50_shots
    assert len(shots) == 50
    # oldest entries are dropped from the front
    assert shots[0] is False and shots[-1] is True


def test_update_derived_without_attempts():
    snap = StatSnapshot()
    update_derived(snap)
    assert snap.success_percentage == 0.0
    assert snap.peak_success_percentage == 0.0
    assert snap.average_flip_resets_per_attempt == 0.0


def test_update_derived_extended_fields():
    snap = StatSnapshot(attempts=10, goals=4, double_tap_goals=1, flip_reset_attempts_scored=2,
                        total_flip_resets=3, close_misses=2)
    update_derived(snap)
    assert snap.double_tap_goal_percentage == 25.0
    assert snap.flip_reset_goal_percentage == 50.0
    assert snap.average_flip_resets_per_attempt == 0.3
    assert snap.close_miss_percentage == 20.0


def test_one_goal_in_thirty_two_attempts(updater):
    start_attempt(updater)
    updater.process_goal()
    updater.process_shot_reset()
    for _ in range(31):
        start_attempt(updater)
        updater.process_shot_reset()

    snap = updater.snapshot
    assert (snap.attempts, snap.goals) == (32, 1)
    assert snap.success_percentage == 3.13
    assert snap.peak_success_percentage == 100.0


def test_average_flip_resets_rounds_halves_up():
    snap = StatSnapshot(attempts=8, total_flip_resets=1)
    update_derived(snap)
    assert snap.average_flip_resets_per_attempt == 0.13
