from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from tqdm import tqdm

from goalcounter import config
from goalcounter.events import event_types
from goalcounter.events.event_types import RawEvent
from goalcounter.host import EventDispatcher, ScriptedGameState
from goalcounter.plugin import GoalPercentageCounter
from goalcounter.stats.player_stats import ShotStats, StatSnapshot
from goalcounter.storage.stat_file_reader import StatFileReader
from goalcounter.track.shot_distribution import ShotDistributionTracker
from goalcounter.utils.logger import configure_logging

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Command line tools around the statistics core:
# - history: inspect the saved sessions of a training pack
# - replay:  feed a recorded event log through the plugin, e.g. to debug
#            the state machine without the game
# ---------------------------------------------------------------------


def format_snapshot(snap: StatSnapshot) -> List[str]:
    last_shots = "".join("1" if s else "0" for s in snap.last_50_shots)
    return [
        f"Attempts:             {snap.attempts}",
        f"Goals:                {snap.goals}",
        f"Current Goal Streak:  {snap.goal_streak}",
        f"Current Miss Streak:  {snap.miss_streak}",
        f"Total Success Rate:   {snap.success_percentage:.2f}%",
        f"Longest Goal Streak:  {snap.longest_goal_streak}",
        f"Longest Miss Streak:  {snap.longest_miss_streak}",
        f"Peak Success Rate:    {snap.peak_success_percentage:.2f}% (shot {snap.peak_shot_number})",
        f"Initial Hit Rate:     {snap.initial_hit_percentage:.2f}%",
        f"Last Shots:           {last_shots or '-'}",
    ]


# -----------------------------
# replay
# -----------------------------
def parse_event_log(lines: Iterable[str]) -> List[Tuple[int, List[str]]]:
    """Split an event log into (line_number, tokens); blank lines and '#' comments are skipped."""
    steps = []
    for line_no, line in enumerate(lines, start=1):
        text = line.split("#", 1)[0].strip()
        if text:
            steps.append((line_no, text.split()))
    return steps


def replay_event_log(
    steps: List[Tuple[int, List[str]]],
    plugin: GoalPercentageCounter,
    game: ScriptedGameState,
    hub: EventDispatcher,
) -> List[RawEvent]:
    """
    Apply an event log to a plugin wired to `hub` and `game`.

    Commands:
      pack_loaded <rounds> [pack_code] | round_changed <index> | attempt | touch
      goal [speed] | destroyed <index> | enter | leave | reset | enable | disable
    """
    fired: List[RawEvent] = []

    def fire(name: str) -> None:
        hub.fire(name)
        fired.append(RawEvent(name))

    for line_no, tokens in steps:
        cmd, args = tokens[0].lower(), tokens[1:]
        try:
            if cmd == "pack_loaded":
                game.total_rounds = int(args[0])
                game.training_pack_code = args[1] if len(args) > 1 else None
                game.active_round_index = 0
                fire(event_types.TRAINING_PACK_LOADED)
            elif cmd == "round_changed":
                game.active_round_index = int(args[0])
                fire(event_types.EVENT_ROUND_CHANGED)
            elif cmd == "destroyed":
                game.active_round_index = int(args[0]) if args else game.active_round_index
                fire(event_types.TRAINING_EDITOR_DESTROYED)
            elif cmd == "attempt":
                fire(event_types.TRAINING_SHOT_ATTEMPT)
            elif cmd == "touch":
                fire(event_types.ON_CAR_TOUCH)
            elif cmd == "goal":
                game.ball_speed = float(args[0]) if args else 0.0
                fire(event_types.ON_HIT_GOAL)
            elif cmd == "enter":
                game.in_custom_training = True
            elif cmd == "leave":
                game.in_custom_training = False
            elif cmd == "reset":
                plugin.reset_statistics()
            elif cmd == "enable":
                plugin.set_enabled(True)
            elif cmd == "disable":
                plugin.set_enabled(False)
            else:
                raise ValueError(f"unknown command {cmd!r}")
        except (IndexError, ValueError) as exc:
            raise ValueError(f"line {line_no}: {exc}") from exc
    return fired


def run_replay(args: argparse.Namespace) -> int:
    log_path = Path(args.event_log)
    try:
        lines = log_path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise FileNotFoundError(f"Cannot open event log: {log_path}") from exc

    hub = EventDispatcher()
    game = ScriptedGameState()
    reader = StatFileReader(data_dir=args.data_dir) if args.with_history else None
    plugin = GoalPercentageCounter(hub, game, reader=reader, enabled=True)
    plugin.on_load()

    fired = replay_event_log(parse_event_log(lines), plugin, game, hub)

    print(f"Replayed {len(fired)} events from {log_path}")
    print(f"Final state: {plugin.state_machine.state}")
    for line in format_snapshot(plugin.snapshot):
        print(line)

    if args.per_shot:
        for idx, snap in enumerate(plugin.shot_stats.per_shot):
            print(f"\n--- Shot {idx + 1} ---")
            for line in format_snapshot(snap):
                print(line)

    diff = plugin.compare_to_previous()
    if diff is not None:
        print(f"\n--- Compared to {plugin.previous_stats_path} ---")
        print(f"Goals: {diff.goals:+d}  Success rate: {diff.success_percentage:+.2f}%")
    return 0


# -----------------------------
# history
# -----------------------------
def run_history(args: argparse.Namespace) -> int:
    tracker = ShotDistributionTracker()
    reader = StatFileReader(tracker, data_dir=args.data_dir)

    paths = reader.get_available_resource_paths(args.pack_code)
    if not paths:
        print(f"No stat files found for training pack {args.pack_code} in {reader.data_dir}")
        return 0

    sessions: List[Tuple[str, int, Optional[ShotStats]]] = []
    for path in tqdm(paths, desc="Reading sessions"):
        peeked = reader.peek_attempt_amount(path)
        stats = reader.read_stats(path) if peeked > 0 or not args.skip_empty else None
        sessions.append((path, peeked, stats))

    valid = [(p, s) for p, _, s in sessions if s is not None]
    print(f"Training pack {args.pack_code}: {len(paths)} files, {len(valid)} readable")
    for path, peeked, stats in sessions:
        name = Path(path).name
        if stats is None:
            print(f"  {name:40s} attempts={peeked:4d}  (unreadable)")
        else:
            snap = stats.all_shots
            print(
                f"  {name:40s} attempts={snap.attempts:4d} goals={snap.goals:4d} "
                f"success={snap.success_percentage:6.2f}%"
            )

    if valid:
        latest_path, latest = valid[0]
        print(f"\n--- Most recent session ({Path(latest_path).name}) ---")
        for line in format_snapshot(latest.all_shots):
            print(line)

    if len(valid) >= 2:
        (_, latest), (prev_path, previous) = valid[0], valid[1]
        diff = latest.all_shots.differences(previous.all_shots)
        print(f"\n--- Compared to {Path(prev_path).name} ---")
        print(f"Goals:               {diff.goals:+d}")
        print(f"Success rate:        {diff.success_percentage:+.2f}%")
        print(f"Longest goal streak: {diff.longest_goal_streak:+d}")
        print(f"Longest miss streak: {diff.longest_miss_streak:+d}")
        print(f"Initial hits:        {diff.initial_hits:+d}")

    if args.heatmap:
        # imported lazily: OpenCV is only needed for image output
        from goalcounter.video.draw import write_heatmap

        out = write_heatmap(args.heatmap, tracker, cell_px=args.cell_px)
        print(f"\nSaved heatmap ({len(tracker.impact_locations)} impacts): {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="goalcounter", description="Custom training goal statistics")
    parser.add_argument("--log-level", default=None, help=f"default: {config.LOG_LEVEL}")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--data-dir", default=config.DATA_DIR, help="folder with one subfolder per training pack")
    sub = parser.add_subparsers(dest="command", required=True)

    history = sub.add_parser("history", help="summarize the saved sessions of a training pack")
    history.add_argument("pack_code")
    history.add_argument("--heatmap", default=None, help="write the impact heatmap of all sessions to this image")
    history.add_argument("--cell-px", type=int, default=16)
    history.add_argument("--skip-empty", action="store_true", help="do not parse files with zero attempts")
    history.set_defaults(func=run_history)

    replay = sub.add_parser("replay", help="replay a recorded event log")
    replay.add_argument("event_log")
    replay.add_argument("--per-shot", action="store_true")
    replay.add_argument("--with-history", action="store_true", help="load previous sessions on pack load")
    replay.set_defaults(func=run_replay)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        return args.func(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
