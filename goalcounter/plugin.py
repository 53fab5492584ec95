from __future__ import annotations

import logging
from typing import Any, Optional

from goalcounter import config
from goalcounter.events import event_types
from goalcounter.events.session_context import SessionContext
from goalcounter.events.training_fsm import TrainingStateMachine
from goalcounter.host import EventHandler, EventHub, GameState
from goalcounter.stats.player_stats import ShotStats, SnapshotDiff, StatSnapshot
from goalcounter.stats.stat_updater import StatUpdater
from goalcounter.storage.stat_file_reader import StatFileReader
from goalcounter.track.shot_distribution import ShotDistributionTracker

logger = logging.getLogger(__name__)


class _EnabledGate:
    """EventHub wrapper which drops events while the plugin is disabled."""

    def __init__(self, events: EventHub, plugin: GoalPercentageCounter):
        self._events = events
        self._plugin = plugin

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        def gated(name: str, caller: Optional[Any]) -> None:
            if not self._plugin.enabled:
                return
            handler(name, caller)

        self._events.subscribe(event_name, gated)


class GoalPercentageCounter:
    """
    Owner of one statistics session.

    Wires the host seams (EventHub, GameState) to the state machine and owns
    the objects they share:
    - SessionContext: round/attempt context
    - StatUpdater: the live ShotStats
    - ShotDistributionTracker + StatFileReader: history of the current pack

    Exposed to the host: `snapshot` (pull-based read for rendering),
    `reset_statistics()` and `on_training_pack_loaded()`.
    """

    def __init__(
        self,
        events: EventHub,
        game: GameState,
        reader: Optional[StatFileReader] = None,
        tracker: Optional[ShotDistributionTracker] = None,
        enabled: bool = config.PLUGIN_ENABLED,
    ):
        self.events = events
        self.game = game
        self.enabled = bool(enabled)

        self.context = SessionContext()
        self.stat_updater = StatUpdater(self.context)
        self.state_machine = TrainingStateMachine(self.stat_updater, self.context)

        self.tracker = tracker if tracker is not None else ShotDistributionTracker()
        if reader is not None and reader.shot_distribution_tracker is None:
            reader.shot_distribution_tracker = self.tracker
        self.reader = reader

        self.previous_stats: Optional[ShotStats] = None
        self.previous_stats_path: Optional[str] = None
        self._loaded = False

    # -----------------------------
    # Lifecycle
    # -----------------------------
    def on_load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        logger.info("Loaded GoalPercentageCounter (enabled=%s)", self.enabled)

        self.state_machine.hook_to_events(_EnabledGate(self.events, self), self.game)

        def on_pack_loaded(_name: str, caller: Optional[Any]) -> None:
            if not self.enabled:
                return
            self.on_training_pack_loaded(caller)

        self.events.subscribe(event_types.TRAINING_PACK_LOADED, on_pack_loaded)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        logger.info("GoalPercentageCounter %s", "enabled" if self.enabled else "disabled")

    # -----------------------------
    # Exposed capabilities
    # -----------------------------
    @property
    def snapshot(self) -> StatSnapshot:
        return self.stat_updater.snapshot

    @property
    def shot_stats(self) -> ShotStats:
        return self.stat_updater.stats

    def on_training_pack_loaded(self, caller: Optional[Any] = None) -> None:
        total_rounds = self.game.get_total_rounds(caller)
        self.state_machine.process_on_training_mode_loaded(total_rounds)
        self._load_history(self.game.get_training_pack_code(caller))

    def reset_statistics(self) -> bool:
        """User command. Allowed while disabled, but only inside custom training."""
        if not self.game.is_in_custom_training():
            return False
        self.stat_updater.process_manual_stat_reset()
        logger.info("Statistics were reset")
        return True

    def compare_to_previous(self) -> Optional[SnapshotDiff]:
        if self.previous_stats is None:
            return None
        return self.snapshot.differences(self.previous_stats.all_shots)

    # -----------------------------
    # History
    # -----------------------------
    def _load_history(self, training_pack_code: Optional[str]) -> None:
        self.tracker.reset()
        self.previous_stats = None
        self.previous_stats_path = None

        if self.reader is None or not training_pack_code:
            return

        latest = self.reader.read_latest_stats(training_pack_code)
        if latest is None:
            logger.info("No previous statistics for training pack %s", training_pack_code)
            return

        self.previous_stats_path, self.previous_stats = latest
        logger.info(
            "Restored previous statistics of %s from %s (%d attempts)",
            training_pack_code,
            self.previous_stats_path,
            self.previous_stats.all_shots.attempts,
        )
