from __future__ import annotations

import logging
from typing import Any, Optional

from goalcounter.events import event_types
from goalcounter.events.session_context import SessionContext
from goalcounter.host import EventHub, GameState
from goalcounter.stats.stat_updater import IStatUpdater

logger = logging.getLogger(__name__)


class TrainingStateMachine:
    """
    Finite State Machine that turns raw custom-training events into semantic stat events.

    Why this exists:
    - The game fires "goal" and "round changed" as separate signals, sometimes
      reordered, and replays fire the goal event again.
    - We need exactly one goal-or-miss decision per attempt.

    States:
    - NOT_IN_CUSTOM_TRAINING: initial state, nothing has been loaded yet.
    - RESETTING: a pack was (re)loaded; the automatic round change is expected next.
    - PREPARING_NEW_SHOT: a shot is loaded, waiting for the player to start the attempt.
    - ATTEMPT_IN_PROGRESS: the player is shooting; goal and touch events are latched.
    - PROCESSING_GOAL / PROCESSING_MISS: pass-through states while the updater runs.

    Key design choices:
    - A goal only sets a flag. The decision is committed when the round changes,
      so any number of duplicate goal events count once.
    - The round changed event is the single place where an attempt is closed.
    """

    NOT_IN_CUSTOM_TRAINING = "NotInCustomTraining"
    RESETTING = "Resetting"
    PREPARING_NEW_SHOT = "PreparingNewShot"
    ATTEMPT_IN_PROGRESS = "AttemptInProgress"
    PROCESSING_GOAL = "ProcessingGoal"
    PROCESSING_MISS = "ProcessingMiss"

    def __init__(self, stat_updater: IStatUpdater, context: SessionContext):
        self.stat_updater = stat_updater
        self.context = context
        self.state = self.NOT_IN_CUSTOM_TRAINING

    # -----------------------------
    # Host wiring
    # -----------------------------
    def hook_to_events(self, events: EventHub, game: GameState) -> None:
        """
        Subscribe to the raw game events.

        The training pack load event is hooked by the owner (see plugin.py), since
        it also drives history loading.
        """

        def on_hit_goal(_name: str, _caller: Optional[Any]) -> None:
            if not game.is_in_custom_training():
                return
            speed = game.get_ball_speed()
            if speed is None:
                return
            self.process_on_hit_goal(speed)

        def on_car_touch(_name: str, _caller: Optional[Any]) -> None:
            if not game.is_in_custom_training():
                return
            self.process_on_car_touch()

        def on_shot_attempt(_name: str, _caller: Optional[Any]) -> None:
            if not game.is_in_custom_training():
                return
            self.process_training_shot_attempt()

        def on_round_changed(_name: str, caller: Optional[Any]) -> None:
            if not game.is_in_custom_training():
                return
            self.process_event_round_changed(game.get_active_round_index(caller))

        def on_editor_destroyed(_name: str, caller: Optional[Any]) -> None:
            # No custom training guard: the map is being unloaded at this point
            self.process_training_editor_destroyed(game.get_active_round_index(caller))

        events.subscribe(event_types.ON_HIT_GOAL, on_hit_goal)
        events.subscribe(event_types.ON_CAR_TOUCH, on_car_touch)
        events.subscribe(event_types.TRAINING_SHOT_ATTEMPT, on_shot_attempt)
        events.subscribe(event_types.EVENT_ROUND_CHANGED, on_round_changed)
        events.subscribe(event_types.TRAINING_EDITOR_DESTROYED, on_editor_destroyed)

    # -----------------------------
    # Transitions
    # -----------------------------
    def process_on_training_mode_loaded(self, total_rounds: int) -> None:
        # Whatever we were doing before does not matter, everything gets reset
        self._set_state(self.RESETTING)
        self.context.reset(total_rounds)
        self.stat_updater.handle_training_pack_load(self.context.total_rounds)

    def process_event_round_changed(self, new_round_index: int) -> None:
        if self.state == self.RESETTING:
            # Automatic event after loading a training pack
            self._set_state(self.PREPARING_NEW_SHOT)

        elif self.state == self.PREPARING_NEW_SHOT:
            if self.context.current_round_index == new_round_index:
                # Reset pressed before the attempt started; no recovery is defined
                logger.warning(
                    "Detected an unexpected shot reset before starting an attempt (round %d)",
                    new_round_index,
                )

        elif self.state == self.ATTEMPT_IN_PROGRESS:
            if self.context.goal_scored_in_current_attempt:
                self._set_state(self.PROCESSING_GOAL)
                self.stat_updater.process_goal()
            else:
                self._set_state(self.PROCESSING_MISS)
                self.stat_updater.process_shot_reset()

            self.stat_updater.update_data()
            self._set_state(self.PREPARING_NEW_SHOT)

        else:
            # e.g. round changes before the first pack load
            logger.debug("Ignoring round change while in %s", self.state)
            return

        self.context.current_round_index = int(new_round_index)

    def process_training_editor_destroyed(self, new_round_index: int) -> None:
        # Finish the current attempt if there is one, otherwise nothing to close
        if self.state == self.ATTEMPT_IN_PROGRESS:
            self.process_event_round_changed(new_round_index)

    def process_training_shot_attempt(self) -> None:
        if self.state not in (self.PREPARING_NEW_SHOT, self.RESETTING):
            logger.debug("Ignoring shot attempt event while in %s", self.state)
            return

        self._set_state(self.ATTEMPT_IN_PROGRESS)
        self.context.reset_attempt()
        self.stat_updater.process_new_attempt()

    def process_on_car_touch(self) -> None:
        if self.state != self.ATTEMPT_IN_PROGRESS:
            return
        if not self.context.ball_touched_in_current_attempt:
            self.context.ball_touched_in_current_attempt = True
            self.stat_updater.process_initial_ball_hit()
        # else: further touches, or touches during the goal replay

    def process_on_hit_goal(self, ball_speed: float) -> None:
        if self.state != self.ATTEMPT_IN_PROGRESS:
            return
        if not self.context.goal_scored_in_current_attempt:
            self.context.goal_scored_in_current_attempt = True
            self.context.ball_speed = float(ball_speed)
            # The goal is processed when the round changes
        # else: most likely the goal replay

    def _set_state(self, new_state: str) -> None:
        logger.debug("Transitioning from '%s' to '%s'", self.state, new_state)
        self.state = new_state
