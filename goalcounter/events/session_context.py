from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SessionContext:
    """
    Round/attempt context shared by the state machine and the stat updater.

    The state machine owns the per-attempt flags; the updater only reads the
    round index and ball speed, and consumes `is_first_spawn`.
    """

    current_round_index: int = -1
    total_rounds: int = 0

    # The first spawn after loading a pack closes no attempt
    is_first_spawn: bool = False

    goal_scored_in_current_attempt: bool = False
    ball_touched_in_current_attempt: bool = False

    # Ball speed observed at the last goal event
    ball_speed: float = 0.0

    def reset(self, total_rounds: int) -> None:
        """Start a fresh session for a newly loaded training pack."""
        self.current_round_index = -1
        self.total_rounds = max(0, int(total_rounds))
        self.is_first_spawn = True
        self.ball_speed = 0.0
        self.reset_attempt()

    def reset_attempt(self) -> None:
        self.goal_scored_in_current_attempt = False
        self.ball_touched_in_current_attempt = False
