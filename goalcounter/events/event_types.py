from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


# Raw event names delivered by the host. Handlers receive (event_name, caller).
ON_HIT_GOAL = "Function TAGame.Ball_TA.OnHitGoal"
ON_CAR_TOUCH = "Function TAGame.Ball_TA.OnCarTouch"
TRAINING_SHOT_ATTEMPT = "Function TAGame.TrainingEditorMetrics_TA.TrainingShotAttempt"
EVENT_ROUND_CHANGED = "Function TAGame.GameEvent_TrainingEditor_TA.EventRoundChanged"
TRAINING_EDITOR_DESTROYED = "Function TAGame.GameEvent_TrainingEditor_TA.Destroyed"
TRAINING_PACK_LOADED = "Function TAGame.GameEvent_TrainingEditor_TA.OnInit"


@dataclass
class RawEvent:
    """
    One low-level notification as delivered by the host.

    `caller` is an opaque handle (e.g. the training editor) which is only
    meaningful to the GameState collaborator.
    """
    name: str
    caller: Optional[Any] = None
