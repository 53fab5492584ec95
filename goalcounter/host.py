from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

EventHandler = Callable[[str, Optional[Any]], None]


class EventHub(Protocol):
    """Host event subscription: handlers are called serially with (event_name, caller)."""

    def subscribe(self, event_name: str, handler: EventHandler) -> None: ...


class GameState(Protocol):
    """Queries into the running game. `caller` is the opaque handle delivered with an event."""

    def is_in_custom_training(self) -> bool: ...

    def get_ball_speed(self) -> Optional[float]: ...

    def get_total_rounds(self, caller: Optional[Any]) -> int: ...

    def get_active_round_index(self, caller: Optional[Any]) -> int: ...

    def get_training_pack_code(self, caller: Optional[Any]) -> Optional[str]: ...


class EventDispatcher:
    """
    Minimal in-process EventHub.

    Handlers run synchronously in subscription order, which matches the
    host's "delivered serially" guarantee.
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)

    def fire(self, event_name: str, caller: Optional[Any] = None) -> int:
        """Deliver one event; returns the number of handlers that received it."""
        handlers = list(self._handlers.get(event_name, ()))
        for handler in handlers:
            handler(event_name, caller)
        return len(handlers)


@dataclass
class ScriptedGameState:
    """
    GameState driven by plain attributes.

    Used by the event-log replay and by tests: the script sets the attributes
    before firing the event that the game would fire.
    """
    in_custom_training: bool = True
    ball_speed: Optional[float] = 0.0
    total_rounds: int = 0
    active_round_index: int = 0
    training_pack_code: Optional[str] = None

    def is_in_custom_training(self) -> bool:
        return self.in_custom_training

    def get_ball_speed(self) -> Optional[float]:
        return self.ball_speed

    def get_total_rounds(self, caller: Optional[Any]) -> int:
        return self.total_rounds

    def get_active_round_index(self, caller: Optional[Any]) -> int:
        return self.active_round_index

    def get_training_pack_code(self, caller: Optional[Any]) -> Optional[str]:
        return self.training_pack_code
