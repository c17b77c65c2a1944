"""Match events and the bus that carries them to observers.

The core only emits; UI, audio and camera layers subscribe. Nothing an
observer returns is read back.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Optional

from bocce.types import Ball, GameState, Team, ThrowCommand, ThrowStep


@dataclass
class MatchEvent:
    """Base class for everything emitted on the bus."""


@dataclass
class StateChanged(MatchEvent):
    state: GameState


@dataclass
class TurnChanged(MatchEvent):
    team: Team


@dataclass
class ScoreUpdated(MatchEvent):
    team_a: int
    team_b: int


@dataclass
class RoundEnded(MatchEvent):
    team: Team
    points: int


@dataclass
class GameOver(MatchEvent):
    winner: Team


@dataclass
class ThrowArmed(MatchEvent):
    ball: Ball
    is_target_throw: bool
    power_min: float
    power_max: float
    sweet_spot_lo: float
    sweet_spot_hi: float


@dataclass
class ThrowStepChanged(MatchEvent):
    step: ThrowStep


@dataclass
class PowerChanged(MatchEvent):
    normalized: float  # 0-1 position on the power wave


@dataclass
class BallThrown(MatchEvent):
    ball: Ball
    command: ThrowCommand
    quality: str  # "accurate", "overpowered", "underpowered" or "ai"


@dataclass
class BallSettled(MatchEvent):
    ball: Ball


EventHandler = Callable[[MatchEvent], None]


class EventBus:
    """Pub/sub bus decoupling the match engine from its observers.

    Example:
        bus = EventBus()
        bus.subscribe(RoundEnded, lambda e: print(e.team, e.points))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)
        self._global_handlers: list[EventHandler] = []

    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: EventHandler) -> None:
        self._global_handlers.append(handler)

    def unsubscribe(self, event_type: type, handler: EventHandler) -> None:
        if handler in self._handlers[event_type]:
            self._handlers[event_type].remove(handler)

    def emit(self, event: MatchEvent) -> None:
        """Deliver an event once to each matching handler, type-specific handlers first."""
        for handler in list(self._handlers[type(event)]):
            handler(event)
        for handler in list(self._global_handlers):
            handler(event)

    def clear(self) -> None:
        self._handlers.clear()
        self._global_handlers.clear()

    def handler_count(self, event_type: Optional[type] = None) -> int:
        if event_type is None:
            total = sum(len(handlers) for handlers in self._handlers.values())
            return total + len(self._global_handlers)
        return len(self._handlers[event_type])


class EventLog:
    """Observer that records every event, for the runner and tests."""

    def __init__(self, bus: EventBus):
        self.events: list[MatchEvent] = []
        bus.subscribe_all(self.events.append)

    def of_type(self, event_type: type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]
