"""Tests for the event bus and event log."""

from bocce.events import EventBus, EventLog, GameOver, RoundEnded, ScoreUpdated
from bocce.types import Team


def test_subscribe_receives_matching_events_only():
    bus = EventBus()
    rounds = []
    bus.subscribe(RoundEnded, rounds.append)
    bus.emit(RoundEnded(Team.A, 3))
    bus.emit(GameOver(Team.A))
    assert rounds == [RoundEnded(Team.A, 3)]


def test_typed_handlers_before_global():
    bus = EventBus()
    order = []
    bus.subscribe_all(lambda e: order.append("all"))
    bus.subscribe(ScoreUpdated, lambda e: order.append("typed"))
    bus.emit(ScoreUpdated(1, 0))
    assert order == ["typed", "all"]


def test_unsubscribe():
    bus = EventBus()
    seen = []
    bus.subscribe(GameOver, seen.append)
    bus.unsubscribe(GameOver, seen.append)
    bus.emit(GameOver(Team.B))
    assert seen == []
    assert bus.handler_count(GameOver) == 0


def test_handler_count_and_clear():
    bus = EventBus()
    bus.subscribe(GameOver, lambda e: None)
    bus.subscribe(RoundEnded, lambda e: None)
    bus.subscribe_all(lambda e: None)
    assert bus.handler_count() == 3
    assert bus.handler_count(GameOver) == 1
    bus.clear()
    assert bus.handler_count() == 0


def test_event_log_filters_by_type():
    bus = EventBus()
    log = EventLog(bus)
    bus.emit(ScoreUpdated(0, 0))
    bus.emit(RoundEnded(Team.B, 2))
    bus.emit(ScoreUpdated(0, 2))
    assert len(log.events) == 3
    assert [e.team_b for e in log.of_type(ScoreUpdated)] == [0, 2]
