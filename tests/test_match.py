"""Tests for the match coordinator: turn order, rounds, scoring and game over.

The coordinator runs against a scripted physics stand-in: every thrown ball
instantly lands at the next position queued for its team and stays there,
so whole matches are deterministic.
"""

import random

import pytest

from bocce.config import MatchConfig
from bocce.events import (
    BallSettled,
    BallThrown,
    EventBus,
    EventLog,
    GameOver,
    RoundEnded,
    StateChanged,
    TurnChanged,
)
from bocce.match import MatchCoordinator, next_team_to_throw
from bocce.scheduler import Scheduler
from bocce.types import GameState, Team, Vec3

TARGET = Vec3(0.0, 0.06, 5.0)
INF = float("inf")


class ScriptedPhysics:
    """Physics collaborator whose thrown balls land where the test says."""

    def __init__(self, landings):
        self.landings = {key: list(spots) for key, spots in landings.items()}
        self.positions = {}
        self.kinematic = {}

    def add_balls(self, balls):
        for ball in balls:
            self.positions[ball.name] = Vec3(0.0, -10.0, 0.0)
            self.kinematic[ball.name] = True

    def has_body(self, ball):
        return ball.name in self.positions

    def get_position(self, ball):
        return self.positions[ball.name].copy()

    def get_linear_speed(self, ball):
        return 0.0

    def get_angular_speed(self, ball):
        return 0.0

    def set_kinematic(self, ball, kinematic):
        self.kinematic[ball.name] = kinematic

    def apply_impulse(self, ball, impulse):
        key = "target" if ball.is_target else ball.team
        self.positions[ball.name] = self.landings[key].pop(0)

    def teleport(self, ball, position):
        self.positions[ball.name] = position.copy()


def _spot(distance):
    return Vec3(0.0, 0.11, TARGET.z + distance)


def _build(landings, config=None, controls=None):
    config = config or MatchConfig(win_score=12, balls_per_team=7, ai_teams={Team.A, Team.B})
    physics = ScriptedPhysics(landings)
    scheduler = Scheduler()
    bus = EventBus()
    log = EventLog(bus)
    match = MatchCoordinator(
        physics, scheduler, config=config, events=bus, controls=controls, rng=random.Random(4),
    )
    physics.add_balls(match.balls)
    return match, physics, scheduler, log


def _two_round_landings():
    round_1_a = [_spot(1.0 + 0.1 * i) for i in range(7)]
    round_2_a = [_spot(1.0 + 0.1 * i) for i in range(6)] + [_spot(4.0)]
    return {
        "target": [TARGET, TARGET],
        Team.A: round_1_a + round_2_a,
        Team.B: [_spot(-3.0)] * 14,
    }


# ---------------------------------------------------------------------------
# next_team_to_throw
# ---------------------------------------------------------------------------

def test_team_out_of_balls_hands_turn_over():
    counts = {Team.A: 4, Team.B: 2}
    assert next_team_to_throw(counts, {Team.A: 0.1, Team.B: 5.0}, 4) is Team.B


def test_team_that_has_not_thrown_goes_next():
    counts = {Team.A: 0, Team.B: 1}
    assert next_team_to_throw(counts, {Team.A: INF, Team.B: 1.0}, 4) is Team.A


def test_farther_team_throws_next():
    counts = {Team.A: 1, Team.B: 1}
    assert next_team_to_throw(counts, {Team.A: 3.0, Team.B: 1.0}, 4) is Team.A
    assert next_team_to_throw(counts, {Team.A: 1.0, Team.B: 3.0}, 4) is Team.B


def test_equal_distance_goes_to_team_b():
    counts = {Team.A: 2, Team.B: 2}
    assert next_team_to_throw(counts, {Team.A: 2.0, Team.B: 2.0}, 4) is Team.B
    assert next_team_to_throw(counts, {Team.A: 2.0, Team.B: 2.0}, 4, Team.A) is Team.A


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

def test_start_opens_round_with_target_throw():
    match, physics, scheduler, log = _build(_two_round_landings())
    assert match.state is GameState.WAITING_TO_START
    assert match.start()
    assert match.state is GameState.THROWING_TARGET
    assert match.current_team is Team.A
    assert match.launcher.armed
    assert match.launcher.ball is match.target
    assert log.of_type(TurnChanged)[0].team is Team.A


def test_start_only_once():
    match, *_ = _build(_two_round_landings())
    match.start()
    assert not match.start()
    assert not match.restart()


def test_team_b_throws_first_ball_after_target():
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(10.0, 0.02, until=lambda: match.state is GameState.AIMING)
    assert match.state is GameState.AIMING
    assert match.current_team is Team.B
    assert log.of_type(BallSettled)[0].ball is match.target
    assert physics.get_position(match.target) == TARGET


def test_ai_throws_once_per_turn():
    """Every armed ball is thrown exactly once, one ball in motion at a time."""
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(60.0, 0.02, until=lambda: match.state is GameState.SCORING)

    thrown = [e.ball.name for e in log.of_type(BallThrown)]
    assert len(thrown) == 15
    assert len(set(thrown)) == 15

    states = [e.state for e in log.of_type(StateChanged)]
    in_motion = states.count(GameState.BALL_IN_MOTION)
    assert in_motion == 15


def test_round_one_turn_order():
    """B opens, A answers and leads, B empties its hand, A throws out."""
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(60.0, 0.02, until=lambda: match.state is GameState.SCORING)

    teams = [e.ball.team for e in log.of_type(BallThrown) if not e.ball.is_target]
    assert teams == [Team.B, Team.A] + [Team.B] * 6 + [Team.A] * 6


def test_match_plays_to_win_score():
    """A takes 7 then 6: 13 points ends the match with A as winner."""
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    finished = scheduler.run(300.0, 0.02, until=lambda: match.state is GameState.GAME_OVER)

    assert finished
    assert match.winner is Team.A
    assert match.scores == {Team.A: 13, Team.B: 0}
    assert [(r.team, r.points) for r in match.history] == [(Team.A, 7), (Team.A, 6)]
    assert [(e.team, e.points) for e in log.of_type(RoundEnded)] == [(Team.A, 7), (Team.A, 6)]
    assert [e.winner for e in log.of_type(GameOver)] == [Team.A]
    assert match.round_number == 2


def test_round_over_starts_next_round():
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(100.0, 0.02, until=lambda: match.state is GameState.ROUND_OVER)
    assert match.scores[Team.A] == 7

    scheduler.run(10.0, 0.02, until=lambda: match.state is GameState.THROWING_TARGET)
    assert match.round_number == 2
    assert match.current_team is Team.A
    assert all(not ball.thrown for ball in match.balls)
    assert physics.get_position(match.team_balls[Team.A][0]) == Vec3(0.0, -10.0, 0.0)


def test_scoring_waits_for_display_delay():
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(60.0, 0.02, until=lambda: match.state is GameState.SCORING)
    scheduler.run(match.config.scoring_display_delay - 0.1, 0.02)
    assert match.state is GameState.SCORING
    scheduler.run(0.2, 0.02)
    assert match.state is GameState.ROUND_OVER


def test_nothing_happens_after_game_over():
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(300.0, 0.02, until=lambda: match.state is GameState.GAME_OVER)
    count = len(log.events)
    scheduler.run(30.0, 0.02)
    assert match.state is GameState.GAME_OVER
    assert len(log.events) == count
    assert scheduler.pending == 0


def test_restart_after_game_over():
    landings = _two_round_landings()
    landings["target"] = [TARGET] * 3
    landings[Team.A] = landings[Team.A] + [_spot(1.0)] * 7
    landings[Team.B] = landings[Team.B] + [_spot(-3.0)] * 7
    match, physics, scheduler, log = _build(landings)
    match.start()
    scheduler.run(300.0, 0.02, until=lambda: match.state is GameState.GAME_OVER)

    assert match.restart()
    assert match.state is GameState.THROWING_TARGET
    assert match.scores == {Team.A: 0, Team.B: 0}
    assert match.winner is None
    assert match.history == []
    assert match.round_number == 1


def test_snapshot_is_independent():
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    snap = match.snapshot()
    snap.scores[Team.A] = 99
    snap.history.append("x")
    assert match.scores[Team.A] == 0
    assert match.history == []


def test_team_b_can_win():
    """Mirror of the A scenario with B landing closest."""
    landings = {
        "target": [TARGET] * 3,
        Team.A: [_spot(-3.0)] * 21,
        Team.B: [_spot(0.5)] * 21,
    }
    config = MatchConfig(win_score=10, balls_per_team=7, ai_teams={Team.A, Team.B})
    match, physics, scheduler, log = _build(landings, config)
    match.start()
    scheduler.run(300.0, 0.02, until=lambda: match.state is GameState.GAME_OVER)
    assert match.winner is Team.B
    assert match.scores == {Team.A: 0, Team.B: 14}


def test_human_team_drives_throw_with_confirm():
    """A human team walks through Position, Aim and Power with confirm presses."""
    from bocce.controls import PlayerInput

    controls = PlayerInput()
    landings = {"target": [TARGET], Team.A: [], Team.B: [_spot(2.0)]}
    config = MatchConfig(win_score=12, balls_per_team=4, ai_teams={Team.B})
    match, physics, scheduler, log = _build(landings, config, controls)
    match.start()

    scheduler.run(5.0, 0.02)
    assert match.state is GameState.THROWING_TARGET  # waits for the human

    for _ in range(3):
        controls.press_confirm()
        scheduler.tick(0.02)
    assert match.state is GameState.BALL_IN_MOTION
    assert log.of_type(BallThrown)[0].ball is match.target

    scheduler.run(5.0, 0.02, until=lambda: match.state is GameState.AIMING)
    assert match.current_team is Team.B
    scheduler.run(5.0, 0.02, until=lambda: match.current_team is Team.A)
    assert match.state is GameState.AIMING
    assert match.launcher.ball is match.team_balls[Team.A][0]


def test_ai_team_without_player_gets_default():
    match, *_ = _build(_two_round_landings())
    assert set(match.ai_players) == {Team.A, Team.B}
    assert match.ai_players[Team.B].label == "Medium"


def test_config_validation():
    with pytest.raises(ValueError):
        MatchConfig(win_score=0)
    with pytest.raises(ValueError):
        MatchConfig(sweet_spot=(0.9, 0.5))
    with pytest.raises(ValueError):
        MatchConfig(aim_mode="wobble")


def test_confirm_pressed_outside_own_turn_is_dropped():
    """A press during the opponent's turn must not skip the human's Position step."""
    from bocce.controls import PlayerInput
    from bocce.types import ThrowStep

    controls = PlayerInput()
    landings = {"target": [TARGET], Team.A: [], Team.B: [_spot(2.0)]}
    config = MatchConfig(win_score=12, balls_per_team=4, ai_teams={Team.B})
    match, physics, scheduler, log = _build(landings, config, controls)
    match.start()
    for _ in range(3):
        controls.press_confirm()
        scheduler.tick(0.02)
    scheduler.run(5.0, 0.02, until=lambda: match.state is GameState.AIMING)
    assert match.current_team is Team.B

    controls.press_confirm()  # while the AI is thinking
    scheduler.tick(0.02)
    scheduler.run(5.0, 0.02, until=lambda: match.state is GameState.BALL_IN_MOTION)
    controls.press_confirm()  # while the AI ball rolls
    scheduler.tick(0.02)

    scheduler.run(5.0, 0.02, until=lambda: match.current_team is Team.A)
    scheduler.tick(0.02)
    assert match.state is GameState.AIMING
    assert match.launcher.step is ThrowStep.POSITION


def test_continuation_key_is_single_slot():
    match, physics, scheduler, log = _build(_two_round_landings())
    fired = []
    assert match._schedule("round_over", 1.0, lambda: fired.append("first"))
    assert not match._schedule("round_over", 1.0, lambda: fired.append("second"))
    assert scheduler.pending == 1

    scheduler.run(2.0, 0.02)
    assert fired == ["first"]

    # Once fired, the key is free again
    assert match._schedule("round_over", 1.0, lambda: fired.append("third"))
    scheduler.run(2.0, 0.02)
    assert fired == ["first", "third"]


def test_standings_rank_thrown_balls():
    match, physics, scheduler, log = _build(_two_round_landings())
    match.start()
    scheduler.run(60.0, 0.02, until=lambda: match.state is GameState.SCORING)

    ranked = match.standings()
    assert len(ranked) == 14
    assert ranked[0][0] is match.team_balls[Team.A][0]
    assert ranked[0][1] == pytest.approx(1.0)
    distances = [d for _, d in ranked]
    assert distances == sorted(distances)
    assert all(ball.team is Team.B for ball, _ in ranked[-7:])
