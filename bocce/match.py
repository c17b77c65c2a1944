"""Match coordinator: rounds, turns and scoring for a two-team bocce match.

Rules implemented:
- Team A opens every round by throwing the target ball
- Team B throws the first regular ball once the target has settled
- A team out of balls hands every remaining throw to the other team
- A team that has not thrown yet this round throws next
- Otherwise the team whose closest ball is farther from the target throws
- The round is scored once both teams have thrown all their balls
- First team to reach win_score wins
"""

import logging
import random
from typing import Callable, Optional

from bocce.ai_player import AIPlayer
from bocce.config import MatchConfig
from bocce.controls import PlayerInput
from bocce.events import (
    BallSettled,
    EventBus,
    GameOver,
    RoundEnded,
    ScoreUpdated,
    StateChanged,
    TurnChanged,
)
from bocce.launcher import ThrowStepMachine
from bocce.scheduler import Scheduler
from bocce.scoring import ball_distances, closest_distance, score_round
from bocce.settle import SettleDetector
from bocce.types import Ball, Difficulty, GameState, MatchState, Team, Vec3
from bocce import court

logger = logging.getLogger(__name__)


def next_team_to_throw(
    thrown_counts: dict,
    closest: dict,
    balls_per_team: int,
    tie_team: Team = Team.B,
) -> Team:
    """Decide who throws next after a regular ball settles.

    Args:
        thrown_counts: Team -> balls thrown this round.
        closest: Team -> closest planar distance to the target (inf if none).
        balls_per_team: Per-round allotment.
        tie_team: Team that throws when both closest distances are equal.
    """
    for team in Team:
        if thrown_counts[team] >= balls_per_team:
            return team.other()
    for team in Team:
        if thrown_counts[team] == 0:
            return team
    if closest[Team.A] > closest[Team.B]:
        return Team.A
    if closest[Team.B] > closest[Team.A]:
        return Team.B
    return tie_team


class MatchCoordinator:
    """Owns the match state and sequences every throw of a match."""

    def __init__(
        self,
        physics,
        scheduler: Scheduler,
        config: Optional[MatchConfig] = None,
        events: Optional[EventBus] = None,
        ai_players: Optional[dict] = None,
        controls: Optional[PlayerInput] = None,
        rng=None,
    ):
        """Create a match.

        Args:
            physics: Physics collaborator (see bocce.physics.PhysicsWorld).
            scheduler: Simulated-time scheduler; settle detectors join its fixed tick.
            config: Match configuration.
            events: Bus that receives every notification.
            ai_players: Team -> AIPlayer. Missing AI teams get a Medium player.
            controls: Human input, read on frame ticks for human teams.
            rng: Random source shared by the launcher and default AI players.
        """
        self.physics = physics
        self.scheduler = scheduler
        self.config = config or MatchConfig()
        self.events = events or EventBus()
        self.controls = controls or PlayerInput()
        self.rng = rng or random

        self.ai_players: dict = dict(ai_players or {})
        for team in self.config.ai_teams:
            if team not in self.ai_players:
                self.ai_players[team] = AIPlayer(
                    f"CPU {team.value}", Difficulty.MEDIUM, team, self.config, self.rng,
                )

        self.target = Ball("target")
        self.team_balls = {
            team: [Ball(f"{team.value.lower()}{i}", team=team, index=i)
                   for i in range(self.config.balls_per_team)]
            for team in Team
        }

        self.launcher = ThrowStepMachine(physics, self.config, self.events, self.rng)
        self.detectors = {ball.name: SettleDetector(ball, physics, self.config) for ball in self.balls}
        self.launcher.detectors = self.detectors
        self.launcher.on_thrown = self.on_ball_thrown
        self.launcher.on_settled = self.on_ball_settled

        for detector in self.detectors.values():
            scheduler.subscribe_fixed(detector.fixed_tick)
        scheduler.subscribe_frame(self.update)

        self._state = MatchState()
        self.in_flight: Optional[Ball] = None
        self._pending: set = set()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def balls(self) -> list:
        return [self.target] + self.team_balls[Team.A] + self.team_balls[Team.B]

    @property
    def state(self) -> GameState:
        return self._state.state

    @property
    def current_team(self) -> Team:
        return self._state.current_team

    @property
    def scores(self) -> dict:
        return dict(self._state.scores)

    @property
    def round_number(self) -> int:
        return self._state.round_number

    @property
    def winner(self) -> Optional[Team]:
        return self._state.winner

    @property
    def history(self) -> list:
        return list(self._state.history)

    def snapshot(self) -> MatchState:
        return self._state.copy()

    def is_ai(self, team: Team) -> bool:
        return team in self.config.ai_teams

    def throw_origin(self, ball: Ball) -> Vec3:
        radius = court.TARGET_RADIUS if ball.is_target else court.BALL_RADIUS
        return court.throw_position(radius)

    # ------------------------------------------------------------------
    # External requests
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Begin a match from WAITING_TO_START."""
        if self.state is not GameState.WAITING_TO_START:
            logger.warning("start() ignored in state %s", self.state.value)
            return False
        s = self._state
        s.scores = {Team.A: 0, Team.B: 0}
        s.round_number = 1
        s.winner = None
        s.history = []
        self._emit_scores()
        self._start_round()
        return True

    def restart(self) -> bool:
        """Return a finished match to WAITING_TO_START and play again."""
        if self.state is not GameState.GAME_OVER:
            logger.warning("restart() ignored in state %s", self.state.value)
            return False
        self._set_state(GameState.WAITING_TO_START)
        return self.start()

    def update(self, dt: float) -> None:
        """Frame tick: feed human input to the launcher during a human team's throw."""
        human_turn = (
            self.state in (GameState.THROWING_TARGET, GameState.AIMING)
            and not self.is_ai(self.current_team)
            and self.launcher.armed
        )
        if not human_turn:
            # Presses outside the human's own throw are dropped
            self.controls.consume_confirm()
            return
        self.launcher.update(
            dt,
            lateral_axis=self.controls.lateral_axis,
            confirm=self.controls.consume_confirm(),
        )

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def _set_state(self, new_state: GameState) -> None:
        self._state.state = new_state
        logger.debug("State -> %s", new_state.value)
        self.events.emit(StateChanged(new_state))

        handler = {
            GameState.THROWING_TARGET: self._enter_throwing_target,
            GameState.AIMING: self._enter_aiming,
            GameState.SCORING: self._enter_scoring,
            GameState.ROUND_OVER: self._enter_round_over,
            GameState.GAME_OVER: self._enter_game_over,
        }.get(new_state)
        if handler is not None:
            handler()

    def _schedule(self, key: str, delay: float, callback: Callable[[], None]) -> bool:
        """Schedule a continuation, at most one per key."""
        if key in self._pending:
            logger.warning("Continuation %r already pending; request dropped", key)
            return False
        self._pending.add(key)

        def fire():
            self._pending.discard(key)
            callback()

        self.scheduler.after(delay, fire)
        return True

    def _start_round(self) -> None:
        s = self._state
        s.thrown_counts = {Team.A: 0, Team.B: 0}
        s.thrown_balls = {Team.A: [], Team.B: []}
        self.in_flight = None
        self._reset_balls()
        s.current_team = self.config.opening_team
        self._set_state(GameState.THROWING_TARGET)

    def _reset_balls(self) -> None:
        for ball in self.balls:
            ball.thrown = False
            ball.settled = False
            self.detectors[ball.name].reset()
            if not self.physics.has_body(ball):
                logger.warning("Ball %s has no physics body; not reset", ball.name)
                continue
            self.physics.set_kinematic(ball, True)
            self.physics.teleport(ball, court.HIDDEN_POSITION)

    def _arm(self, ball: Ball, is_target_throw: bool) -> None:
        if self.physics.has_body(ball):
            self.physics.teleport(ball, self.throw_origin(ball))
        self.launcher.arm(ball, is_target_throw)
        self.events.emit(TurnChanged(self.current_team))
        if self.is_ai(self.current_team):
            self._schedule("ai_think", self.config.ai_thinking_delay, self._ai_throw)

    def _enter_throwing_target(self) -> None:
        self._arm(self.target, is_target_throw=True)

    def _enter_aiming(self) -> None:
        ball = self._next_ball()
        if ball is None:
            self._set_state(GameState.SCORING)
            return
        self._arm(ball, is_target_throw=False)

    def _next_ball(self) -> Optional[Ball]:
        team = self.current_team
        count = self._state.thrown_counts[team]
        if count < self.config.balls_per_team:
            return self.team_balls[team][count]
        return None

    def _ai_throw(self) -> None:
        if self.state not in (GameState.THROWING_TARGET, GameState.AIMING) or not self.launcher.armed:
            logger.warning("AI turn fired in state %s with nothing armed", self.state.value)
            return
        ai = self.ai_players[self.current_team]
        origin = self.launcher.origin
        if self.state is GameState.THROWING_TARGET:
            command = ai.decide_target_throw(origin, self.launcher.power_range)
        else:
            if not self.physics.has_body(self.target):
                logger.warning("Target has no physics body; AI throws blind")
                target_pos = origin
            else:
                target_pos = self.physics.get_position(self.target)
            command = ai.decide(origin, target_pos, self.launcher.power_range)
        self.launcher.throw_ai(command.power, command.angle)

    def on_ball_thrown(self, ball: Ball) -> None:
        if self.state not in (GameState.THROWING_TARGET, GameState.AIMING):
            logger.warning("Throw of %s ignored in state %s", ball.name, self.state.value)
            return
        self.in_flight = ball
        self._set_state(GameState.BALL_IN_MOTION)

    def on_ball_settled(self, ball: Ball) -> None:
        if self.state is not GameState.BALL_IN_MOTION or ball is not self.in_flight:
            logger.warning("Settle of %s ignored in state %s", ball.name, self.state.value)
            return
        self.in_flight = None
        self.events.emit(BallSettled(ball))

        s = self._state
        if ball.is_target:
            s.current_team = self.config.opening_team.other()
            self._set_state(GameState.AIMING)
            return

        s.thrown_balls[s.current_team].append(ball)
        s.thrown_counts[s.current_team] += 1

        per_team = self.config.balls_per_team
        if all(s.thrown_counts[team] >= per_team for team in Team):
            self._set_state(GameState.SCORING)
            return

        s.current_team = next_team_to_throw(
            s.thrown_counts,
            self.closest_distances(),
            per_team,
            self.config.closest_tie_next_team,
        )
        self._set_state(GameState.AIMING)

    def _positions(self, balls: list) -> list:
        return [self.physics.get_position(b) for b in balls if self.physics.has_body(b)]

    def closest_distances(self) -> dict:
        """Team -> closest planar distance of its thrown balls to the target."""
        if not self.physics.has_body(self.target):
            return {team: float("inf") for team in Team}
        target = self.physics.get_position(self.target)
        return {
            team: closest_distance(self._positions(self._state.thrown_balls[team]), target)
            for team in Team
        }

    def standings(self) -> list:
        """(ball, planar distance) for every thrown ball this round, closest first."""
        if not self.physics.has_body(self.target):
            return []
        s = self._state
        balls = [b for team in Team for b in s.thrown_balls[team] if self.physics.has_body(b)]
        ranked = ball_distances(self._positions(balls), self.physics.get_position(self.target))
        return [(balls[i], distance) for i, distance in ranked]

    def _enter_scoring(self) -> None:
        if not self.physics.has_body(self.target):
            logger.error("Cannot score round %d: target has no physics body", self.round_number)
            return

        s = self._state
        thrown = {team: self._positions(s.thrown_balls[team]) for team in Team}
        result = score_round(
            self.physics.get_position(self.target),
            thrown,
            tie_team=self.config.scoring_tie_team,
            round_number=s.round_number,
        )
        s.scores[result.team] += result.points
        s.history.append(result)
        logger.info("Round %d: Team %s scores %d (%d-%d)", s.round_number, result.team.value,
                    result.points, s.scores[Team.A], s.scores[Team.B])
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Standings: %s", ", ".join(
                f"{ball.name} {distance:.2f}m" for ball, distance in self.standings()))

        self._emit_scores()
        self.events.emit(RoundEnded(result.team, result.points))

        if any(score >= self.config.win_score for score in s.scores.values()):
            next_state = GameState.GAME_OVER
        else:
            next_state = GameState.ROUND_OVER
        self._schedule("scoring_display", self.config.scoring_display_delay,
                       lambda: self._set_state(next_state))

    def _enter_round_over(self) -> None:
        self._schedule("round_over", self.config.round_over_delay, self._next_round)

    def _next_round(self) -> None:
        self._state.round_number += 1
        self._start_round()

    def _enter_game_over(self) -> None:
        s = self._state
        s.winner = Team.A if s.scores[Team.A] >= self.config.win_score else Team.B
        logger.info("Game over: Team %s wins %d-%d", s.winner.value, s.scores[Team.A], s.scores[Team.B])
        self.events.emit(GameOver(s.winner))

    def _emit_scores(self) -> None:
        self.events.emit(ScoreUpdated(self._state.scores[Team.A], self._state.scores[Team.B]))
