"""Head-less match simulation: two AI teams play a full match in simulated time."""

import random
from dataclasses import dataclass, field, replace
from typing import Optional

from bocce.ai_player import AIPlayer
from bocce.config import MatchConfig
from bocce.events import BallThrown, EventBus, EventLog
from bocce.launcher import ThrowStepMachine
from bocce.match import MatchCoordinator
from bocce.physics import PhysicsWorld
from bocce.scheduler import DEFAULT_FRAME_DT, Scheduler
from bocce.settle import SettleDetector
from bocce.types import Ball, Difficulty, GameState, MatchState, Team, Vec3
from bocce import court

# Safety limit on simulated match length (seconds)
MAX_MATCH_TIME = 3600.0


@dataclass
class GameResult:
    """Full match result with every round."""
    match: MatchState
    rounds: list          # list[RoundResult]
    players: dict         # Team -> AIPlayer
    duration: float
    completed: bool
    stats: dict = field(default_factory=dict)


def build_match(
    config: Optional[MatchConfig] = None,
    ai_players: Optional[dict] = None,
    rng=None,
) -> tuple:
    """Wire a coordinator to a fresh physics world, scheduler and event bus.

    Physics subscribes to the fixed tick before the settle detectors, so they
    always see the state after this tick's integration.
    """
    scheduler = Scheduler()
    world = PhysicsWorld()
    scheduler.subscribe_fixed(world.step)
    bus = EventBus()
    coordinator = MatchCoordinator(
        world, scheduler, config=config, events=bus, ai_players=ai_players, rng=rng,
    )
    world.add_balls(coordinator.balls)
    return coordinator, world, scheduler, bus


def simulate_match(
    difficulty_a: Difficulty = Difficulty.MEDIUM,
    difficulty_b: Difficulty = Difficulty.MEDIUM,
    seed: Optional[int] = None,
    config: Optional[MatchConfig] = None,
    frame_dt: float = DEFAULT_FRAME_DT,
    max_time: float = MAX_MATCH_TIME,
) -> GameResult:
    """Simulate an AI-vs-AI match until someone reaches the win score."""
    rng = random.Random(seed)
    config = replace(config or MatchConfig(), ai_teams=frozenset(Team))
    players = {
        Team.A: AIPlayer("Team A", difficulty_a, Team.A, config, rng),
        Team.B: AIPlayer("Team B", difficulty_b, Team.B, config, rng),
    }

    coordinator, world, scheduler, bus = build_match(config, players, rng)
    log = EventLog(bus)

    coordinator.start()
    completed = scheduler.run(
        max_time, frame_dt, until=lambda: coordinator.state is GameState.GAME_OVER,
    )

    match = coordinator.snapshot()
    stats = _compute_match_stats(match, log, world, scheduler.time)
    return GameResult(
        match=match,
        rounds=list(match.history),
        players=players,
        duration=scheduler.time,
        completed=completed,
        stats=stats,
    )


def simulate_throw(
    player: AIPlayer,
    target: Vec3,
    config: Optional[MatchConfig] = None,
    max_time: float = 30.0,
) -> Vec3:
    """Roll a single AI ball at a target spot on an empty court.

    Returns where the ball came to rest.
    """
    config = config or MatchConfig()
    scheduler = Scheduler()
    world = PhysicsWorld()
    scheduler.subscribe_fixed(world.step)

    ball = Ball("probe", team=player.team)
    world.add_body(ball, court.throw_position())
    detector = SettleDetector(ball, world, config)
    scheduler.subscribe_fixed(detector.fixed_tick)

    launcher = ThrowStepMachine(world, config)
    launcher.detectors = {ball.name: detector}
    launcher.arm(ball)
    command = player.decide(launcher.origin, target, launcher.power_range)
    launcher.throw_ai(command.power, command.angle)

    scheduler.run(max_time, until=lambda: detector.settled)
    return world.get_position(ball)


def _compute_match_stats(match: MatchState, log: EventLog, world: PhysicsWorld, duration: float) -> dict:
    """Compute match statistics."""
    rounds = match.history
    points = [r.points for r in rounds]
    throws = log.of_type(BallThrown)
    regular_throws = [t for t in throws if not t.ball.is_target]

    qualities = {}
    for t in throws:
        qualities[t.quality] = qualities.get(t.quality, 0) + 1

    return {
        "rounds": len(rounds),
        "avg_points_per_round": round(sum(points) / max(len(points), 1), 2),
        "max_points_in_round": max(points) if points else 0,
        "team_a_rounds_won": sum(1 for r in rounds if r.team is Team.A),
        "team_b_rounds_won": sum(1 for r in rounds if r.team is Team.B),
        "team_a_score": match.scores[Team.A],
        "team_b_score": match.scores[Team.B],
        "throws": len(throws),
        "regular_throws": len(regular_throws),
        "release_quality": qualities,
        "ball_contacts": world.contacts,
        "duration": round(duration, 2),
        "winner": match.winner.value if match.winner else None,
    }
