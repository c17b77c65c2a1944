"""Core data types for the bocce match simulation."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass
class Vec3:
    """3D vector for position, velocity and impulse. y is up."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vec3":
        return Vec3(self.x * scalar, self.y * scalar, self.z * scalar)

    def __rmul__(self, scalar: float) -> "Vec3":
        return self.__mul__(scalar)

    def magnitude(self) -> float:
        return (self.x**2 + self.y**2 + self.z**2) ** 0.5

    def planar_magnitude(self) -> float:
        """Length in the ground (x, z) plane, ignoring height."""
        return math.hypot(self.x, self.z)

    def planar_distance(self, other: "Vec3") -> float:
        return math.hypot(self.x - other.x, self.z - other.z)

    def copy(self) -> "Vec3":
        return Vec3(self.x, self.y, self.z)

    @staticmethod
    def from_angle(angle_deg: float) -> "Vec3":
        """Unit vector in the ground plane, rotated angle_deg from the forward (+z) axis."""
        rad = math.radians(angle_deg)
        return Vec3(math.sin(rad), 0.0, math.cos(rad))


class Team(Enum):
    A = "A"
    B = "B"

    def other(self) -> "Team":
        return Team.B if self is Team.A else Team.A


class GameState(Enum):
    WAITING_TO_START = "waiting_to_start"
    THROWING_TARGET = "throwing_target"
    AIMING = "aiming"
    BALL_IN_MOTION = "ball_in_motion"
    SCORING = "scoring"
    ROUND_OVER = "round_over"
    GAME_OVER = "game_over"


class ThrowStep(Enum):
    IDLE = "idle"
    POSITION = "position"
    AIM = "aim"
    POWER = "power"
    THROWING = "throwing"


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(eq=False)
class Ball:
    """A ball's identity and throw bookkeeping.

    Position and velocity live in the physics collaborator; the core only
    tracks whether the ball has been thrown and whether it has come to rest.
    """
    name: str
    team: Optional[Team] = None  # None for the target ball
    index: int = 0
    thrown: bool = False
    settled: bool = False

    @property
    def is_target(self) -> bool:
        return self.team is None

    @property
    def in_flight(self) -> bool:
        return self.thrown and not self.settled


@dataclass
class ThrowCommand:
    """Parameters for one throw."""
    angle: float  # signed degrees from the forward axis
    power: float
    lateral_offset: float = 0.0


@dataclass
class RoundResult:
    """Outcome of one round's scoring."""
    team: Team
    points: int
    round_number: int = 0
    closest: dict = field(default_factory=dict)  # Team -> closest planar distance


@dataclass
class MatchState:
    """Current match state. Mutated only by the MatchCoordinator."""
    state: GameState = GameState.WAITING_TO_START
    current_team: Team = Team.A
    scores: dict = field(default_factory=lambda: {Team.A: 0, Team.B: 0})
    thrown_counts: dict = field(default_factory=lambda: {Team.A: 0, Team.B: 0})
    thrown_balls: dict = field(default_factory=lambda: {Team.A: [], Team.B: []})
    round_number: int = 1
    winner: Optional[Team] = None
    history: list = field(default_factory=list)  # list[RoundResult]

    def copy(self) -> "MatchState":
        return MatchState(
            state=self.state,
            current_team=self.current_team,
            scores=dict(self.scores),
            thrown_counts=dict(self.thrown_counts),
            thrown_balls={team: list(balls) for team, balls in self.thrown_balls.items()},
            round_number=self.round_number,
            winner=self.winner,
            history=list(self.history),
        )
