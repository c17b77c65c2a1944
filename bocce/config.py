"""Match tuning parameters and the AI difficulty table."""

from dataclasses import dataclass, field

from bocce.types import Difficulty, Team


# AI difficulty presets: angle variance in degrees, power variance as a fraction of ideal power
DIFFICULTIES = {
    Difficulty.EASY: {
        "label": "Easy",
        "angle_variance": 25.0,
        "power_variance": 0.35,
    },
    Difficulty.MEDIUM: {
        "label": "Medium",
        "angle_variance": 12.0,
        "power_variance": 0.15,
    },
    Difficulty.HARD: {
        "label": "Hard",
        "angle_variance": 4.0,
        "power_variance": 0.05,
    },
}

AIM_MODES = ("oscillate", "manual")


@dataclass
class MatchConfig:
    """Every tunable number of a match.

    Power ranges are impulse magnitudes. The target ball is much lighter,
    so it gets its own, smaller range.
    """

    # Rules
    win_score: int = 12
    balls_per_team: int = 4
    opening_team: Team = Team.A
    closest_tie_next_team: Team = Team.B
    scoring_tie_team: Team = Team.A

    # Settle detection
    settle_velocity_threshold: float = 0.05  # m/s
    settle_angular_threshold: float = 0.1  # rad/s
    settle_time_required: float = 0.5  # s
    floor_out_height: float = -5.0

    # Throwing
    regular_power_range: tuple = (3.0, 18.0)
    target_power_range: tuple = (0.2, 1.2)
    sweet_spot: tuple = (0.75, 0.9)
    overpower_max_spread: float = 15.0  # degrees
    max_aim_angle: float = 60.0  # degrees
    aim_mode: str = "oscillate"
    aim_frequency: float = 0.5  # Hz
    aim_speed: float = 90.0  # deg/s, manual aim
    power_cycle_rate: float = 0.8  # half-cycles per second
    lateral_speed: float = 2.0  # m/s
    lateral_margin: float = 0.3  # m
    throw_lift: float = 0.08  # fraction of power added upward

    # AI
    ai_teams: frozenset = frozenset({Team.B})
    ai_thinking_delay: float = 1.5
    ai_near_distance: float = 2.0
    ai_far_distance: float = 25.0
    ai_target_distance_range: tuple = (10.0, 22.0)
    difficulties: dict = field(
        default_factory=lambda: {tier: dict(preset) for tier, preset in DIFFICULTIES.items()}
    )

    # Pacing
    scoring_display_delay: float = 3.0
    round_over_delay: float = 2.0

    def __post_init__(self):
        if self.win_score < 1:
            raise ValueError(f"win_score must be positive, got {self.win_score}")
        if self.balls_per_team < 1:
            raise ValueError(f"balls_per_team must be positive, got {self.balls_per_team}")
        for name in ("regular_power_range", "target_power_range", "ai_target_distance_range"):
            lo, hi = getattr(self, name)
            if not 0 <= lo < hi:
                raise ValueError(f"{name} must satisfy 0 <= min < max, got ({lo}, {hi})")
        lo, hi = self.sweet_spot
        if not 0.0 <= lo <= hi <= 1.0:
            raise ValueError(f"sweet_spot must satisfy 0 <= lo <= hi <= 1, got ({lo}, {hi})")
        if self.aim_mode not in AIM_MODES:
            raise ValueError(f"aim_mode must be one of {AIM_MODES}, got {self.aim_mode!r}")
        if self.ai_far_distance <= self.ai_near_distance:
            raise ValueError("ai_far_distance must exceed ai_near_distance")
        if self.settle_time_required <= 0:
            raise ValueError("settle_time_required must be positive")
        self.ai_teams = frozenset(self.ai_teams)

    def power_range(self, is_target_throw: bool) -> tuple:
        return self.target_power_range if is_target_throw else self.regular_power_range

    def variance(self, difficulty: Difficulty) -> tuple:
        """(angle_variance, power_variance) for a difficulty tier."""
        preset = self.difficulties[difficulty]
        return preset["angle_variance"], preset["power_variance"]
