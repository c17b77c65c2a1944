"""AI opponent: turns the target's position into a noisy (angle, power) throw.

The model is deliberately simple. It aims straight at the target, maps
distance linearly onto the launcher's power range, then spoils both with
uniform noise whose width depends on the difficulty tier:
  - Easy:   +-25 deg, +-35% power
  - Medium: +-12 deg, +-15% power
  - Hard:   +-4 deg,  +-5% power
"""

import math
import random

from bocce.config import MatchConfig
from bocce.types import Difficulty, Team, ThrowCommand, Vec3


def inverse_lerp(a: float, b: float, value: float) -> float:
    """Where value sits between a and b, clamped to [0, 1]."""
    if a == b:
        return 0.0
    return max(0.0, min(1.0, (value - a) / (b - a)))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


class AIPlayer:
    """A computer-controlled team."""

    def __init__(
        self,
        name: str,
        difficulty: Difficulty,
        team: Team,
        config: MatchConfig = None,
        rng=None,
    ):
        """Create an AI player.

        Args:
            name: Display name.
            difficulty: Key into config.difficulties.
            team: Team this player throws for.
            config: Match configuration (defaults to MatchConfig()).
            rng: Object with a uniform(a, b) method; the random module by default.
        """
        self.name = name
        self.team = team
        self.difficulty = difficulty
        self.config = config or MatchConfig()
        self.rng = rng or random
        self.label = self.config.difficulties[difficulty]["label"]
        self.angle_variance, self.power_variance = self.config.variance(difficulty)

    def ideal_angle(self, origin: Vec3, target: Vec3) -> float:
        """Bearing from origin to target in degrees from +z, clamped to the aim arc."""
        dx = target.x - origin.x
        dz = target.z - origin.z
        angle = math.degrees(math.atan2(dx, dz))
        limit = self.config.max_aim_angle
        return max(-limit, min(limit, angle))

    def ideal_power(self, distance: float, power_range: tuple) -> float:
        """Map distance between the near and far references onto the power range."""
        t = inverse_lerp(self.config.ai_near_distance, self.config.ai_far_distance, distance)
        return lerp(power_range[0], power_range[1], t)

    def decide(self, origin: Vec3, target: Vec3, power_range: tuple) -> ThrowCommand:
        """Pick a throw toward target from origin."""
        min_power, max_power = power_range
        distance = origin.planar_distance(target)
        angle = self.ideal_angle(origin, target)
        power = self.ideal_power(distance, power_range)

        angle += self.rng.uniform(-self.angle_variance, self.angle_variance)
        spread = self.power_variance * power
        power += self.rng.uniform(-spread, spread)
        power = max(min_power, min(max_power, power))

        return ThrowCommand(angle=angle, power=power, lateral_offset=origin.x)

    def decide_target_throw(self, origin: Vec3, power_range: tuple) -> ThrowCommand:
        """Open a round: choose a spot down the court and throw the target ball there."""
        near, far = self.config.ai_target_distance_range
        desired = self.rng.uniform(near, far)
        spot = Vec3(origin.x, origin.y, origin.z + desired)
        return self.decide(origin, spot, power_range)
