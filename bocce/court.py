"""Court dimensions and ball constants.

All values in SI units (meters, kilograms, seconds).
Axes: x is lateral, y is vertical, z runs down the court (throwing end at -z).
"""

from bocce.types import Vec3

# Court dimensions (meters), inner playing surface
COURT_LENGTH = 27.5
COURT_WIDTH = 4.0
WALL_HEIGHT = 0.3

# Balls
BALL_RADIUS = 0.11
BALL_MASS = 0.9  # ~900g bocce ball
TARGET_RADIUS = 0.06
TARGET_MASS = 0.06  # ~60g pallino

# Throwing position: 2m in from the near wall, centered
THROW_LINE_OFFSET = 2.0
THROW_HEIGHT_CLEARANCE = 0.05

# Where balls wait while not in play
HIDDEN_POSITION = Vec3(0.0, -10.0, 0.0)

# Recovery box for balls that fall off the world
RECOVERY_HALF_WIDTH = 1.5
RECOVERY_HALF_LENGTH = 12.0
RECOVERY_HEIGHT = 0.5

# Surface physics
GRAVITY = 9.81
ROLLING_DRAG = 1.0  # 1/s, speed-proportional rolling loss
ROLLING_FRICTION = 0.3  # m/s^2, constant rolling loss so balls come to rest
WALL_RESTITUTION = 0.5
BALL_RESTITUTION = 0.8
GROUND_RESTITUTION = 0.1


def throw_position(radius: float = BALL_RADIUS) -> Vec3:
    """Throw origin for a ball of the given radius, resting just above the surface."""
    return Vec3(0.0, radius + THROW_HEIGHT_CLEARANCE, -COURT_LENGTH / 2 + THROW_LINE_OFFSET)
