"""Settle detection: decides when a thrown ball has stopped for scoring purposes."""

import logging
from typing import Callable, Optional

from bocce.config import MatchConfig
from bocce.types import Ball, Vec3
from bocce import court

logger = logging.getLogger(__name__)

# Slack when comparing the accumulated timer against the required duration
_TIME_EPSILON = 1e-9


class SettleDetector:
    """Watches one ball on the fixed physics tick.

    The ball is settled once both its linear and angular speed stay below
    their thresholds for settle_time_required seconds. A ball that drops
    below the floor-out height is put back on the court and settled at once.
    """

    def __init__(self, ball: Ball, physics, config: Optional[MatchConfig] = None):
        self.ball = ball
        self.physics = physics
        self.config = config or MatchConfig()
        self.timer = 0.0
        self.settled = False
        self.tracking = False
        self._on_settled: Optional[Callable[[Ball], None]] = None
        self._warned = False

    def start_tracking(self, on_settled: Optional[Callable[[Ball], None]] = None) -> None:
        """Begin watching a freshly thrown ball. on_settled fires at most once."""
        self.timer = 0.0
        self.settled = False
        self.tracking = True
        self._on_settled = on_settled
        self.ball.settled = False

    def stop_tracking(self) -> None:
        self.tracking = False
        self._on_settled = None

    def reset(self) -> None:
        self.stop_tracking()
        self.timer = 0.0
        self.settled = False

    def fixed_tick(self, dt: float) -> None:
        if not self.tracking or self.settled:
            return
        if not self.physics.has_body(self.ball):
            if not self._warned:
                logger.warning("Ball %s has no physics body; settle tracking skipped", self.ball.name)
                self._warned = True
            return

        cfg = self.config
        slow_enough = (
            self.physics.get_linear_speed(self.ball) < cfg.settle_velocity_threshold
            and self.physics.get_angular_speed(self.ball) < cfg.settle_angular_threshold
        )
        if slow_enough:
            self.timer += dt
            if self.timer >= cfg.settle_time_required - _TIME_EPSILON:
                self.settle()
                return
        else:
            self.timer = 0.0

        pos = self.physics.get_position(self.ball)
        if pos.y < cfg.floor_out_height:
            self._recover(pos)

    def _recover(self, pos: Vec3) -> None:
        """Bring a ball that fell off the world back inside the court, then settle it."""
        recovered = Vec3(
            max(-court.RECOVERY_HALF_WIDTH, min(court.RECOVERY_HALF_WIDTH, pos.x)),
            court.RECOVERY_HEIGHT,
            max(-court.RECOVERY_HALF_LENGTH, min(court.RECOVERY_HALF_LENGTH, pos.z)),
        )
        logger.info("Ball %s fell off the court; recovered to (%.2f, %.2f)",
                    self.ball.name, recovered.x, recovered.z)
        self.physics.teleport(self.ball, recovered)
        self.settle()

    def settle(self) -> None:
        """Declare the ball settled. Idempotent."""
        if self.settled:
            return
        self.settled = True
        self.tracking = False
        self.ball.settled = True

        if self.physics.has_body(self.ball):
            # Teleporting in place zeroes any residual motion
            self.physics.teleport(self.ball, self.physics.get_position(self.ball))

        callback, self._on_settled = self._on_settled, None
        if callback is not None:
            callback(self.ball)
