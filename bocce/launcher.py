"""Throw input: Position -> Aim -> Power -> Throwing, for one armed ball at a time.

Human throws walk through every step on frame ticks. The power step is a
timing game: power sweeps up and down as a triangle wave and the player
confirms at the moment they like. Releasing inside the sweet spot is clean,
releasing above it costs a random amount of aim, releasing below it just
throws short. AI throws skip straight to Throwing.
"""

import logging
import math
import random
from typing import Callable, Optional

from bocce.config import MatchConfig
from bocce.events import BallThrown, EventBus, PowerChanged, ThrowArmed, ThrowStepChanged
from bocce.types import Ball, ThrowCommand, ThrowStep, Vec3
from bocce import court

logger = logging.getLogger(__name__)


def pingpong(t: float, length: float = 1.0) -> float:
    """Triangle wave bouncing between 0 and length."""
    t = t % (2 * length)
    return length - abs(t - length)


def release_deviation(normalized: float, sweet_spot: tuple, max_spread: float, rng) -> tuple:
    """Angular deviation for a release at `normalized` on the power wave.

    Returns (deviation_deg, quality). The sweet spot bounds are inclusive.
    """
    lo, hi = sweet_spot
    if normalized > hi:
        excess = (normalized - hi) / (1 - hi)
        spread = excess * max_spread
        return rng.uniform(-spread, spread), "overpowered"
    if normalized < lo:
        return 0.0, "underpowered"
    return 0.0, "accurate"


class ThrowStepMachine:
    """Drives one throw at a time and turns it into an impulse."""

    def __init__(
        self,
        physics,
        config: Optional[MatchConfig] = None,
        events: Optional[EventBus] = None,
        rng=None,
    ):
        self.physics = physics
        self.config = config or MatchConfig()
        self.events = events or EventBus()
        self.rng = rng or random

        # Wired up by the match
        self.detectors: dict = {}  # ball name -> SettleDetector
        self.on_thrown: Optional[Callable[[Ball], None]] = None
        self.on_settled: Optional[Callable[[Ball], None]] = None

        self.step = ThrowStep.IDLE
        self.ball: Optional[Ball] = None
        self.is_target_throw = False
        self.power_range = self.config.regular_power_range
        self.origin = Vec3()
        self.lateral_offset = 0.0
        self.angle = 0.0
        self.power = self.power_range[0]
        self.normalized_power = 0.0
        self.last_command: Optional[ThrowCommand] = None
        self.last_quality: Optional[str] = None
        self._step_time = 0.0

    @property
    def armed(self) -> bool:
        return self.ball is not None

    @property
    def preview_direction(self) -> Vec3:
        """Aim direction as shown to the player. Overpower deviation never appears here."""
        return Vec3.from_angle(self.angle)

    def _set_step(self, step: ThrowStep) -> None:
        self.step = step
        self._step_time = 0.0
        self.events.emit(ThrowStepChanged(step))

    def arm(self, ball: Ball, is_target_throw: bool = False) -> bool:
        """Prepare `ball` for a throw from its current position."""
        if not self.physics.has_body(ball):
            logger.warning("Cannot arm %s: no physics body", ball.name)
            return False
        if self.ball is not None and self.ball is not ball:
            logger.warning("Arming %s replaces unthrown %s", ball.name, self.ball.name)

        cfg = self.config
        self.ball = ball
        self.is_target_throw = is_target_throw
        self.power_range = cfg.power_range(is_target_throw)
        self.origin = self.physics.get_position(ball)
        self.lateral_offset = self.origin.x
        self.angle = 0.0
        self.power = self.power_range[0]
        self.normalized_power = 0.0
        self.physics.set_kinematic(ball, True)

        lo, hi = cfg.sweet_spot
        self.events.emit(ThrowArmed(
            ball=ball,
            is_target_throw=is_target_throw,
            power_min=self.power_range[0],
            power_max=self.power_range[1],
            sweet_spot_lo=lo,
            sweet_spot_hi=hi,
        ))
        self._set_step(ThrowStep.POSITION)
        logger.debug("Armed %s (target=%s)", ball.name, is_target_throw)
        return True

    def update(self, dt: float, lateral_axis: float = 0.0, confirm: bool = False) -> None:
        """Frame tick for a human-controlled throw."""
        if self.step is ThrowStep.IDLE:
            return
        if self.ball is None:
            logger.warning("Throw step %s with no armed ball", self.step.value)
            return

        self._step_time += dt
        cfg = self.config

        if self.step is ThrowStep.POSITION:
            limit = court.COURT_WIDTH / 2 - cfg.lateral_margin
            offset = self.lateral_offset + lateral_axis * cfg.lateral_speed * dt
            self.lateral_offset = max(-limit, min(limit, offset))
            self.physics.teleport(self.ball, Vec3(self.lateral_offset, self.origin.y, self.origin.z))

        elif self.step is ThrowStep.AIM:
            if cfg.aim_mode == "oscillate":
                phase = 2 * math.pi * cfg.aim_frequency * self._step_time
                self.angle = cfg.max_aim_angle * math.sin(phase)
            else:
                angle = self.angle + lateral_axis * cfg.aim_speed * dt
                self.angle = max(-cfg.max_aim_angle, min(cfg.max_aim_angle, angle))

        elif self.step is ThrowStep.POWER:
            self.normalized_power = pingpong(self._step_time * cfg.power_cycle_rate, 1.0)
            min_power, max_power = self.power_range
            self.power = min_power + (max_power - min_power) * self.normalized_power
            self.events.emit(PowerChanged(self.normalized_power))

        if confirm:
            self.confirm()

    def confirm(self) -> None:
        """Lock the current step and move on. Ignored while idle."""
        if self.step is ThrowStep.IDLE:
            return
        if self.ball is None:
            logger.warning("Confirm in step %s with no armed ball", self.step.value)
            return

        if self.step is ThrowStep.POSITION:
            self._set_step(ThrowStep.AIM)
        elif self.step is ThrowStep.AIM:
            self._set_step(ThrowStep.POWER)
            self.events.emit(PowerChanged(self.normalized_power))
        elif self.step is ThrowStep.POWER:
            self._release()

    def _release(self) -> None:
        deviation, quality = release_deviation(
            self.normalized_power,
            self.config.sweet_spot,
            self.config.overpower_max_spread,
            self.rng,
        )
        command = ThrowCommand(
            angle=self.angle + deviation,
            power=self.power,
            lateral_offset=self.lateral_offset,
        )
        self._throw(command, quality)

    def throw_ai(self, power: float, angle: float) -> bool:
        """Throw the armed ball immediately with the given parameters."""
        if self.ball is None:
            logger.warning("AI throw requested with no armed ball")
            return False
        min_power, max_power = self.power_range
        self.power = max(min_power, min(max_power, power))
        self.angle = angle
        command = ThrowCommand(angle=angle, power=self.power, lateral_offset=self.lateral_offset)
        self._throw(command, "ai")
        return True

    def _throw(self, command: ThrowCommand, quality: str) -> None:
        self._set_step(ThrowStep.THROWING)
        ball = self.ball

        impulse = Vec3.from_angle(command.angle) * command.power
        if not self.is_target_throw:
            impulse.y = command.power * self.config.throw_lift

        self.physics.set_kinematic(ball, False)
        self.physics.apply_impulse(ball, impulse)
        ball.thrown = True
        ball.settled = False

        detector = self.detectors.get(ball.name)
        if detector is not None:
            detector.start_tracking(self.on_settled)
        else:
            logger.warning("No settle detector for %s", ball.name)

        self.ball = None
        self.last_command = command
        self.last_quality = quality
        logger.debug("Threw %s: angle=%.1f power=%.2f (%s)",
                     ball.name, command.angle, command.power, quality)
        self.events.emit(BallThrown(ball=ball, command=command, quality=quality))
        self._set_step(ThrowStep.IDLE)

        if self.on_thrown is not None:
            self.on_thrown(ball)
