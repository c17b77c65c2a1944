"""Rolling-ball physics: gravity, rolling resistance, court walls, ball contacts.

This is the physics collaborator the match talks to. The match never steps
it; the scheduler's fixed tick does. Rolling loss has a speed-proportional
part and a constant part, so throw distance grows roughly linearly with
launch speed and every ball eventually comes to rest.
"""

import logging
from dataclasses import dataclass, field
from itertools import combinations

from bocce.types import Ball, Vec3
from bocce import court

logger = logging.getLogger(__name__)

# Below this vertical speed a landing ball stops bouncing
_LANDING_SNAP_SPEED = 0.2


@dataclass
class Body:
    """Rigid-body state for one ball."""
    pos: Vec3 = field(default_factory=Vec3)
    vel: Vec3 = field(default_factory=Vec3)
    radius: float = court.BALL_RADIUS
    mass: float = court.BALL_MASS
    kinematic: bool = True
    angular_speed: float = 0.0

    def on_court(self) -> bool:
        return (
            abs(self.pos.x) <= court.COURT_WIDTH / 2
            and abs(self.pos.z) <= court.COURT_LENGTH / 2
        )

    def grounded(self) -> bool:
        return self.pos.y <= self.radius + 1e-6 and self.vel.y <= 0 and self.on_court()


def _apply_gravity(body: Body, dt: float) -> None:
    body.vel.y -= court.GRAVITY * dt


def _apply_rolling_resistance(body: Body, dt: float) -> None:
    speed = body.vel.planar_magnitude()
    if speed < 1e-9:
        body.vel.x = 0.0
        body.vel.z = 0.0
        return
    decel = court.ROLLING_DRAG * speed + court.ROLLING_FRICTION
    new_speed = max(0.0, speed - decel * dt)
    factor = new_speed / speed
    body.vel.x *= factor
    body.vel.z *= factor


def _check_ground(body: Body) -> None:
    """Land a falling ball on the court surface. Off the court there is no floor."""
    if body.pos.y > body.radius or not body.on_court():
        return
    body.pos.y = body.radius
    if body.vel.y < 0:
        body.vel.y = -body.vel.y * court.GROUND_RESTITUTION
        if body.vel.y < _LANDING_SNAP_SPEED:
            body.vel.y = 0.0


def _check_walls(body: Body, was_on_court: bool) -> None:
    """Reflect off the four court walls. Balls already outside pass through."""
    if not was_on_court or body.pos.y > court.WALL_HEIGHT + body.radius:
        return
    half_w = court.COURT_WIDTH / 2 - body.radius
    half_l = court.COURT_LENGTH / 2 - body.radius
    if abs(body.pos.x) > half_w:
        body.pos.x = half_w if body.pos.x > 0 else -half_w
        body.vel.x = -body.vel.x * court.WALL_RESTITUTION
    if abs(body.pos.z) > half_l:
        body.pos.z = half_l if body.pos.z > 0 else -half_l
        body.vel.z = -body.vel.z * court.WALL_RESTITUTION


def _resolve_contact(a: Body, b: Body) -> bool:
    """Planar sphere-sphere collision. Returns True if the pair was touching."""
    dx = b.pos.x - a.pos.x
    dz = b.pos.z - a.pos.z
    dist = (dx**2 + dz**2) ** 0.5
    min_dist = a.radius + b.radius
    if dist >= min_dist or dist < 1e-9:
        return False

    nx, nz = dx / dist, dz / dist
    inv_a, inv_b = 1.0 / a.mass, 1.0 / b.mass

    # Push apart in proportion to inverse mass
    overlap = min_dist - dist
    share_a = inv_a / (inv_a + inv_b)
    a.pos.x -= nx * overlap * share_a
    a.pos.z -= nz * overlap * share_a
    b.pos.x += nx * overlap * (1 - share_a)
    b.pos.z += nz * overlap * (1 - share_a)

    closing = (b.vel.x - a.vel.x) * nx + (b.vel.z - a.vel.z) * nz
    if closing >= 0:
        return True
    j = -(1 + court.BALL_RESTITUTION) * closing / (inv_a + inv_b)
    a.vel.x -= j * nx * inv_a
    a.vel.z -= j * nz * inv_a
    b.vel.x += j * nx * inv_b
    b.vel.z += j * nz * inv_b
    return True


class PhysicsWorld:
    """All ball bodies plus a fixed-step integrator.

    Collaborator contract used by the match engine:
        has_body, get_position, get_linear_speed, get_angular_speed,
        set_kinematic, apply_impulse, teleport (which also zeroes velocity).
    """

    def __init__(self):
        self.bodies: dict[str, Body] = {}
        self.contacts = 0

    def add_body(self, ball: Ball, position: Vec3 = court.HIDDEN_POSITION) -> Body:
        if ball.is_target:
            body = Body(radius=court.TARGET_RADIUS, mass=court.TARGET_MASS)
        else:
            body = Body(radius=court.BALL_RADIUS, mass=court.BALL_MASS)
        body.pos = position.copy()
        self.bodies[ball.name] = body
        return body

    def add_balls(self, balls: list) -> None:
        for ball in balls:
            self.add_body(ball)

    def has_body(self, ball: Ball) -> bool:
        return ball.name in self.bodies

    def body(self, ball: Ball) -> Body:
        try:
            return self.bodies[ball.name]
        except KeyError:
            raise KeyError(f"No physics body for ball {ball.name!r}") from None

    def get_position(self, ball: Ball) -> Vec3:
        return self.body(ball).pos.copy()

    def get_velocity(self, ball: Ball) -> Vec3:
        return self.body(ball).vel.copy()

    def get_linear_speed(self, ball: Ball) -> float:
        return self.body(ball).vel.magnitude()

    def get_angular_speed(self, ball: Ball) -> float:
        return self.body(ball).angular_speed

    def set_kinematic(self, ball: Ball, kinematic: bool) -> None:
        body = self.body(ball)
        body.kinematic = kinematic
        if kinematic:
            body.vel = Vec3()
            body.angular_speed = 0.0

    def apply_impulse(self, ball: Ball, impulse: Vec3) -> None:
        body = self.body(ball)
        if body.kinematic:
            logger.warning("Impulse on kinematic ball %s ignored", ball.name)
            return
        body.vel = body.vel + impulse * (1.0 / body.mass)

    def teleport(self, ball: Ball, position: Vec3) -> None:
        body = self.body(ball)
        body.pos = position.copy()
        body.vel = Vec3()
        body.angular_speed = 0.0

    def step(self, dt: float) -> None:
        """Advance every dynamic body by dt."""
        dynamic = [b for b in self.bodies.values() if not b.kinematic]

        for body in dynamic:
            was_on_court = body.on_court()
            if body.grounded():
                body.vel.y = 0.0
                _apply_rolling_resistance(body, dt)
            else:
                _apply_gravity(body, dt)

            body.pos.x += body.vel.x * dt
            body.pos.y += body.vel.y * dt
            body.pos.z += body.vel.z * dt

            _check_ground(body)
            _check_walls(body, was_on_court)

            if body.grounded():
                body.angular_speed = body.vel.planar_magnitude() / body.radius

        for a, b in combinations(dynamic, 2):
            if a.grounded() and b.grounded() and _resolve_contact(a, b):
                self.contacts += 1
