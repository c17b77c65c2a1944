"""Round scoring by proximity to the target ball.

Pure functions over positions: identical inputs always give identical
results, and nothing here touches match state.
"""

import math

from bocce.types import RoundResult, Team, Vec3


def closest_distance(positions: list[Vec3], target: Vec3) -> float:
    """Planar distance of the closest position to the target.

    A team with no balls is infinitely far away, so it is never favored.
    """
    return min((p.planar_distance(target) for p in positions), default=math.inf)


def ball_distances(positions: list[Vec3], target: Vec3) -> list[tuple[int, float]]:
    """(index, planar distance) pairs sorted closest first."""
    pairs = [(i, p.planar_distance(target)) for i, p in enumerate(positions)]
    pairs.sort(key=lambda pair: pair[1])
    return pairs


def score_round(
    target: Vec3,
    thrown: dict,
    tie_team: Team = Team.A,
    round_number: int = 0,
) -> RoundResult:
    """Score a round.

    The team whose closest ball beats the other team's closest ball scores
    one point per ball strictly closer than the opponent's closest. Equal
    closest distances go to tie_team. A round always yields at least one
    point.

    Args:
        target: Target ball position.
        thrown: Team -> list of settled ball positions for that team.
        tie_team: Team that scores when both closest distances are equal.
        round_number: Recorded on the result.

    Returns:
        RoundResult with the scoring team and points.
    """
    closest = {team: closest_distance(thrown.get(team, []), target) for team in Team}

    if closest[Team.A] < closest[Team.B]:
        scoring_team = Team.A
    elif closest[Team.B] < closest[Team.A]:
        scoring_team = Team.B
    else:
        scoring_team = tie_team

    opponent_best = closest[scoring_team.other()]
    points = sum(
        1 for p in thrown.get(scoring_team, [])
        if p.planar_distance(target) < opponent_best
    )

    # Only reachable on an exact tie
    if points == 0:
        points = 1

    return RoundResult(
        team=scoring_team,
        points=points,
        round_number=round_number,
        closest=closest,
    )
