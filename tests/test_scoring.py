"""Tests for round scoring."""

import math

import pytest

from bocce.scoring import ball_distances, closest_distance, score_round
from bocce.types import Team, Vec3

TARGET = Vec3(0.0, 0.06, 5.0)


def _at(distance, y=0.11):
    """A ball `distance` meters straight down-court from the target."""
    return Vec3(0.0, y, TARGET.z + distance)


def test_closest_distance_ignores_height():
    """Height difference must not count toward distance."""
    positions = [Vec3(0.0, 3.0, 7.0), Vec3(1.0, 0.0, 5.0)]
    assert closest_distance(positions, TARGET) == 1.0


def test_closest_distance_empty_is_infinite():
    assert closest_distance([], TARGET) == math.inf


def test_team_a_scores_balls_inside_b_best():
    """Team A closest wins; counts A balls strictly closer than B's closest."""
    thrown = {
        Team.A: [_at(0.5), _at(1.0), _at(3.0)],
        Team.B: [_at(2.0), _at(2.5)],
    }
    result = score_round(TARGET, thrown)
    assert result.team is Team.A
    assert result.points == 2


def test_team_b_can_score():
    thrown = {
        Team.A: [_at(1.5)],
        Team.B: [_at(0.2), _at(0.4), _at(1.0), _at(1.6)],
    }
    result = score_round(TARGET, thrown)
    assert result.team is Team.B
    assert result.points == 3


def test_exact_tie_goes_to_team_a_with_one_point():
    """Closest 2.0 vs 2.0: fixed tie-break, and never zero points."""
    thrown = {
        Team.A: [_at(2.0), _at(3.0)],
        Team.B: [Vec3(2.0, 0.11, TARGET.z), _at(4.0)],
    }
    result = score_round(TARGET, thrown)
    assert result.team is Team.A
    assert result.points == 1


def test_tie_team_is_configurable():
    thrown = {Team.A: [_at(2.0)], Team.B: [_at(-2.0)]}
    result = score_round(TARGET, thrown, tie_team=Team.B)
    assert result.team is Team.B
    assert result.points == 1


def test_tie_is_deterministic():
    thrown = {Team.A: [_at(2.0)], Team.B: [_at(-2.0)]}
    results = {(r.team, r.points) for r in (score_round(TARGET, thrown) for _ in range(20))}
    assert results == {(Team.A, 1)}


def test_team_without_balls_never_scores():
    """An empty team is infinitely far away; every ball of the other team counts."""
    thrown = {Team.A: [], Team.B: [_at(5.0), _at(9.0)]}
    result = score_round(TARGET, thrown)
    assert result.team is Team.B
    assert result.points == 2


def test_points_equal_count_strictly_inside_losing_best():
    """Ball exactly at the opponent's closest distance does not count."""
    thrown = {
        Team.A: [_at(0.5), _at(1.0), _at(-1.0)],
        Team.B: [_at(1.0 + 1e-12), _at(3.0)],
    }
    result = score_round(TARGET, thrown)
    assert result.team is Team.A
    assert result.points == 3

    thrown[Team.B] = [_at(1.0), _at(3.0)]
    result = score_round(TARGET, thrown)
    assert result.points == 1


def test_score_round_is_pure():
    """Same inputs, same result, inputs untouched."""
    thrown = {Team.A: [_at(0.3), _at(0.9)], Team.B: [_at(0.6)]}
    before = {team: [p.copy() for p in ps] for team, ps in thrown.items()}
    first = score_round(TARGET, thrown, round_number=3)
    second = score_round(TARGET, thrown, round_number=3)
    assert (first.team, first.points) == (second.team, second.points)
    assert first.round_number == 3
    assert thrown == before


def test_result_records_closest_distances():
    thrown = {Team.A: [_at(0.3)], Team.B: [_at(0.6)]}
    result = score_round(TARGET, thrown)
    assert result.closest[Team.A] == pytest.approx(0.3)
    assert result.closest[Team.B] == pytest.approx(0.6)


def test_ball_distances_sorted():
    positions = [_at(3.0), _at(1.0), _at(2.0)]
    ranked = ball_distances(positions, TARGET)
    assert [i for i, _ in ranked] == [1, 2, 0]
    assert [d for _, d in ranked] == [1.0, 2.0, 3.0]
