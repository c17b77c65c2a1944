#!/usr/bin/env python3
"""CLI entry point for the bocce match simulation.

Usage:
    python main.py game [diff_a] [diff_b]   Run an AI match (text mode) and print stats
    python main.py analyze                  Generate analysis charts
    python main.py test                     Run all tests

Add -v after the command for debug logging.
"""

import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def _difficulty_arg(index, default):
    from bocce.types import Difficulty
    names = [d.value for d in Difficulty]
    args = [a for a in sys.argv[2:] if not a.startswith("-")]
    if len(args) > index and args[index] in names:
        return Difficulty(args[index])
    return default


def cmd_game():
    """Run an AI match in text mode and print stats."""
    from bocce.types import Difficulty, Team
    from sim.runner import simulate_match

    print("=" * 60)
    print("  AI BOCCE MATCH")
    print("=" * 60)

    diff_a = _difficulty_arg(0, Difficulty.MEDIUM)
    diff_b = _difficulty_arg(1, Difficulty.MEDIUM)

    result = simulate_match(diff_a, diff_b)
    m = result.match
    s = result.stats
    a, b = result.players[Team.A], result.players[Team.B]

    print(f"\n  Team A: {a.label} (aim +-{a.angle_variance:.0f} deg, power +-{a.power_variance:.0%})")
    print(f"  Team B: {b.label} (aim +-{b.angle_variance:.0f} deg, power +-{b.power_variance:.0%})")
    print()

    score = {Team.A: 0, Team.B: 0}
    for r in result.rounds:
        score[r.team] += r.points
        print(f"  Round {r.round_number:2d}: Team {r.team.value} scores {r.points}  "
              f"[{score[Team.A]}-{score[Team.B]}]")

    print()
    print(f"  FINAL SCORE: {m.scores[Team.A]} - {m.scores[Team.B]}")
    if m.winner is not None:
        print(f"  WINNER: Team {m.winner.value} ({result.players[m.winner].label})")
    else:
        print(f"  No winner after {result.duration:.0f}s of simulated play")
    print()
    print(f"  Rounds: {s['rounds']}")
    print(f"  Avg points per round: {s['avg_points_per_round']}")
    print(f"  Max points in a round: {s['max_points_in_round']}")
    print(f"  Throws: {s['throws']}  |  Ball contacts: {s['ball_contacts']}")
    print(f"  Simulated time: {s['duration']}s")
    print()
    print("  Available difficulties: " + ", ".join(d.value for d in Difficulty))
    print("  Usage: python main.py game [diff_a] [diff_b]")
    print("=" * 60)


def cmd_analyze():
    """Generate all analysis charts."""
    print("Generating analysis charts...")
    print("-" * 60)
    from sim.analysis import generate_all_charts
    output_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "output")
    paths = generate_all_charts(output_dir=output_dir)
    print(f"\nDone! {len(paths)} charts saved to {output_dir}/")


def cmd_test():
    """Run all tests."""
    import subprocess
    print("Running tests...")
    print("-" * 60)
    result = subprocess.run(
        [sys.executable, "-m", "pytest", "tests/", "-v"],
        cwd=os.path.dirname(os.path.abspath(__file__)),
    )
    sys.exit(result.returncode)


COMMANDS = {
    "game": cmd_game,
    "analyze": cmd_analyze,
    "test": cmd_test,
}


def main():
    verbose = "-v" in sys.argv[1:]
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        print(__doc__)
        print("Available commands:")
        for name, func in COMMANDS.items():
            print(f"  {name:12s} {func.__doc__}")
        sys.exit(1)

    COMMANDS[sys.argv[1]]()


if __name__ == "__main__":
    main()
