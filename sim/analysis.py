"""Matplotlib analysis charts: difficulty matchups, AI accuracy, round scoring."""

import os
import random

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt
import numpy as np

from bocce.ai_player import AIPlayer
from bocce.config import MatchConfig
from bocce.types import Difficulty, Team, Vec3
from bocce import court
from sim.runner import simulate_match, simulate_throw

DIFFICULTY_COLORS = {
    Difficulty.EASY: "#28a745",
    Difficulty.MEDIUM: "#ffc107",
    Difficulty.HARD: "#e94560",
}


def _style_chart(ax, title):
    """Apply dark theme styling to chart."""
    ax.set_facecolor("#0f0f1a")
    ax.set_title(title, color="#e0e0e0", fontsize=13, fontweight="bold", pad=12)
    ax.tick_params(colors="#888888", labelsize=9)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.spines["bottom"].set_color("#333333")
    ax.spines["left"].set_color("#333333")
    ax.xaxis.label.set_color("#aaaaaa")
    ax.yaxis.label.set_color("#aaaaaa")


def _save(fig, save_path):
    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=150, facecolor=fig.get_facecolor())
    return fig


def chart_power_curve(config=None, save_path=None):
    """Chart 1: AI ideal power vs target distance, with the Medium variance band."""
    config = config or MatchConfig()
    player = AIPlayer("probe", Difficulty.MEDIUM, Team.B, config)
    distances = np.linspace(0, court.COURT_LENGTH, 200)

    fig, ax = plt.subplots(figsize=(8, 5))
    fig.set_facecolor("#0f0f1a")
    _style_chart(ax, "AI Ideal Power vs Distance")

    for label, is_target, color in (
        ("Regular ball", False, "#4ecdc4"),
        ("Target ball", True, "#a855f7"),
    ):
        power_range = config.power_range(is_target)
        ideal = np.array([player.ideal_power(d, power_range) for d in distances])
        # Normalize so both ranges share an axis
        normalized = (ideal - power_range[0]) / (power_range[1] - power_range[0])
        ax.plot(distances, normalized, color=color, linewidth=2, label=label)

    ideal_regular = np.array([player.ideal_power(d, config.regular_power_range) for d in distances])
    lo, hi = config.regular_power_range
    band = player.power_variance * ideal_regular
    ax.fill_between(
        distances,
        np.clip((ideal_regular - band - lo) / (hi - lo), 0, 1),
        np.clip((ideal_regular + band - lo) / (hi - lo), 0, 1),
        color="#4ecdc4", alpha=0.15, label="Medium variance",
    )

    ax.axvline(config.ai_near_distance, color="#888", linestyle="--", linewidth=1)
    ax.axvline(config.ai_far_distance, color="#888", linestyle="--", linewidth=1)
    ax.set_xlabel("Distance to target (m)")
    ax.set_ylabel("Power (fraction of range)")
    ax.set_ylim(-0.05, 1.05)
    ax.legend(facecolor="#1a1a2e", edgecolor="#333", labelcolor="#e0e0e0", fontsize=9)
    ax.grid(True, alpha=0.15)
    return _save(fig, save_path)


def chart_landing_scatter(n_throws=40, distance=15.0, seed=7, save_path=None):
    """Chart 2: Where each difficulty's balls stop around a fixed target (top-down)."""
    origin = court.throw_position()
    target = Vec3(0.0, origin.y, origin.z + distance)

    fig, ax = plt.subplots(figsize=(6, 8))
    fig.set_facecolor("#0f0f1a")
    _style_chart(ax, f"AI Landing Spread ({distance:.0f} m throw)")

    for difficulty, color in DIFFICULTY_COLORS.items():
        player = AIPlayer("probe", difficulty, Team.B, rng=random.Random(seed))
        landings = np.array([
            (p.x, p.z) for p in (simulate_throw(player, target) for _ in range(n_throws))
        ])
        ax.scatter(landings[:, 0], landings[:, 1], s=25, color=color, alpha=0.7,
                   edgecolors="none", label=player.label)

    ax.scatter([target.x], [target.z], s=120, marker="*", color="#ffffff", zorder=5, label="Target")
    half_w, half_l = court.COURT_WIDTH / 2, court.COURT_LENGTH / 2
    ax.plot([-half_w, half_w, half_w, -half_w, -half_w],
            [-half_l, -half_l, half_l, half_l, -half_l], color="#555", linewidth=1)
    ax.set_xlim(-half_w - 0.5, half_w + 0.5)
    ax.set_ylim(-half_l - 0.5, half_l + 0.5)
    ax.set_aspect("equal")
    ax.set_xlabel("x (m)")
    ax.set_ylabel("z (m)")
    ax.legend(facecolor="#1a1a2e", edgecolor="#333", labelcolor="#e0e0e0", fontsize=9)
    return _save(fig, save_path)


def chart_landing_error(n_throws=40, seed=11, save_path=None):
    """Chart 3: Mean miss distance by difficulty across target distances."""
    origin = court.throw_position()
    distances = [6.0, 10.0, 14.0, 18.0, 22.0]

    fig, ax = plt.subplots(figsize=(8, 5))
    fig.set_facecolor("#0f0f1a")
    _style_chart(ax, "AI Miss Distance by Difficulty")

    x = np.arange(len(distances))
    width = 0.25
    for i, (difficulty, color) in enumerate(DIFFICULTY_COLORS.items()):
        player = AIPlayer("probe", difficulty, Team.B, rng=random.Random(seed))
        errors = []
        for d in distances:
            target = Vec3(0.0, origin.y, origin.z + d)
            misses = [simulate_throw(player, target).planar_distance(target) for _ in range(n_throws)]
            errors.append(float(np.mean(misses)))
        ax.bar(x + i * width, errors, width, color=color, alpha=0.85, label=player.label)

    ax.set_xticks(x + width)
    ax.set_xticklabels([f"{d:.0f} m" for d in distances])
    ax.set_xlabel("Target distance")
    ax.set_ylabel("Mean miss (m)")
    ax.legend(facecolor="#1a1a2e", edgecolor="#333", labelcolor="#e0e0e0", fontsize=9)
    ax.grid(True, alpha=0.15, axis="y")
    return _save(fig, save_path)


def chart_matchup_heatmap(n_games=3, save_path=None):
    """Chart 4: Difficulty matchup win rates (Team A row vs Team B column)."""
    tiers = list(Difficulty)
    n = len(tiers)
    win_matrix = np.zeros((n, n))

    for i, da in enumerate(tiers):
        for j, db in enumerate(tiers):
            wins = 0
            for game in range(n_games):
                result = simulate_match(da, db, seed=game * 100 + i * 10 + j)
                if result.match.winner is Team.A:
                    wins += 1
            win_matrix[i][j] = wins / n_games * 100

    fig, ax = plt.subplots(figsize=(7, 6))
    fig.set_facecolor("#0f0f1a")
    _style_chart(ax, "Difficulty Matchup Win Rates (Team A vs Team B)")

    labels = [MatchConfig().difficulties[t]["label"] for t in tiers]
    im = ax.imshow(win_matrix, cmap="RdYlGn", vmin=0, vmax=100, aspect="auto")

    ax.set_xticks(range(n))
    ax.set_yticks(range(n))
    ax.set_xticklabels(labels, fontsize=9)
    ax.set_yticklabels(labels, fontsize=9)
    ax.set_xlabel("Team B")
    ax.set_ylabel("Team A")

    for i in range(n):
        for j in range(n):
            val = win_matrix[i][j]
            color = "white" if val < 30 or val > 70 else "black"
            ax.text(j, i, f"{val:.0f}%", ha="center", va="center",
                    fontsize=10, fontweight="bold", color=color)

    cbar = fig.colorbar(im, ax=ax, shrink=0.8)
    cbar.set_label("Team A Win Rate %", color="#aaa")
    cbar.ax.tick_params(colors="#888")
    return _save(fig, save_path)


def chart_round_points(n_games=3, save_path=None):
    """Chart 5: Distribution of points per round for equal-difficulty matches."""
    fig, ax = plt.subplots(figsize=(8, 5))
    fig.set_facecolor("#0f0f1a")
    _style_chart(ax, "Points per Round by Difficulty")

    balls = MatchConfig().balls_per_team
    bins = np.arange(0.5, balls + 1.5)
    for difficulty, color in DIFFICULTY_COLORS.items():
        points = []
        for seed in range(n_games):
            result = simulate_match(difficulty, difficulty, seed=seed * 50)
            points.extend(r.points for r in result.rounds)
        ax.hist(points, bins=bins, alpha=0.6, color=color, edgecolor=color,
                label=difficulty.value.capitalize())

    ax.set_xticks(range(1, balls + 1))
    ax.set_xlabel("Points scored in round")
    ax.set_ylabel("Rounds")
    ax.legend(facecolor="#1a1a2e", edgecolor="#333", labelcolor="#e0e0e0", fontsize=9)
    ax.grid(True, alpha=0.15, axis="y")
    return _save(fig, save_path)


def generate_all_charts(output_dir="."):
    """Generate all analysis charts and save to output directory."""
    os.makedirs(output_dir, exist_ok=True)

    charts = [
        ("chart_power_curve.png", chart_power_curve, None),
        ("chart_landing_scatter.png", chart_landing_scatter, "Simulating AI throws..."),
        ("chart_landing_error.png", chart_landing_error, "Measuring miss distances..."),
        ("chart_matchup_heatmap.png", chart_matchup_heatmap, "Running AI matches..."),
        ("chart_round_points.png", chart_round_points, "Collecting round scores..."),
    ]

    paths = []
    for filename, chart, message in charts:
        if message:
            print(f"  {message}")
        path = os.path.join(output_dir, filename)
        chart(save_path=path)
        plt.close("all")
        paths.append(path)
        print(f"  Saved: {path}")

    return paths
