"""
Plot score progression of 2048 games from play transcripts.
A transcript holds one game per restart; each game is its own series.
"""

import json
import os
import matplotlib.pyplot as plt
from pathlib import Path


def split_games(entries):
    """
    Split transcript entries into one score series per game.

    Args:
        entries: Decoded transcript (list of dicts)

    Returns:
        List of score lists; a 'RESTART' entry opens a new game with
        its own starting score
    """
    games = []
    scores = []

    for entry in entries:
        if 'final_score' in entry:
            break
        if entry.get('action') == 'RESTART' and scores:
            games.append(scores)
            scores = []
        if 'current_score' in entry:
            scores.append(entry['current_score'])

    if scores:
        games.append(scores)
    return games


def load_game_series(log_file):
    with open(log_file, 'r') as f:
        return split_games(json.load(f))


def get_game_name(filename):
    return Path(filename).stem.replace('game_log_', '')


def series_label(name, index, count):
    return name if count == 1 else f"{name} #{index + 1}"


def load_all_series(log_dir):
    """
    Load every game of every transcript in a directory.

    Returns:
        Dict of label -> score list
    """
    series = {}

    for log_file in sorted(Path(log_dir).glob('*.json')):
        name = get_game_name(log_file)
        try:
            games = load_game_series(log_file)
        except (OSError, ValueError) as e:
            print(f"⚠️  Skipping {log_file}: {e}")
            continue
        for i, scores in enumerate(games):
            series[series_label(name, i, len(games))] = scores
        best = max((scores[-1] for scores in games), default=0)
        print(f"Loaded {name}: {len(games)} game(s), best final score {best}")

    return series


def plot_all_scores(log_dir='game_logs', output_file='scores_per_turn.png'):
    """Plot every game of every transcript on one chart."""
    series = load_all_series(log_dir)

    if not series:
        print("No game logs found!")
        return None

    fig, ax = plt.subplots(figsize=(14, 8))

    for label, scores in series.items():
        ax.plot(range(len(scores)), scores, marker='o', markersize=2, linewidth=1.5, label=label, alpha=0.8)

    ax.set_xlabel('Move Number', fontsize=12)
    ax.set_ylabel('Score', fontsize=12)
    ax.set_title('2048 Score Progression', fontsize=14, fontweight='bold')
    ax.legend(bbox_to_anchor=(1.05, 1), loc='upper left', fontsize=9)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    print(f"\nPlot saved to {output_file}")
    plt.close(fig)
    return output_file


def plot_transcript(log_file, output_file):
    """
    Plot the games of one transcript, overlaid, with final scores marked.

    Returns:
        Number of games plotted
    """
    name = get_game_name(log_file)
    games = load_game_series(log_file)
    if not games:
        return 0

    fig, ax = plt.subplots(figsize=(10, 6))
    for i, scores in enumerate(games):
        moves = range(len(scores))
        line, = ax.plot(moves, scores, linewidth=2, label=series_label(name, i, len(games)))
        ax.fill_between(moves, scores, alpha=0.15, color=line.get_color())
        ax.annotate(str(scores[-1]), (len(scores) - 1, scores[-1]),
                    xytext=(4, 4), textcoords='offset points', fontsize=8)

    ax.set_xlabel('Move Number', fontsize=12)
    ax.set_ylabel('Score', fontsize=12)
    ax.set_title(f'Score Progression: {name}', fontsize=14, fontweight='bold')
    if len(games) > 1:
        ax.legend(fontsize=9)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches='tight')
    plt.close(fig)
    return len(games)


def plot_individual_scores(log_dir='game_logs', output_dir='plots'):
    """Create one plot per transcript; returns the files written."""
    os.makedirs(output_dir, exist_ok=True)
    written = []

    for log_file in sorted(Path(log_dir).glob('*.json')):
        output_file = os.path.join(output_dir, f'score_progression_{get_game_name(log_file)}.png')
        try:
            if plot_transcript(log_file, output_file):
                written.append(output_file)
                print(f"Saved {output_file}")
        except (OSError, ValueError) as e:
            print(f"Error plotting {log_file}: {e}")

    return written


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Plot 2048 game scores per turn')
    parser.add_argument('--log_dir', type=str, default='game_logs',
                        help='Directory containing game log JSON files')
    parser.add_argument('--output', type=str, default='scores_per_turn.png',
                        help='Output filename for combined plot')
    parser.add_argument('--individual', action='store_true',
                        help='Also create one plot per transcript')
    parser.add_argument('--individual_dir', type=str, default='plots',
                        help='Directory for individual plots')

    args = parser.parse_args()

    plot_all_scores(args.log_dir, args.output)

    if args.individual:
        plot_individual_scores(args.log_dir, args.individual_dir)
