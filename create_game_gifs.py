"""
Create animated GIFs replaying 2048 games from play transcripts.
Every frame is rebuilt from the save string recorded for that move.
"""

import json
import os
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
from pathlib import Path
from PIL import Image
import io

from game_2048 import tile_value
from save_codec import from_save_string


# Tile colours by rank (similar to the original 2048 game)
TILE_COLORS = [
    '#CDC1B4',  # empty
    '#EEE4DA',  # 2
    '#EDE0C8',  # 4
    '#F2B179',  # 8
    '#F59563',  # 16
    '#F67C5F',  # 32
    '#F65E3B',  # 64
    '#EDCF72',  # 128
    '#EDCC61',  # 256
    '#EDC850',  # 512
    '#EDC53F',  # 1024
    '#EDC22E',  # 2048
    '#3C3A32',  # 4096+
]
DARK_TEXT_COLOR = '#776E65'
LIGHT_TEXT_COLOR = '#F9F6F2'
BACKGROUND_COLOR = '#FAF8EF'


def get_tile_color(rank):
    return TILE_COLORS[min(rank, len(TILE_COLORS) - 1)]


def get_text_color(rank):
    return DARK_TEXT_COLOR if rank <= 2 else LIGHT_TEXT_COLOR


def render_game_state(grid, score, move_num, action, ax):
    """Draw one grid of ranks (list of columns) on a matplotlib axis."""
    size = len(grid)
    ax.clear()
    ax.set_xlim(0, size)
    ax.set_ylim(0, size)
    ax.set_aspect('equal')
    ax.axis('off')

    for x in range(size):
        for y in range(size):
            rank = grid[x][y]
            rect = mpatches.Rectangle((x, size - 1 - y), 1, 1,
                                      facecolor=get_tile_color(rank),
                                      edgecolor='#BBADA0',
                                      linewidth=3)
            ax.add_patch(rect)

            if rank:
                value = tile_value(rank)
                fontsize = 40 if value < 100 else (32 if value < 1000 else 24)
                ax.text(x + 0.5, size - 1 - y + 0.5, str(value),
                        ha='center', va='center',
                        fontsize=fontsize * 4 / size, fontweight='bold',
                        color=get_text_color(rank))

    info_text = f"Move: {move_num} | Action: {action} | Score: {score}"
    ax.text(size / 2, -0.3, info_text, ha='center', va='top',
            fontsize=14, fontweight='bold', color=DARK_TEXT_COLOR)


def load_game_states(log_file):
    """
    Load the recorded states of a transcript.

    Returns:
        List of dicts with 'grid', 'score', 'action' and 'move_num'
    """
    with open(log_file, 'r') as f:
        data = json.load(f)

    size = data[0].get('size', 4) if data else 4
    states = []
    for i, entry in enumerate(data):
        if 'save_string' in entry:
            score, grid = from_save_string(entry['save_string'], size)
            states.append({
                'grid': grid,
                'score': score,
                'action': entry.get('action', 'UNKNOWN'),
                'move_num': i
            })
        elif 'final_score' in entry:
            break

    return states


def get_game_name(filename):
    return Path(filename).stem.replace('game_log_', '')


def sample_states(states, num_frames):
    """Pick num_frames states spread evenly, keeping the first and last."""
    if not num_frames or len(states) <= num_frames:
        return states
    indices = np.linspace(0, len(states) - 1, num_frames, dtype=int)
    return [states[i] for i in indices]


def render_frames(states):
    frames = []
    fig, ax = plt.subplots(figsize=(6, 6.5))

    for state_info in states:
        render_game_state(
            state_info['grid'],
            state_info['score'],
            state_info['move_num'],
            state_info['action'],
            ax
        )

        buf = io.BytesIO()
        plt.savefig(buf, format='png', bbox_inches='tight', dpi=100,
                    facecolor=BACKGROUND_COLOR, edgecolor='none')
        buf.seek(0)
        frames.append(Image.open(buf).copy())
        buf.close()

    plt.close(fig)
    return frames


def create_gif(log_file, output_file, fps=2, max_frames=None):
    """
    Create an animated GIF from a transcript.

    Returns:
        Number of frames written, 0 if the transcript could not be used
    """
    print(f"Creating GIF for {get_game_name(log_file)}...")

    try:
        states = sample_states(load_game_states(log_file), max_frames)
        if not states:
            print("  No states found")
            return 0

        frames = render_frames(states)

        directory = os.path.dirname(output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        frames[0].save(
            output_file,
            save_all=True,
            append_images=frames[1:],
            duration=int(1000 / fps),
            loop=0
        )

        print(f"  ✓ Saved {output_file} ({len(frames)} frames)")
        return len(frames)

    except Exception as e:
        print(f"  ✗ Error creating GIF for {log_file}: {e}")
        return 0


def create_all_gifs(log_dir='game_logs', output_dir='gifs', fps=2, max_frames=None):
    """Create GIFs for all transcripts in a directory."""
    log_files = sorted(Path(log_dir).glob('*.json'))

    if not log_files:
        print(f"No game logs found in {log_dir}")
        return

    print(f"Found {len(log_files)} game logs")
    print(f"Creating GIFs at {fps} FPS...")
    if max_frames:
        print(f"Limiting to {max_frames} frames per GIF")
    print()

    for log_file in log_files:
        output_file = os.path.join(output_dir, f'game_{get_game_name(log_file)}.gif')
        create_gif(log_file, output_file, fps, max_frames)

    print(f"\nAll GIFs saved to {output_dir}/")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Create animated GIFs of 2048 games')
    parser.add_argument('--log_dir', type=str, default='game_logs',
                        help='Directory containing game log JSON files')
    parser.add_argument('--output_dir', type=str, default='gifs',
                        help='Directory to save GIFs')
    parser.add_argument('--fps', type=int, default=2,
                        help='Frames per second for GIF animation')
    parser.add_argument('--max_frames', type=int, default=None,
                        help='Maximum number of frames per GIF (samples evenly if exceeded)')
    parser.add_argument('--log_file', type=str, default=None,
                        help='Create a GIF for this transcript only')
    parser.add_argument('--sample', action='store_true',
                        help='Create sample GIFs with limited frames (20 frames)')

    args = parser.parse_args()
    max_frames = 20 if args.sample else args.max_frames

    if args.log_file:
        if os.path.exists(args.log_file):
            suffix = '_sample' if args.sample else ''
            output_file = os.path.join(args.output_dir, f'game_{get_game_name(args.log_file)}{suffix}.gif')
            create_gif(args.log_file, output_file, args.fps, max_frames)
        else:
            print(f"Log file not found: {args.log_file}")
    else:
        create_all_gifs(args.log_dir, args.output_dir, args.fps, max_frames)
