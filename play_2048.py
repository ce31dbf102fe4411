"""
Terminal 2048 Game
Plays 2048 in a 256-colour terminal with the arrow keys and can log
every move (with its save string) to a JSON file.
"""

import argparse
import json
import os
import signal
import sys
import termios
import time
from typing import List, Optional, TextIO

from game_2048 import DIRECTIONS, SIZE, GameSession, slide_array, tile_value
from save_codec import SaveStringError


ANIMATION_DELAY = 0.15
CELL_WIDTH = 7
RESET_COLOR = "\033[m"

# (background, foreground) xterm-256 colour pairs indexed by rank
COLOR_SCHEMES = {
    "original": [(8, 15), (1, 15), (2, 15), (3, 15), (4, 15), (5, 15), (6, 15), (7, 15),
                 (9, 0), (10, 0), (11, 0), (12, 0), (13, 0), (14, 0), (15, 0), (15, 0)],
    "blackwhite": [(234, 15), (235, 15), (236, 15), (237, 15), (238, 15), (239, 15), (240, 15), (241, 15),
                   (242, 15), (243, 15), (244, 15), (245, 0), (246, 0), (247, 0), (248, 0), (249, 0)],
    "bluered": [(235, 15), (63, 15), (57, 15), (93, 15), (129, 15), (165, 15), (201, 15), (200, 15),
                (199, 15), (198, 15), (197, 15), (196, 15), (196, 15), (196, 15), (196, 15), (196, 15)],
}

KEY_DIRECTIONS = {
    "\x1b[A": "up", "\x1b[B": "down", "\x1b[C": "right", "\x1b[D": "left",
    "w": "up", "s": "down", "d": "right", "a": "left",
    "k": "up", "j": "down", "l": "right", "h": "left",
}

# Ranks in, ranks out, one slide toward index 0
SLIDE_CASES = [
    ([0, 0, 0, 1], [1, 0, 0, 0]),
    ([0, 0, 1, 1], [2, 0, 0, 0]),
    ([0, 1, 0, 1], [2, 0, 0, 0]),
    ([1, 0, 0, 1], [2, 0, 0, 0]),
    ([1, 0, 1, 0], [2, 0, 0, 0]),
    ([1, 1, 1, 0], [2, 1, 0, 0]),
    ([1, 0, 1, 1], [2, 1, 0, 0]),
    ([1, 1, 0, 1], [2, 1, 0, 0]),
    ([1, 1, 1, 1], [2, 2, 0, 0]),
    ([2, 2, 1, 1], [3, 2, 0, 0]),
    ([1, 1, 2, 2], [2, 3, 0, 0]),
    ([3, 0, 1, 1], [3, 2, 0, 0]),
    ([2, 0, 1, 1], [2, 2, 0, 0]),
]

_saved_terminal_settings = None


def get_color(rank: int, scheme: str = "original") -> str:
    """Escape sequence for the colours of a tile of the given rank."""
    pairs = COLOR_SCHEMES[scheme]
    background, foreground = pairs[min(rank, len(pairs) - 1)]
    return f"\033[38;5;{foreground};48;5;{background}m"


def render_board(session: GameSession, scheme: str = "original") -> str:
    """
    Render the board as it is drawn in the terminal.

    Args:
        session: Game to render
        scheme: Name of the colour scheme

    Returns:
        Text with escape sequences, starting with cursor-home
    """
    lines = [f"\033[H2048.py {session.score:17d} pts", ""]
    blank = " " * CELL_WIDTH

    for y in range(session.size):
        top, middle = "", ""
        for x in range(session.size):
            rank = session.cell(x, y)
            color = get_color(rank, scheme)
            label = str(tile_value(rank)) if rank else ""
            top += color + blank + RESET_COLOR
            middle += color + label.center(CELL_WIDTH) + RESET_COLOR
        lines.extend([top, middle, top])

    lines.append("")
    lines.append(f"{session.to_save_string():^28}")
    lines.append("    ←,↑,→,↓  r:new  q:quit   ")
    return "\n".join(lines) + "\n\033[A"


def draw_board(session: GameSession, scheme: str) -> None:
    print(render_board(session, scheme), end="", flush=True)


def read_key(stream: Optional[TextIO] = None) -> str:
    """
    Read one key press.

    Returns:
        A direction name for arrow, wasd and hjkl keys, 'q' at end of
        input, otherwise the character itself
    """
    stream = stream or sys.stdin
    ch = stream.read(1)
    if not ch:
        return "q"
    if ch == "\x1b":
        ch += stream.read(2)
    return KEY_DIRECTIONS.get(ch, ch)


def set_buffered_input(enable: bool) -> None:
    """Switch stdin between line-buffered and per-key, no-echo input."""
    global _saved_terminal_settings
    fd = sys.stdin.fileno()

    if enable and _saved_terminal_settings is not None:
        termios.tcsetattr(fd, termios.TCSANOW, _saved_terminal_settings)
        _saved_terminal_settings = None
    elif not enable and _saved_terminal_settings is None:
        settings = termios.tcgetattr(fd)
        _saved_terminal_settings = list(settings)
        settings[3] &= ~(termios.ICANON | termios.ECHO)
        termios.tcsetattr(fd, termios.TCSANOW, settings)


def _terminate(signum, frame):
    print("         TERMINATED         ")
    set_buffered_input(True)
    print("\033[?25h", end="", flush=True)
    sys.exit(signum)


def run_self_test() -> int:
    """
    Run the slide table and report the first failing case.

    Returns:
        Process exit status, 0 when every case passes
    """
    for line, expected in SLIDE_CASES:
        array = list(line)
        slide_array(array)
        if array != expected:
            print(f"{' '.join(map(str, line))} => {' '.join(map(str, array))} "
                  f"expected {' '.join(map(str, line))} => {' '.join(map(str, expected))}")
            return 1
    print(f"All {len(SLIDE_CASES)} tests executed successfully")
    return 0


def log_entry(session: GameSession, action: str) -> dict:
    """Transcript entry for the current state, tile values listed row by row."""
    return {
        "game_state": [[tile_value(session.cell(x, y)) for x in range(session.size)]
                       for y in range(session.size)],
        "action": action,
        "current_score": session.score,
        "save_string": session.to_save_string(),
    }


def write_log(game_log: List[dict], log_file: str) -> None:
    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(log_file, 'w') as f:
        json.dump(game_log, f, indent=2)


def play_game(size: int = SIZE, seed: Optional[int] = None, scheme: str = "original",
              restore: Optional[str] = None, log_file: Optional[str] = None) -> int:
    """
    Play one game in the terminal until it ends or the player quits.

    Args:
        size: Width and height of the grid
        seed: Seed for tile spawns, None for a random game
        scheme: Colour scheme name
        restore: Save string to continue from instead of a fresh grid
        log_file: Path of the JSON transcript, None to skip logging

    Returns:
        Final score

    Raises:
        SaveStringError: if ``restore`` is not a valid save string
    """
    session = GameSession(size, seed)
    if restore:
        session.restore(restore)
    else:
        session.reset()

    game_log = [dict(log_entry(session, "INITIAL"), size=size)]
    move_count = 0
    game_end_reason = "quit"

    print("\033[?25l\033[2J\033[H", end="")
    signal.signal(signal.SIGINT, _terminate)
    draw_board(session, scheme)

    try:
        set_buffered_input(False)
        while not session.is_game_over():
            key = read_key()
            if key in DIRECTIONS:
                if not session.apply_move(key):
                    continue
                draw_board(session, scheme)
                time.sleep(ANIMATION_DELAY)
                session.spawn_tile()
                draw_board(session, scheme)
                move_count += 1
                game_log.append(log_entry(session, key.upper()))
                if log_file:
                    write_log(game_log, log_file)
            elif key == "r":
                session.reset()
                print("\033[2J", end="")
                draw_board(session, scheme)
                game_log.append(log_entry(session, "RESTART"))
            elif key == "q":
                print("            QUIT            ")
                break
        else:
            print("         GAME OVER          ")
            game_end_reason = "no_moves_available"
    finally:
        set_buffered_input(True)
        print("\033[?25h", end="", flush=True)

    game_log.append({
        "final_score": session.score,
        "game_end_reason": game_end_reason,
        "total_moves": move_count,
    })
    if log_file:
        write_log(game_log, log_file)
        print(f"Game log saved to: {log_file}")

    return session.score


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Play 2048 in the terminal')
    parser.add_argument('--scheme', type=str, default='original', choices=sorted(COLOR_SCHEMES),
                        help='Colour scheme (default: original)')
    parser.add_argument('--size', type=int, default=SIZE, help='Grid width and height (default: 4)')
    parser.add_argument('--seed', type=int, default=None, help='Seed for tile spawns')
    parser.add_argument('--restore', type=str, default=None,
                        help='Continue from a save string shown under the board')
    parser.add_argument('--log_file', type=str, default=None,
                        help='Write a JSON transcript of the game to this file')
    parser.add_argument('--test', action='store_true', help='Run the slide self-test and exit')

    args = parser.parse_args()

    if args.test:
        sys.exit(run_self_test())

    try:
        play_game(
            size=args.size,
            seed=args.seed,
            scheme=args.scheme,
            restore=args.restore.strip() if args.restore else None,
            log_file=args.log_file,
        )
    except SaveStringError as e:
        print(f"❌ Cannot restore game: {e}")
        sys.exit(2)
