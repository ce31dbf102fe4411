"""
2048 Game Engine
Rank-based board: a cell holds r and shows the tile 2**r, 0 is empty.
Every move is "slide up" plus a number of quarter turns of the grid.
"""

import random
from typing import List, Optional, Tuple

import save_codec


SIZE = 4
SPAWN_HIGH_RANK_PROBABILITY = 0.1

# Quarter turns applied before sliding toward index 0.
ROTATIONS = {"up": 0, "left": 1, "down": 2, "right": 3}
DIRECTIONS = ("up", "down", "left", "right")


def tile_value(rank: int) -> int:
    """Displayed value of a rank (0 stays 0)."""
    return 1 << rank if rank else 0


def empty_grid(size: int = SIZE) -> List[List[int]]:
    """Grid of size x size empty cells (list of columns)."""
    return [[0] * size for _ in range(size)]


def init_grid(size: int = SIZE, rng: Optional[random.Random] = None) -> List[List[int]]:
    """
    Initialize a new grid with two random tiles (rank 1 or 2).

    Args:
        size: Width and height of the grid
        rng: Random source, defaults to the module-level generator

    Returns:
        size x size grid (list of columns) with two tiles placed
    """
    grid = empty_grid(size)
    add_random_tile(grid, rng)
    add_random_tile(grid, rng)
    return grid


def rotate_grid(grid: List[List[int]]) -> None:
    """
    Rotate the grid a quarter turn in place.

    Four rotations give back the original grid. One rotation turns
    the left edge into the top edge, so sliding up afterwards is a
    slide to the left.
    """
    n = len(grid)
    for i in range(n // 2):
        for j in range(i, n - i - 1):
            tmp = grid[i][j]
            grid[i][j] = grid[j][n - i - 1]
            grid[j][n - i - 1] = grid[n - i - 1][n - j - 1]
            grid[n - i - 1][n - j - 1] = grid[n - j - 1][i]
            grid[n - j - 1][i] = tmp


def _find_target(array: List[int], x: int, stop: int) -> int:
    if x == 0:
        return x
    for t in range(x - 1, -1, -1):
        if array[t] != 0:
            if array[t] != array[x]:
                return t + 1
            return t
        if t == stop:
            return t
    return x


def slide_array(array: List[int]) -> Tuple[bool, int]:
    """
    Slide one line toward index 0 in place, merging equal neighbours.

    A merged cell is fenced off with ``stop`` so it cannot take a second
    tile in the same pass: [1, 1, 1, 0] becomes [2, 1, 0, 0].

    Args:
        array: Ranks of one column, front first

    Returns:
        Tuple of (changed, score gained)
    """
    changed = False
    gained = 0
    stop = 0

    for x in range(len(array)):
        if array[x] == 0:
            continue
        t = _find_target(array, x, stop)
        if t == x:
            continue
        if array[t] != 0:
            array[t] += 1
            gained += 1 << array[t]
            stop = t + 1
        else:
            array[t] = array[x]
        array[x] = 0
        changed = True

    return changed, gained


def move_grid(grid: List[List[int]], direction: str) -> Tuple[bool, int]:
    """
    Shift all tiles of the grid in the given direction, in place.

    Args:
        grid: Grid to modify
        direction: One of 'up', 'down', 'left', 'right'

    Returns:
        Tuple of (changed, score gained). Unknown directions return (False, 0).
    """
    turns = ROTATIONS.get(direction)
    if turns is None:
        return False, 0

    for _ in range(turns):
        rotate_grid(grid)

    changed = False
    gained = 0
    for column in grid:
        column_changed, column_gained = slide_array(column)
        changed |= column_changed
        gained += column_gained

    for _ in range((4 - turns) % 4):
        rotate_grid(grid)

    return changed, gained


def count_empty(grid: List[List[int]]) -> int:
    """Number of empty cells in the grid."""
    return sum(1 for column in grid for rank in column if rank == 0)


def find_pair_down(grid: List[List[int]]) -> bool:
    """
    Check for two equal vertical neighbours.

    Args:
        grid: Grid to inspect

    Returns:
        True if some column holds the same rank twice in a row
    """
    for column in grid:
        for y in range(len(column) - 1):
            if column[y] == column[y + 1]:
                return True
    return False


def is_game_over(grid: List[List[int]]) -> bool:
    """
    Check if the game is over (no empty cells and no equal neighbours).

    Args:
        grid: Grid to inspect, left as it was found

    Returns:
        True if no move can change the grid, False otherwise
    """
    if count_empty(grid) > 0:
        return False
    if find_pair_down(grid):
        return False
    rotate_grid(grid)
    ended = not find_pair_down(grid)
    for _ in range(3):
        rotate_grid(grid)
    return ended


def add_random_tile(grid: List[List[int]],
                    rng: Optional[random.Random] = None) -> Optional[Tuple[int, int, int]]:
    """
    Add a tile (rank 1 with 90% probability or rank 2 with 10%)
    to a random empty cell. Modifies the grid in place.

    Args:
        grid: Grid to add the tile to
        rng: Random source, defaults to the module-level generator

    Returns:
        (x, y, rank) of the new tile, or None when the grid is full
    """
    rng = rng or random
    empty_cells = [
        (x, y) for x, column in enumerate(grid) for y, rank in enumerate(column) if rank == 0
    ]
    if not empty_cells:
        return None
    x, y = empty_cells[rng.randrange(len(empty_cells))]
    rank = 2 if rng.random() < SPAWN_HIGH_RANK_PROBABILITY else 1
    grid[x][y] = rank
    return x, y, rank


class GameSession:
    """
    One running game: grid, score and the random source used for spawns.

    The session starts empty; call ``reset()`` to place the first two tiles.
    Not safe to share between threads without external locking.
    """

    def __init__(self, size: int = SIZE, seed: Optional[int] = None):
        self.size = size
        self.grid = empty_grid(size)
        self.score = 0
        self._rng = random.Random(seed)

    @classmethod
    def from_save_string(cls, text: str, size: int = SIZE,
                         seed: Optional[int] = None) -> "GameSession":
        """
        Create a session holding the state of a save string.

        Raises:
            save_codec.SaveStringError: if the string is malformed
        """
        session = cls(size, seed)
        session.restore(text)
        return session

    def reset(self) -> None:
        """Start over: empty grid with two new tiles, score 0."""
        self.grid = init_grid(self.size, self._rng)
        self.score = 0

    def apply_move(self, direction: str) -> bool:
        """
        Shift the tiles and add the merge gains to the score. No tile spawns.

        Args:
            direction: One of 'up', 'down', 'left', 'right'

        Returns:
            True if the grid changed; unknown directions return False
        """
        changed, gained = move_grid(self.grid, direction)
        self.score += gained
        return changed

    def spawn_tile(self) -> Optional[Tuple[int, int, int]]:
        """Place a random tile; returns (x, y, rank) or None on a full grid."""
        return add_random_tile(self.grid, self._rng)

    def play(self, direction: str) -> bool:
        """Apply a move and spawn a tile if anything changed."""
        if not self.apply_move(direction):
            return False
        self.spawn_tile()
        return True

    def is_game_over(self) -> bool:
        return is_game_over(self.grid)

    def to_save_string(self) -> str:
        return save_codec.to_save_string(self.score, self.grid)

    def restore(self, text: str) -> None:
        """
        Replace score and grid with the state in a save string.

        Raises:
            save_codec.SaveStringError: if the string is malformed; the
                session is left untouched in that case
        """
        score, grid = save_codec.from_save_string(text, self.size)
        self.score = score
        self.grid = grid

    def cell(self, x: int, y: int) -> int:
        """Rank at column x, row y."""
        return self.grid[x][y]

    def snapshot(self) -> Tuple[Tuple[int, ...], ...]:
        """Read-only copy of the grid, columns first."""
        return tuple(tuple(column) for column in self.grid)

    def max_rank(self) -> int:
        return max(max(column) for column in self.grid)
