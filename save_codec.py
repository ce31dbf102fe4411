"""
Save string codec for 2048 game states.

A save string is base64 over a binary payload:

    score (4 bytes, big-endian) | grid cells in grid[x][y] order, each rank r
                                  written as r one-bits and a zero-bit,
                                  packed MSB first, zero padded to a byte

The string carries no grid size; decode with the size that produced it.
"""

import base64
import binascii
from typing import Iterator, List, Tuple


SCORE_BYTES = 4
MAX_SCORE = (1 << (8 * SCORE_BYTES)) - 1


class SaveStringError(ValueError):
    """Raised when a save string cannot be decoded into a game state."""


def max_rank(size: int) -> int:
    """Largest rank a game on a size x size grid can build."""
    return size * size + 1


def encode64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode64(text: str) -> bytes:
    """
    Decode base64 text, rejecting anything outside the alphabet.

    Args:
        text: Base64 text with standard '=' padding

    Returns:
        Decoded bytes

    Raises:
        SaveStringError: on foreign characters or a wrong length
    """
    try:
        raw = text.encode("ascii")
    except UnicodeEncodeError as e:
        raise SaveStringError(f"Save string contains non-ASCII characters: {text!r}") from e
    try:
        return base64.b64decode(raw, validate=True)
    except binascii.Error as e:
        raise SaveStringError(f"Invalid save string {text!r}: {e}") from e


def pack_state(score: int, grid: List[List[int]]) -> bytes:
    """
    Pack score and grid into the binary payload.

    Args:
        score: Score, 0 <= score < 2**32
        grid: Grid of ranks (list of columns)

    Returns:
        4-byte score header followed by the unary-coded cells
    """
    if not 0 <= score <= MAX_SCORE:
        raise ValueError(f"Score {score} does not fit in {SCORE_BYTES} bytes")

    limit = max_rank(len(grid))
    bits = 0
    bit_count = 0
    for column in grid:
        for rank in column:
            if not 0 <= rank <= limit:
                raise ValueError(f"Invalid rank {rank} for a {len(grid)}x{len(grid)} grid")
            # r ones followed by a zero
            bits = (bits << (rank + 1)) | (((1 << rank) - 1) << 1)
            bit_count += rank + 1

    pad = -bit_count % 8
    cells = (bits << pad).to_bytes((bit_count + pad) // 8, "big")
    return score.to_bytes(SCORE_BYTES, "big") + cells


def _iter_bits(data: bytes) -> Iterator[int]:
    for byte in data:
        for shift in range(7, -1, -1):
            yield (byte >> shift) & 1


def unpack_state(data: bytes, size: int = 4) -> Tuple[int, List[List[int]]]:
    """
    Unpack a binary payload into score and grid.

    The payload must be exactly as long as the cells it encodes need;
    pad bits in the last byte are ignored.

    Args:
        data: Payload produced by pack_state
        size: Width and height of the grid

    Returns:
        Tuple of (score, grid)

    Raises:
        SaveStringError: if the payload is truncated, too long or holds
            a rank no game of this size can reach
    """
    if len(data) < SCORE_BYTES:
        raise SaveStringError(f"Payload of {len(data)} bytes has no room for the score")

    score = int.from_bytes(data[:SCORE_BYTES], "big")
    limit = max_rank(size)
    ranks = []
    count = 0
    consumed = 0

    for bit in _iter_bits(data[SCORE_BYTES:]):
        consumed += 1
        if bit:
            count += 1
            continue
        if count > limit:
            raise SaveStringError(f"Rank {count} is out of range for a {size}x{size} grid")
        ranks.append(count)
        count = 0
        if len(ranks) == size * size:
            break
    else:
        raise SaveStringError(f"Payload ends after {len(ranks)} of {size * size} cells")

    expected = SCORE_BYTES + (consumed + 7) // 8
    if len(data) != expected:
        raise SaveStringError(f"Payload is {len(data)} bytes, expected {expected}")

    grid = [ranks[x * size:(x + 1) * size] for x in range(size)]
    return score, grid


def to_save_string(score: int, grid: List[List[int]]) -> str:
    return encode64(pack_state(score, grid))


def from_save_string(text: str, size: int = 4) -> Tuple[int, List[List[int]]]:
    """
    Decode a save string into (score, grid).

    Raises:
        SaveStringError: if the string is malformed
    """
    return unpack_state(decode64(text), size)
