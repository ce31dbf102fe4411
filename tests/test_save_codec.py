import pytest

from save_codec import (
    SaveStringError,
    decode64,
    encode64,
    from_save_string,
    pack_state,
    to_save_string,
    unpack_state,
)


def empty():
    return [[0] * 4 for _ in range(4)]


def test_empty_grid_payload():
    assert pack_state(0, empty()) == bytes(6)
    assert to_save_string(0, empty()) == "AAAAAAAA"


def test_known_save_string():
    grid = empty()
    grid[0][0] = 3
    # 1110 then fifteen 0-bits, padded to three bytes
    assert pack_state(8, grid) == b"\x00\x00\x00\x08\xe0\x00\x00"
    assert to_save_string(8, grid) == "AAAACOAAAA=="
    assert from_save_string("AAAACOAAAA==") == (8, grid)


def test_cells_are_written_in_column_order():
    grid = empty()
    grid[0][1] = 1
    # 0 | 10 | 0 ... -> 0100 0000 ...
    assert pack_state(0, grid)[4] == 0b01000000


def test_score_is_big_endian():
    assert pack_state(0x01020304, empty())[:4] == b"\x01\x02\x03\x04"


@pytest.mark.parametrize("score", [0, 8, 65535, 65536, 1 << 20, (1 << 32) - 1])
def test_round_trip_scores(score):
    grid = [[1, 2, 0, 0], [0, 3, 0, 1], [5, 0, 0, 0], [0, 0, 11, 2]]
    assert from_save_string(to_save_string(score, grid)) == (score, grid)
    assert from_save_string(to_save_string(score, empty())) == (score, empty())


def test_round_trip_empty_grid():
    assert from_save_string(to_save_string(0, empty())) == (0, empty())


def test_round_trip_full_grid():
    grid = [[(x * 4 + y) % 17 + 1 for y in range(4)] for x in range(4)]
    assert from_save_string(to_save_string(123456, grid)) == (123456, grid)


def test_round_trip_other_size():
    grid = [[1, 0, 2, 0, 3], [0] * 5, [4, 4, 4, 4, 4], [0, 0, 0, 0, 9], [1] * 5]
    assert from_save_string(to_save_string(42, grid), size=5) == (42, grid)


def test_payload_length():
    grid = empty()
    grid[3][3] = 7
    # 16 terminators + 7 ones = 23 bits -> 3 bytes
    assert len(pack_state(0, grid)) == 4 + 3


def test_pad_bits_are_ignored():
    grid = empty()
    grid[0][0] = 3
    assert unpack_state(b"\x00\x00\x00\x08\xe0\x00\x1f") == (8, grid)


def test_transport_uses_padding():
    assert encode64(b"\x00") == "AA=="
    assert encode64(b"\x00\x00") == "AAA="
    assert decode64("AAA=") == b"\x00\x00"


@pytest.mark.parametrize("text", [
    "AAAACOAAAA=",   # truncated by one character
    "AAAAAAA",       # truncated by one character
    "AAAA*AAA",      # outside the alphabet
    "AAAA-AAA",      # URL-safe symbol
    "AAAA AAA",      # whitespace
    "AAAAAAé=",      # non-ASCII
])
def test_rejects_malformed_text(text):
    with pytest.raises(SaveStringError):
        from_save_string(text)


def test_rejects_payload_without_score():
    with pytest.raises(SaveStringError):
        from_save_string("AAAA")


def test_rejects_payload_too_short_for_the_grid():
    # score plus one byte holds only eight cells
    with pytest.raises(SaveStringError):
        from_save_string("AAAAAAA=")


def test_rejects_trailing_bytes():
    with pytest.raises(SaveStringError):
        unpack_state(bytes(9))


def test_rejects_unreachable_rank():
    # rank 18 in the first cell, fifteen empty cells
    with pytest.raises(SaveStringError):
        unpack_state(bytes(4) + b"\xff\xff\xc0\x00\x00")


def test_encoding_refuses_unreachable_rank():
    grid = empty()
    grid[1][2] = 18
    with pytest.raises(ValueError):
        to_save_string(0, grid)
    grid[1][2] = 17
    assert from_save_string(to_save_string(0, grid)) == (0, grid)


def test_rejects_endless_ones():
    with pytest.raises(SaveStringError):
        from_save_string("AAAA////////")


def test_save_string_error_is_a_value_error():
    assert issubclass(SaveStringError, ValueError)


def test_pack_rejects_out_of_range_input():
    with pytest.raises(ValueError):
        pack_state(1 << 32, empty())
    with pytest.raises(ValueError):
        pack_state(-1, empty())
    grid = empty()
    grid[0][0] = -1
    with pytest.raises(ValueError):
        pack_state(0, grid)
