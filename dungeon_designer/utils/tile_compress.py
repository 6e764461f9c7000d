"""Run-length encoding for flat tile grids.

Format:
  - Input: row-major sequence of small integer tile values (``bytearray`` or
    any iterable of ints), ``width * height`` long.
  - Output: list of ``[value, count]`` pairs, consecutive runs merged, every
    ``count >= 1``. Runs cross row boundaries; the grid width travels
    separately (see ``export.build_export_bundle``).

Example:
  [0, 0, 0, 1, 1, 0] -> [[0, 3], [1, 2], [0, 1]]

Generated dungeons are mostly wall with rectangular rooms, so rows collapse
into a handful of runs and the state/export payloads stay small.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence


def encode_tiles_rle(tiles: Iterable[int]) -> List[List[int]]:
    """Return ``[[value, count], ...]`` for a row-major tile sequence.

    Args:
        tiles: Flat tile values. An empty input yields an empty list.

    Returns:
        Run list in input order with adjacent equal values merged.
    """
    out: List[List[int]] = []
    prev = None
    count = 0
    for value in tiles:
        value = int(value)
        if value == prev:
            count += 1
            continue
        if prev is not None:
            out.append([prev, count])
        prev, count = value, 1
    if prev is not None:
        out.append([prev, count])
    return out


def decode_tiles_rle(pairs: Sequence[Sequence[int]], expected_length: Optional[int] = None) -> bytearray:
    """Inverse of :func:`encode_tiles_rle`.

    Args:
        pairs: ``[value, count]`` pairs as produced by the encoder (lists or
            tuples; JSON round trips turn tuples into lists).
        expected_length: When given, the decoded grid must have exactly this
            many cells.

    Returns:
        Flat ``bytearray`` of tile values.

    Raises:
        ValueError: a pair is malformed (not two ints, negative or zero count,
            value outside 0..255) or the decoded length does not match
            ``expected_length``.
    """
    out = bytearray()
    for idx, pair in enumerate(pairs):
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ValueError(f"run {idx} is not a [value, count] pair")
        value, count = pair
        if isinstance(value, bool) or isinstance(count, bool):
            raise ValueError(f"run {idx} has non-integer members")
        if not isinstance(value, int) or not isinstance(count, int):
            raise ValueError(f"run {idx} has non-integer members")
        if count < 1:
            raise ValueError(f"run {idx} has count {count}")
        if not 0 <= value <= 255:
            raise ValueError(f"run {idx} has tile value {value}")
        out.extend(bytes((value,)) * count)
    if expected_length is not None and len(out) != expected_length:
        raise ValueError(f"decoded {len(out)} tiles, expected {expected_length}")
    return out


__all__ = ["encode_tiles_rle", "decode_tiles_rle"]
