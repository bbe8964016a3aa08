# tiles.py
# Tile identities layered over the value grid, so a renderer can follow each
# tile as it slides, merges or appears between two snapshots.

import logging
import random
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core import (
    DIRECTION,
    Board,
    copy_board,
    empty_board,
    get_empty_cells,
    line_cell,
    line_position,
    merge_values,
)

logger = logging.getLogger(__name__)

# 90% chance of 2, 10% chance of 4
FOUR_PROBABILITY = 0.1


@dataclass(frozen=True)
class Tile:
    """
    One occupied cell with a stable identity.

    ``is_new``, ``delay_appearance`` and ``merged_from`` describe how the tile came
    to exist in the latest snapshot. ``will_disappear`` and the ``target_*`` fields
    are only set on tiles consumed by a merge, which live in the previous tile set.
    """
    id: int
    value: int
    row: int
    col: int
    is_new: bool = False
    merged_from: Optional[Tuple[int, int]] = None
    delay_appearance: bool = False
    will_disappear: bool = False
    target_row: Optional[int] = None
    target_col: Optional[int] = None
    target_tile_id: Optional[int] = None

    @property
    def position(self) -> Tuple[int, int]:
        return self.row, self.col


def settle(tiles: Iterable[Tile]) -> List[Tile]:
    """Returns copies of the tiles with every per-snapshot flag cleared."""
    return [
        replace(tile, is_new=False, merged_from=None, delay_appearance=False)
        if (tile.is_new or tile.merged_from or tile.delay_appearance) else tile
        for tile in tiles
    ]


def random_tile_value(rng=None) -> int:
    rng = rng or random
    return 4 if rng.random() < FOUR_PROBABILITY else 2


def spawn_tile(board: Sequence[Sequence[int]], tiles: Sequence[Tile], next_id: int,
               rng=None, after_move: bool = False) -> Tuple[Board, List[Tile], int, Optional[Tile]]:
    """
    Adds a new tile (90% chance of 2, 10% chance of 4) on a uniformly chosen empty cell.
    Args:
        board: The current value grid.
        tiles: The live tiles matching the grid.
        next_id (int): The id the new tile receives.
        rng: A random.Random-compatible generator; defaults to the random module.
        after_move (bool): Marks the tile to appear once move animations finish.
    Returns:
        Tuple[Board, List[Tile], int, Optional[Tile]]: New board, new tile list,
            the next unused id and the spawned tile (None if the board was full).
    """
    rng = rng or random
    empty_cells = get_empty_cells(board)
    if not empty_cells:
        return copy_board(board), list(tiles), next_id, None

    row, col = rng.choice(empty_cells)
    value = random_tile_value(rng)

    new_board = copy_board(board)
    new_board[row][col] = value

    new_tile = Tile(id=next_id, value=value, row=row, col=col,
                    is_new=True, delay_appearance=after_move)
    existing = [replace(tile, is_new=False) if tile.is_new else tile for tile in tiles]
    logger.debug("Spawned tile %d (value %d) at (%d, %d)", new_tile.id, value, row, col)
    return new_board, existing + [new_tile], next_id + 1, new_tile


def move_tiles(tiles: Sequence[Tile], direction: DIRECTION, size: int,
               next_id: int) -> Tuple[List[Tile], List[Tile], int]:
    """
    Re-derives tile identities for a move, walking each line exactly as merge_values does.

    Tiles that only slide keep their id and get a new position. Each merging pair
    yields a fresh tile (``merged_from`` = both ids) at the merge position, and both
    sources come back annotated with ``will_disappear`` and that position as target.
    Args:
        tiles: Live tiles before the move, one per occupied cell.
        direction (DIRECTION): The direction of travel.
        size (int): Grid dimension.
        next_id (int): First id available for merge results.
    Returns:
        Tuple[List[Tile], List[Tile], int]: The live tiles after the move, the consumed
            (annotated) tiles, and the next unused id.
    """
    lines: Dict[int, List[Tuple[int, Tile]]] = {}
    for tile in tiles:
        line_index, position = line_position(tile.row, tile.col, size, direction)
        lines.setdefault(line_index, []).append((position, tile))

    moved: List[Tile] = []
    consumed: List[Tile] = []

    for line_index in sorted(lines):
        line_tiles = [tile for _, tile in sorted(lines[line_index], key=lambda pair: pair[0])]
        _, _, was_merge = merge_values([tile.value for tile in line_tiles])

        read_idx = 0
        for out_idx, merged in enumerate(was_merge):
            row, col = line_cell(line_index, out_idx, size, direction)
            if merged:
                first, second = line_tiles[read_idx], line_tiles[read_idx + 1]
                result = Tile(id=next_id, value=first.value * 2, row=row, col=col,
                              merged_from=(first.id, second.id))
                next_id += 1
                for source in (first, second):
                    consumed.append(replace(source, will_disappear=True, target_row=row,
                                            target_col=col, target_tile_id=result.id))
                moved.append(result)
                read_idx += 2
            else:
                tile = line_tiles[read_idx]
                moved.append(tile if tile.position == (row, col) else replace(tile, row=row, col=col))
                read_idx += 1

    return moved, consumed, next_id


def tiles_from_board(board: Sequence[Sequence[int]], next_id: int = 1) -> Tuple[List[Tile], int]:
    """
    Assigns fresh identities to every occupied cell of a bare value grid, in row-major order.
    Returns:
        Tuple[List[Tile], int]: The tiles and the next unused id.
    """
    tiles = []
    for r, row in enumerate(board):
        for c, value in enumerate(row):
            if value != 0:
                tiles.append(Tile(id=next_id, value=value, row=r, col=c))
                next_id += 1
    return tiles, next_id


def board_from_tiles(tiles: Iterable[Tile], size: int) -> Board:
    """
    Rebuilds the value grid from a tile set.
    Raises:
        ValueError: If a tile is out of bounds or two tiles share a cell.
    """
    board = empty_board(size)
    for tile in tiles:
        if not (0 <= tile.row < size and 0 <= tile.col < size):
            raise ValueError(f"Tile {tile.id} at ({tile.row}, {tile.col}) is outside the board.")
        if board[tile.row][tile.col] != 0:
            raise ValueError(f"Tile {tile.id} overlaps another tile at ({tile.row}, {tile.col}).")
        board[tile.row][tile.col] = tile.value
    return board
