# core.py
# Stateless grid logic for the tile-merging game: board queries, line
# compaction/merging for all four directions, and terminal-condition checks.

from enum import Enum
from typing import List, Optional, Sequence, Tuple

Board = List[List[int]]


class GameProgressState(Enum):
    """Represents the current progress state of the game."""
    INITIALIZED = 0
    IN_PROGRESS = 1
    GAME_OVER = 2  # Lost, or a challenge/time limit ran out
    GAME_WON = 3


class DIRECTION(str, Enum):
    """Represents the possible move directions."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


# --- Errors ---

class GameError(ValueError):
    """Base class for errors signalled by the engine."""


class InvalidConfiguration(GameError):
    """Raised when a game is initialized with an unusable configuration."""


class InvalidDirection(GameError):
    """Raised when a move is requested in an unknown direction."""


def parse_direction(direction) -> DIRECTION:
    """
    Coerces a direction name or member into a DIRECTION.
    Args:
        direction (DIRECTION | str): "up", "down", "left", "right" (any case) or a member.
    Returns:
        DIRECTION: The matching enum member.
    Raises:
        InvalidDirection: If the value names no known direction.
    """
    if isinstance(direction, DIRECTION):
        return direction
    try:
        return DIRECTION(str(direction).strip().lower())
    except ValueError:
        raise InvalidDirection(f"Unknown direction: {direction!r}") from None


# --- Board Helper Functions ---

def get_board_size(board: Sequence[Sequence[int]]) -> int:
    """
    Gets the size (N) of an N x N board.
    Args:
        board: The game board.
    Returns:
        int: The dimension of the board.
    Raises:
        ValueError: If the board is not square or empty.
    """
    if not board or not all(len(row) == len(board) for row in board):
        raise ValueError("Board must be a non-empty square matrix.")
    return len(board)


def empty_board(size: int) -> Board:
    """Creates an N x N board with every cell empty."""
    return [[0] * size for _ in range(size)]


def copy_board(board: Sequence[Sequence[int]]) -> Board:
    """Returns a mutable row-by-row copy of the board."""
    return [list(row) for row in board]


def freeze_board(board: Sequence[Sequence[int]]) -> Tuple[Tuple[int, ...], ...]:
    """Returns an immutable copy of the board, suitable for storing in a snapshot."""
    return tuple(tuple(row) for row in board)


def value_at(board: Sequence[Sequence[int]], row: int, col: int) -> int:
    """
    Reads a single cell.
    Raises:
        IndexError: If (row, col) lies outside the board.
    """
    n = get_board_size(board)
    if not (0 <= row < n and 0 <= col < n):
        raise IndexError(f"Cell ({row}, {col}) is outside a {n}x{n} board.")
    return board[row][col]


def get_empty_cells(board: Sequence[Sequence[int]]) -> List[Tuple[int, int]]:
    """
    Get coordinates of empty (0-value) cells in the given board.
    Args:
        board: The board to check.
    Returns:
        List[Tuple[int, int]]: List of (row, col) tuples for empty cells, in row-major order.
    """
    n = get_board_size(board)
    empty_cells = []
    for row in range(n):
        for col in range(n):
            if board[row][col] == 0:
                empty_cells.append((row, col))
    return empty_cells


def boards_equal(board_a: Sequence[Sequence[int]], board_b: Sequence[Sequence[int]]) -> bool:
    """Cell-by-cell comparison of two boards of any sequence type."""
    if len(board_a) != len(board_b):
        return False
    return all(tuple(row_a) == tuple(row_b) for row_a, row_b in zip(board_a, board_b))


def is_power_of_two(value: int) -> bool:
    return value > 0 and (value & (value - 1)) == 0


# --- Line Manipulation (Core Move Logic Helpers) ---

def merge_values(values: Sequence[int]) -> Tuple[List[int], int, List[bool]]:
    """
    Merges adjacent identical numbers in a compacted sequence, moving towards index 0.

    A value merges at most once per call: [2, 2, 2] gives [4, 2], never [6] or [4, 4].
    Args:
        values (Sequence[int]): Non-zero values in travel order (leading edge first).
    Returns:
        Tuple[List[int], int, List[bool]]: The merged values, the score gained
                                           and, per output value, whether it is a merge result.
    """
    merged: List[int] = []
    was_merge: List[bool] = []
    score_increase = 0
    read_idx = 0

    while read_idx < len(values):
        current_val = values[read_idx]
        if read_idx + 1 < len(values) and current_val == values[read_idx + 1]:
            merged_value = current_val * 2
            merged.append(merged_value)
            was_merge.append(True)
            score_increase += merged_value
            read_idx += 2  # the next value was consumed by this merge
        else:
            merged.append(current_val)
            was_merge.append(False)
            read_idx += 1

    return merged, score_increase, was_merge


def process_line(line: Sequence[int]) -> Tuple[List[int], int, bool]:
    """
    Compacts and merges a single line towards index 0.
    Args:
        line (Sequence[int]): The line to process, leading edge first.
    Returns:
        Tuple[List[int], int, bool]: The processed line, score increase, and if the line changed.
    """
    n = len(line)
    merged, score_delta, _ = merge_values([v for v in line if v != 0])
    final_line = merged + [0] * (n - len(merged))
    return final_line, score_delta, tuple(final_line) != tuple(line)


# --- Board Transformations ---

def transpose_board(board: Sequence[Sequence[int]]) -> Board:
    """
    Transposes a given board (swaps rows and columns).
    Args:
        board: The board to transpose.
    Returns:
        Board: A new transposed board.
    """
    n = get_board_size(board)
    new_board = empty_board(n)
    for r in range(n):
        for c in range(n):
            new_board[c][r] = board[r][c]
    return new_board


def reverse_rows(board: Sequence[Sequence[int]]) -> Board:
    """
    Reverses each row in a given board.
    Args:
        board: The board whose rows are to be reversed.
    Returns:
        Board: A new board with rows reversed.
    """
    return [list(row)[::-1] for row in board]


def to_leading_edge(board: Sequence[Sequence[int]], direction: DIRECTION) -> Board:
    """
    Re-orients the board so that the given direction becomes a leftward move.
    Every row of the result is one line, leading edge at index 0.
    """
    if direction == DIRECTION.LEFT:
        return copy_board(board)
    if direction == DIRECTION.RIGHT:
        return reverse_rows(board)
    if direction == DIRECTION.UP:
        return transpose_board(board)
    if direction == DIRECTION.DOWN:
        return reverse_rows(transpose_board(board))
    raise InvalidDirection(f"Invalid direction specified: {direction!r}")


def from_leading_edge(board: Sequence[Sequence[int]], direction: DIRECTION) -> Board:
    """Inverse of to_leading_edge."""
    if direction == DIRECTION.LEFT:
        return copy_board(board)
    if direction == DIRECTION.RIGHT:
        return reverse_rows(board)
    if direction == DIRECTION.UP:
        return transpose_board(board)
    if direction == DIRECTION.DOWN:
        return transpose_board(reverse_rows(board))
    raise InvalidDirection(f"Invalid direction specified: {direction!r}")


def line_cell(line_index: int, position: int, size: int, direction: DIRECTION) -> Tuple[int, int]:
    """
    Maps (line, position-from-leading-edge) back to board (row, col) for a direction.
    """
    if direction == DIRECTION.LEFT:
        return line_index, position
    if direction == DIRECTION.RIGHT:
        return line_index, size - 1 - position
    if direction == DIRECTION.UP:
        return position, line_index
    if direction == DIRECTION.DOWN:
        return size - 1 - position, line_index
    raise InvalidDirection(f"Invalid direction specified: {direction!r}")


def line_position(row: int, col: int, size: int, direction: DIRECTION) -> Tuple[int, int]:
    """Inverse of line_cell: board (row, col) to (line index, position from leading edge)."""
    if direction == DIRECTION.LEFT:
        return row, col
    if direction == DIRECTION.RIGHT:
        return row, size - 1 - col
    if direction == DIRECTION.UP:
        return col, row
    if direction == DIRECTION.DOWN:
        return col, size - 1 - row
    raise InvalidDirection(f"Invalid direction specified: {direction!r}")


# --- Core Game Move Processing ---

def process_move(board: Sequence[Sequence[int]], direction) -> Tuple[Board, int, bool]:
    """
    Processes a move in the specified direction on a copy of the board.
    Args:
        board: The current game board.
        direction (DIRECTION | str): The direction to move.
    Returns:
        Tuple[Board, int, bool]:
            - The new board state after the move.
            - The score gained from this move.
            - A boolean indicating if the board changed as a result of the move.
    Raises:
        InvalidDirection: If an invalid direction is specified.
    """
    direction = parse_direction(direction)
    lines = to_leading_edge(board, direction)
    score_gained = 0
    move_changed_board = False

    for idx, line in enumerate(lines):
        final_line, score_from_line, line_changed = process_line(line)
        if line_changed:
            lines[idx] = final_line
            score_gained += score_from_line
            move_changed_board = True

    if not move_changed_board:
        return copy_board(board), 0, False
    return from_leading_edge(lines, direction), score_gained, True


# --- Game State Checks ---

def check_for_win(board: Sequence[Sequence[int]], win_tile: int) -> bool:
    """
    Check if the goal is reached (any tile at or above win_tile).
    Args:
        board: The game board.
        win_tile (int): The tile value that signifies a win.
    Returns:
        bool: True if some cell holds a value >= win_tile.
    """
    return any(value >= win_tile for row in board for value in row)


def has_adjacent_pair(board: Sequence[Sequence[int]]) -> bool:
    """True if two horizontally or vertically adjacent non-empty cells hold the same value."""
    n = get_board_size(board)
    for r in range(n):
        for c in range(n):
            value = board[r][c]
            if value == 0:
                continue
            if c + 1 < n and board[r][c + 1] == value:
                return True
            if r + 1 < n and board[r + 1][c] == value:
                return True
    return False


def is_board_exhausted(board: Sequence[Sequence[int]]) -> bool:
    """
    Checks whether no move can change the board.
    Returns:
        bool: True if the board has no empty cell and no adjacent equal pair.
    """
    return not get_empty_cells(board) and not has_adjacent_pair(board)


def determine_game_status(board: Sequence[Sequence[int]], win_tile: int,
                          goal_reached: bool = False,
                          move_count: Optional[int] = None) -> GameProgressState:
    """
    Determines the current progress state of the game based on the board.
    Args:
        board: The current game board.
        win_tile (int): The tile value that signifies a win.
        goal_reached (bool): Sticky flag carried over from earlier states.
        move_count (Optional[int]): Moves played so far; 0 reports INITIALIZED.
    Returns:
        GameProgressState: The current state.
    """
    if goal_reached or check_for_win(board, win_tile):
        return GameProgressState.GAME_WON
    if is_board_exhausted(board):
        return GameProgressState.GAME_OVER
    if move_count == 0:
        return GameProgressState.INITIALIZED
    return GameProgressState.IN_PROGRESS
