# engine.py
# Engine facade: immutable game snapshots and the transitions between them.
# Callers hold a GameState and feed it back in; nothing here keeps game state
# between calls, so any number of games can run side by side.

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Set, Tuple

from core import (
    DIRECTION,
    GameProgressState,
    InvalidConfiguration,
    boards_equal,
    check_for_win,
    determine_game_status,
    empty_board,
    freeze_board,
    get_board_size,
    is_board_exhausted,
    is_power_of_two,
    parse_direction,
    process_move,
)
from settings import (
    CHALLENGE,
    CHALLENGE_MOVES_LIMIT,
    CHALLENGE_TARGET,
    CLASSIC,
    GAME_MODES,
    GOAL_TILE,
    GRID_SIZE,
    TIME_ATTACK,
    TIME_ATTACK_SECONDS,
)
from tiles import Tile, move_tiles, settle, spawn_tile, tiles_from_board

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameState:
    """
    Immutable snapshot of one game.

    ``board`` is the N x N value grid (0 = empty) and ``tiles`` holds one Tile per
    occupied cell. ``previous_tiles`` is the tile set as it stood before the last
    move, with merge-consumed tiles annotated; the engine never reads it.
    ``next_tile_id`` is the id the next created tile will receive.
    """
    board: Tuple[Tuple[int, ...], ...]
    tiles: Tuple[Tile, ...]
    score: int = 0
    move_count: int = 0
    grid_size: int = GRID_SIZE
    goal_value: int = GOAL_TILE
    goal_reached: bool = False
    game_over: bool = False
    mode: str = CLASSIC
    won: bool = False
    time_limit: Optional[int] = None
    time_left: Optional[int] = None
    target_value: Optional[int] = None
    moves_limit: Optional[int] = None
    previous_tiles: Optional[Tuple[Tile, ...]] = None
    next_tile_id: int = 1
    last_move_score: int = 0

    @property
    def tile_map(self):
        """Live tiles keyed by id."""
        return {tile.id: tile for tile in self.tiles}


# --- Configuration ---

def _require_positive_int(name: str, value, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidConfiguration(f"{name} must be an integer >= {minimum}, got {value!r}.")
    return value


def _mode_fields(mode: str, time_limit: Optional[int], target_value: Optional[int],
                 moves_limit: Optional[int]) -> dict:
    if mode not in GAME_MODES:
        raise InvalidConfiguration(f"Unknown game mode {mode!r}; expected one of {', '.join(GAME_MODES)}.")
    fields = {"mode": mode}
    if mode == TIME_ATTACK:
        fields["time_limit"] = fields["time_left"] = _require_positive_int(
            "time_limit", TIME_ATTACK_SECONDS if time_limit is None else time_limit)
    elif mode == CHALLENGE:
        fields["target_value"] = _require_positive_int(
            "target_value", CHALLENGE_TARGET if target_value is None else target_value)
        fields["moves_limit"] = _require_positive_int(
            "moves_limit", CHALLENGE_MOVES_LIMIT if moves_limit is None else moves_limit)
    return fields


# --- Construction ---

def initialize(mode: str = CLASSIC, grid_size: int = GRID_SIZE, goal_value: int = GOAL_TILE,
               rng=None, time_limit: Optional[int] = None, target_value: Optional[int] = None,
               moves_limit: Optional[int] = None) -> GameState:
    """
    Starts a new game: an empty N x N board with two spawned tiles, score 0.
    Args:
        mode (str): "classic", "time_attack" or "challenge".
        grid_size (int): Board dimension, at least 2.
        goal_value (int): Tile value that marks the goal as reached.
        rng: A random.Random-compatible generator; defaults to the random module.
        time_limit (Optional[int]): Seconds on the clock for time attack.
        target_value (Optional[int]): Tile to reach in challenge mode.
        moves_limit (Optional[int]): Move budget in challenge mode.
    Returns:
        GameState: The initial snapshot.
    Raises:
        InvalidConfiguration: If any setting is out of range or the mode is unknown.
    """
    _require_positive_int("grid_size", grid_size, minimum=2)
    _require_positive_int("goal_value", goal_value)
    fields = _mode_fields(mode, time_limit, target_value, moves_limit)

    state = GameState(board=freeze_board(empty_board(grid_size)), tiles=(),
                      grid_size=grid_size, goal_value=goal_value, **fields)
    # Second spawn sees the board left by the first.
    state = spawn(spawn(state, rng=rng), rng=rng)
    logger.debug("Initialized %s game on a %dx%d board (goal %d)", mode, grid_size, grid_size, goal_value)
    return state


def from_board(board: Sequence[Sequence[int]], mode: str = CLASSIC, goal_value: int = GOAL_TILE,
               score: int = 0, move_count: int = 0, time_limit: Optional[int] = None,
               target_value: Optional[int] = None, moves_limit: Optional[int] = None) -> GameState:
    """
    Builds a snapshot around an existing value grid, giving its tiles fresh identities.
    Raises:
        InvalidConfiguration: If the grid is not square, too small, or holds a value
                              that is neither 0 nor a power of two >= 2.
    """
    try:
        size = get_board_size(board)
    except ValueError as e:
        raise InvalidConfiguration(str(e)) from None
    _require_positive_int("grid_size", size, minimum=2)
    _require_positive_int("goal_value", goal_value)
    for row in board:
        for value in row:
            if value != 0 and (value < 2 or not is_power_of_two(value)):
                raise InvalidConfiguration(f"Cell value {value!r} is not a power of two >= 2.")
    fields = _mode_fields(mode, time_limit, target_value, moves_limit)

    tiles, next_id = tiles_from_board(board)
    state = GameState(board=freeze_board(board), tiles=tuple(tiles), score=score,
                      move_count=move_count, grid_size=size, goal_value=goal_value,
                      goal_reached=check_for_win(board, goal_value), next_tile_id=next_id, **fields)
    return _apply_end_conditions(state)


def restart(state: GameState, rng=None) -> GameState:
    """Starts a fresh game with the same configuration as ``state``."""
    return initialize(mode=state.mode, grid_size=state.grid_size, goal_value=state.goal_value, rng=rng,
                      time_limit=state.time_limit, target_value=state.target_value,
                      moves_limit=state.moves_limit)


# --- Transitions ---

def spawn(state: GameState, after_move: bool = False, rng=None) -> GameState:
    """
    Places one new tile (2 or 4) on a random empty cell.
    Returns:
        GameState: The new snapshot, or ``state`` itself when the board is full.
    """
    board, tiles, next_id, new_tile = spawn_tile(state.board, state.tiles, state.next_tile_id,
                                                 rng=rng, after_move=after_move)
    if new_tile is None:
        return state
    return replace(state, board=freeze_board(board), tiles=tuple(tiles), next_tile_id=next_id,
                   goal_reached=state.goal_reached or check_for_win(board, state.goal_value))


def move(state: GameState, direction, rng=None) -> GameState:
    """
    Slides every line towards ``direction``, merges, scores, then spawns one tile.
    Args:
        state (GameState): The current snapshot.
        direction (DIRECTION | str): "up", "down", "left" or "right".
        rng: A random.Random-compatible generator for the spawn.
    Returns:
        GameState: The next snapshot, or ``state`` itself if nothing moved or the
                   game is already over.
    Raises:
        InvalidDirection: If ``direction`` is not one of the four directions.
    """
    direction = parse_direction(direction)
    if state.game_over:
        logger.debug("Ignoring %s move: game is over", direction.value)
        return state

    new_board, score_delta, moved = process_move(state.board, direction)
    if not moved:
        logger.debug("Move %s changed nothing", direction.value)
        return state

    live, consumed, next_id = move_tiles(settle(state.tiles), direction, state.grid_size,
                                         state.next_tile_id)
    consumed_by_id = {tile.id: tile for tile in consumed}
    previous = tuple(consumed_by_id.get(tile.id, tile) for tile in state.tiles)

    goal_reached = state.goal_reached or check_for_win(new_board, state.goal_value)
    moved_state = replace(
        state,
        board=freeze_board(new_board),
        tiles=tuple(live),
        score=state.score + score_delta,
        move_count=state.move_count + 1,
        goal_reached=goal_reached,
        previous_tiles=previous,
        next_tile_id=next_id,
        last_move_score=score_delta,
    )
    logger.debug("Move %s: %d merges, +%d points", direction.value, len(consumed) // 2, score_delta)

    new_state = _apply_end_conditions(spawn(moved_state, after_move=True, rng=rng))
    if new_state.goal_reached and not state.goal_reached:
        logger.info("Goal tile %d reached after %d moves", state.goal_value, new_state.move_count)
    return new_state


def tick(state: GameState, seconds: int = 1) -> GameState:
    """
    Advances the time-attack clock. Any other mode, or a finished game, is returned as is.
    """
    if state.mode != TIME_ATTACK or state.game_over or seconds <= 0:
        return state
    time_left = max(0, state.time_left - seconds)
    new_state = replace(state, time_left=time_left, game_over=time_left == 0)
    if new_state.game_over:
        logger.info("Time attack finished with score %d", new_state.score)
    return new_state


def _apply_end_conditions(state: GameState) -> GameState:
    if state.game_over:
        return state
    if state.mode == CHALLENGE:
        if check_for_win(state.board, state.target_value):
            logger.info("Challenge target %d reached in %d moves", state.target_value, state.move_count)
            return replace(state, game_over=True, won=True)
        if state.move_count >= state.moves_limit:
            logger.info("Challenge move budget of %d used up", state.moves_limit)
            return replace(state, game_over=True)
    if is_game_over(state):
        logger.info("No moves left; final score %d", state.score)
        return replace(state, game_over=True)
    return state


# --- Queries ---

def is_game_over(state: GameState) -> bool:
    """True if the board has no empty cell and no adjacent equal pair."""
    return is_board_exhausted(state.board)


def possible_moves(state: GameState) -> Set[DIRECTION]:
    """
    Directions in which ``move`` would change the board, found by trying each one.
    A finished game has none.
    """
    if state.game_over:
        return set()
    return {
        direction for direction in DIRECTION
        if not boards_equal(process_move(state.board, direction)[0], state.board)
    }


def progress(state: GameState) -> GameProgressState:
    """Reports where the game stands, taking the mode's end conditions into account."""
    if state.mode == CHALLENGE:
        if state.game_over:
            return GameProgressState.GAME_WON if state.won else GameProgressState.GAME_OVER
        return GameProgressState.INITIALIZED if state.move_count == 0 else GameProgressState.IN_PROGRESS
    if state.game_over and not state.goal_reached:
        return GameProgressState.GAME_OVER
    return determine_game_status(state.board, state.goal_value, state.goal_reached, state.move_count)
