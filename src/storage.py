# storage.py
# Saved-game snapshots: pydantic models that round-trip a GameState losslessly,
# plus JSON file helpers for the save slot and the high score.

import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, model_validator

from core import GameError, boards_equal, freeze_board, is_power_of_two
from engine import GameState
from settings import (
    CHALLENGE,
    CLASSIC,
    GAME_MODES,
    HIGH_SCORE_FILE_NAME,
    SAVE_FILE_NAME,
    TIME_ATTACK,
    storage_dir,
)
from tiles import Tile, board_from_tiles

logger = logging.getLogger(__name__)


class InvalidSnapshot(GameError):
    """Raised when saved state cannot be turned back into a consistent GameState."""


class TileData(BaseModel):
    """Serialized form of a Tile."""
    id: int = Field(..., ge=1)
    value: int = Field(..., ge=2)
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    is_new: bool = False
    merged_from: Optional[Tuple[int, int]] = None
    delay_appearance: bool = False
    will_disappear: bool = False
    target_row: Optional[int] = None
    target_col: Optional[int] = None
    target_tile_id: Optional[int] = None

    @classmethod
    def from_tile(cls, tile: Tile) -> "TileData":
        return cls(**asdict(tile))

    def to_tile(self) -> Tile:
        return Tile(**self.model_dump())


class GameSnapshot(BaseModel):
    """Complete, validated save format of a GameState."""
    board: List[List[int]] = Field(..., description="The N x N value grid; 0 is an empty cell.")
    tiles: List[TileData] = Field(default_factory=list, description="One tile per occupied cell.")
    score: int = Field(0, ge=0)
    move_count: int = Field(0, ge=0)
    grid_size: int = Field(..., gt=1)
    goal_value: int = Field(..., gt=0)
    goal_reached: bool = False
    game_over: bool = False
    mode: str = CLASSIC
    won: bool = False
    time_limit: Optional[int] = Field(default=None, gt=0)
    time_left: Optional[int] = Field(default=None, ge=0)
    target_value: Optional[int] = Field(default=None, gt=0)
    moves_limit: Optional[int] = Field(default=None, gt=0)
    previous_tiles: Optional[List[TileData]] = None
    next_tile_id: int = Field(1, ge=1)
    last_move_score: int = Field(0, ge=0)

    @model_validator(mode="after")
    def check_consistency(self) -> "GameSnapshot":
        if self.mode not in GAME_MODES:
            raise ValueError(f"Unknown game mode {self.mode!r}.")
        self._check_mode_fields()
        if len(self.board) != self.grid_size or any(len(row) != self.grid_size for row in self.board):
            raise ValueError(f"Board is not {self.grid_size}x{self.grid_size}.")
        for row in self.board:
            for value in row:
                if value != 0 and (value < 2 or not is_power_of_two(value)):
                    raise ValueError(f"Cell value {value} is not a power of two >= 2.")
        tiles = [tile.to_tile() for tile in self.tiles]
        if not boards_equal(board_from_tiles(tiles, self.grid_size), self.board):
            raise ValueError("Tiles do not match the board.")
        ids = [tile.id for tile in tiles]
        if len(set(ids)) != len(ids):
            raise ValueError("Tile ids are not unique.")
        if ids and self.next_tile_id <= max(ids):
            raise ValueError("next_tile_id must be greater than every tile id.")
        return self

    def _check_mode_fields(self) -> None:
        clock = {"time_limit": self.time_limit, "time_left": self.time_left}
        challenge = {"target_value": self.target_value, "moves_limit": self.moves_limit}
        required = clock if self.mode == TIME_ATTACK else challenge if self.mode == CHALLENGE else {}
        for name, value in {**clock, **challenge}.items():
            if name in required and value is None:
                raise ValueError(f"{name} is required in {self.mode} mode.")
            if name not in required and value is not None:
                raise ValueError(f"{name} is not allowed in {self.mode} mode.")
        if self.mode == TIME_ATTACK and self.time_left > self.time_limit:
            raise ValueError("time_left cannot exceed time_limit.")

    @classmethod
    def from_state(cls, state: GameState) -> "GameSnapshot":
        previous = None
        if state.previous_tiles is not None:
            previous = [TileData.from_tile(tile) for tile in state.previous_tiles]
        return cls(
            board=[list(row) for row in state.board],
            tiles=[TileData.from_tile(tile) for tile in state.tiles],
            score=state.score,
            move_count=state.move_count,
            grid_size=state.grid_size,
            goal_value=state.goal_value,
            goal_reached=state.goal_reached,
            game_over=state.game_over,
            mode=state.mode,
            won=state.won,
            time_limit=state.time_limit,
            time_left=state.time_left,
            target_value=state.target_value,
            moves_limit=state.moves_limit,
            previous_tiles=previous,
            next_tile_id=state.next_tile_id,
            last_move_score=state.last_move_score,
        )

    def to_state(self) -> GameState:
        previous = None
        if self.previous_tiles is not None:
            previous = tuple(tile.to_tile() for tile in self.previous_tiles)
        return GameState(
            board=freeze_board(self.board),
            tiles=tuple(tile.to_tile() for tile in self.tiles),
            score=self.score,
            move_count=self.move_count,
            grid_size=self.grid_size,
            goal_value=self.goal_value,
            goal_reached=self.goal_reached,
            game_over=self.game_over,
            mode=self.mode,
            won=self.won,
            time_limit=self.time_limit,
            time_left=self.time_left,
            target_value=self.target_value,
            moves_limit=self.moves_limit,
            previous_tiles=previous,
            next_tile_id=self.next_tile_id,
            last_move_score=self.last_move_score,
        )


class HighScoreData(BaseModel):
    high_score: int = Field(0, ge=0)


# --- Files ---

def _save_path(path: Optional[Path]) -> Path:
    return Path(path) if path is not None else storage_dir() / SAVE_FILE_NAME


def _high_score_path(path: Optional[Path]) -> Path:
    return Path(path) if path is not None else storage_dir() / HIGH_SCORE_FILE_NAME


def save_game(state: GameState, path: Optional[Path] = None) -> Path:
    """Writes the snapshot as JSON and returns the file it went to."""
    target = _save_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(GameSnapshot.from_state(state).model_dump_json(), encoding="utf-8")
    logger.info("Saved game (move %d, score %d) to %s", state.move_count, state.score, target)
    return target


def load_game(path: Optional[Path] = None) -> Optional[GameState]:
    """
    Reads a saved game back.
    Returns:
        Optional[GameState]: The saved state, or None when there is no save.
    Raises:
        InvalidSnapshot: If the file exists but does not describe a consistent game.
    """
    source = _save_path(path)
    if not source.exists():
        return None
    try:
        snapshot = GameSnapshot.model_validate_json(source.read_text(encoding="utf-8"))
    except ValidationError as e:
        raise InvalidSnapshot(f"Saved game at {source} is invalid: {e}") from e
    logger.info("Loaded game from %s", source)
    return snapshot.to_state()


def clear_game(path: Optional[Path] = None) -> None:
    _save_path(path).unlink(missing_ok=True)


def load_high_score(path: Optional[Path] = None) -> int:
    """Best score so far; 0 when nothing (or nothing readable) is stored."""
    source = _high_score_path(path)
    if not source.exists():
        return 0
    try:
        return HighScoreData.model_validate_json(source.read_text(encoding="utf-8")).high_score
    except ValidationError:
        logger.warning("Could not read high score from %s; starting from 0", source)
        return 0


def save_high_score(score: int, path: Optional[Path] = None) -> Path:
    target = _high_score_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(HighScoreData(high_score=score).model_dump_json(), encoding="utf-8")
    return target
