import logging
import random
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import core
import engine
from settings import CLASSIC, GOAL_TILE, GRID_SIZE, RATE_LIMIT
from storage import GameSnapshot

logger = logging.getLogger(__name__)

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="Fusion 2048 Game API",
    description="A stateless API for playing the tile-merging game. "\
                "The client keeps the full game snapshot and sends it back with every request.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Pydantic Models for API requests and responses ---

class NewGameSettings(BaseModel):
    """Settings for creating a new game."""
    mode: str = Field(
        default=CLASSIC,
        description="Game mode: classic, time_attack or challenge."
    )
    size: Optional[int] = Field(
        default=GRID_SIZE,
        gt=1, # Board size must be at least 2x2
        description="Size of the N x N game board (e.g., 5 for a 5x5 board)."
    )
    win_tile: Optional[int] = Field(
        default=GOAL_TILE,
        gt=0,
        description="The tile value that marks the goal as reached (e.g., 8192)."
    )
    time_limit: Optional[int] = Field(default=None, gt=0, description="Seconds on the clock in time_attack mode.")
    target_value: Optional[int] = Field(default=None, gt=0, description="Tile to reach in challenge mode.")
    moves_limit: Optional[int] = Field(default=None, gt=0, description="Move budget in challenge mode.")
    seed: Optional[int] = Field(default=None, description="Seed for the tile spawns of this request.")


class GameStateData(BaseModel):
    """Represents the complete state of a game instance."""
    state: GameSnapshot = Field(..., description="Full game snapshot; send it back unchanged with the next request.")
    progress: core.GameProgressState = Field(
        ...,
        description="Current progress state of the game (INITIALIZED, IN_PROGRESS, GAME_WON, GAME_OVER)."
    )
    possible_moves: List[core.DIRECTION] = Field(..., description="Directions that would change the board.")


class MoveRequestData(BaseModel):
    """Data required to make a move."""
    state: GameSnapshot = Field(..., description="Current game snapshot before the move.")
    direction: core.DIRECTION = Field(
        ...,
        description="Direction of the move (up, down, left, right)."
    )
    seed: Optional[int] = Field(default=None, description="Seed for the tile spawned after the move.")


class TickRequestData(BaseModel):
    """Advances the clock of a time attack game."""
    state: GameSnapshot
    seconds: int = Field(default=1, ge=1)


class MoveResponseData(GameStateData):
    """Response after a move, including the new game state and move effectiveness."""
    move_was_effective: bool = Field(
        ...,
        description="True if the move resulted in a change to the board state, False otherwise."
    )
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g., if a move was invalid, game ended, or other info."
    )


def _rng(seed: Optional[int]):
    return random.Random(seed) if seed is not None else None


def _state_data(state: engine.GameState) -> dict:
    return dict(
        state=GameSnapshot.from_state(state),
        progress=engine.progress(state),
        possible_moves=sorted(engine.possible_moves(state), key=lambda d: d.value),
    )

# --- API Endpoints ---

@app.post("/game/new", response_model=GameStateData, summary="Start a New Game")
@limiter.limit(RATE_LIMIT)
async def start_new_game(request: Request, settings: NewGameSettings):
    """
    Initializes a new game based on the provided settings.

    - **mode**: classic, time_attack or challenge. Default is classic.
    - **size**: Dimension of the N x N board. Default is 5.
    - **win_tile**: Tile value to reach for the goal. Default is 8192.

    Returns the initial snapshot with two random tiles, score 0 and progress INITIALIZED.
    """
    try:
        state = engine.initialize(
            mode=settings.mode,
            grid_size=settings.size if settings.size is not None else GRID_SIZE,
            goal_value=settings.win_tile if settings.win_tile is not None else GOAL_TILE,
            rng=_rng(settings.seed),
            time_limit=settings.time_limit,
            target_value=settings.target_value,
            moves_limit=settings.moves_limit,
        )
        return GameStateData(**_state_data(state))
    except ValueError as e:
        # Handle errors from engine.initialize (e.g., invalid size or mode)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in /game/new: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")


@app.post("/game/move", response_model=MoveResponseData, summary="Make a Move in the Game")
@limiter.limit(RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequestData):
    """
    Processes a player's move in the game.

    The API will:
    1. Slide and merge every line towards the chosen direction.
    2. If the move changed the board, add a new random tile (2 or 4).
    3. Apply the mode's end conditions and report the new progress.

    Returns the updated snapshot, whether the move was effective, and an optional message.
    """
    try:
        current_state = request_data.state.to_state()
        new_state = engine.move(current_state, request_data.direction, rng=_rng(request_data.seed))

        move_was_effective = new_state is not current_state
        current_progress = engine.progress(new_state)

        message_for_client: Optional[str] = None
        if current_state.game_over:
            message_for_client = "Game is already over."
        elif not move_was_effective:
            message_for_client = "Move was not effective; board state unchanged by slide."
        elif new_state.game_over and current_progress == core.GameProgressState.GAME_WON:
            message_for_client = "Congratulations! You won!"
        elif new_state.game_over:
            message_for_client = "Game Over. No more valid moves." if engine.is_game_over(new_state) \
                else "Game Over."
        elif new_state.goal_reached and not current_state.goal_reached:
            message_for_client = "Goal tile reached! Keep going."

        return MoveResponseData(
            **_state_data(new_state),
            move_was_effective=move_was_effective,
            message=message_for_client
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Error processing move: {str(e)}")
    except Exception as e:
        logger.error(f"Unexpected error in /game/move: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")


@app.post("/game/tick", response_model=GameStateData, summary="Advance the Time Attack Clock")
@limiter.limit(RATE_LIMIT)
async def tick_clock(request: Request, request_data: TickRequestData):
    """Counts down a time attack game; other modes come back unchanged."""
    try:
        return GameStateData(**_state_data(engine.tick(request_data.state.to_state(), request_data.seconds)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Unexpected error in /game/tick: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred: {str(e)}")


@app.post("/game/possible-moves", response_model=List[core.DIRECTION], summary="List Effective Moves")
@limiter.limit(RATE_LIMIT)
async def list_possible_moves(request: Request, snapshot: GameSnapshot):
    """Returns the directions in which a move would change the board."""
    return sorted(engine.possible_moves(snapshot.to_state()), key=lambda d: d.value)
