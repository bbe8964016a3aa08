# cli_driver.py
# This file is intended to be run to play or test the game on the CLI

import argparse
import logging
import random
import time
from typing import Optional

import engine
from core import DIRECTION, GameProgressState
from scoring import ScoreBoard
from settings import CHALLENGE, GAME_MODES, GOAL_TILE, GRID_SIZE, TIME_ATTACK
from storage import InvalidSnapshot, clear_game, load_game, load_high_score, save_game, save_high_score

logger = logging.getLogger(__name__)

DIRECTION_KEYS = {'W': DIRECTION.UP, 'A': DIRECTION.LEFT, 'S': DIRECTION.DOWN, 'D': DIRECTION.RIGHT}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Play the tile-merging game in the terminal.")
    parser.add_argument("--mode", choices=GAME_MODES, default="classic")
    parser.add_argument("--size", type=int, default=GRID_SIZE, help="Board dimension (default: %(default)s)")
    parser.add_argument("--goal", type=int, default=GOAL_TILE, help="Goal tile value (default: %(default)s)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for tile spawns")
    parser.add_argument("--resume", action="store_true", help="Continue the saved game if there is one")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: %(default)s)")
    return parser.parse_args(argv)


def start_game(args, rng) -> engine.GameState:
    if args.resume:
        try:
            saved = load_game()
        except InvalidSnapshot as e:
            print(f"Saved game could not be restored ({e}); starting a new one.")
            saved = None
        if saved is not None and not saved.game_over:
            return saved
    return engine.initialize(mode=args.mode, grid_size=args.size, goal_value=args.goal, rng=rng)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    rng = random.Random(args.seed)

    # 1. Initialize game
    state = start_game(args, rng)
    score_board = ScoreBoard(high_score=load_high_score())
    score_board.resume(state)
    display_board_state(state, score_board)
    clock = time.monotonic()

    # 2. Game Loop
    while not state.game_over:
        move_input = input("Enter move (W/A/S/D for Up/Left/Down/Right, Q to save and quit): ").strip().upper()

        # The clock keeps running while waiting for input
        if state.mode == TIME_ATTACK:
            now = time.monotonic()
            elapsed = int(now - clock)
            if elapsed:
                clock += elapsed
                state = engine.tick(state, elapsed)
            if state.game_over:
                print("Time is up!")
                break

        if move_input == 'Q':
            save_game(state)
            print("Game saved. Quitting.")
            break

        chosen_direction = DIRECTION_KEYS.get(move_input)
        if not chosen_direction:
            print("Invalid input. Use W, A, S, D.")
            continue

        # 3. Process the move (slide, merge, spawn)
        next_state = engine.move(state, chosen_direction, rng=rng)
        if next_state is state:
            print("Move did not change the board. Try a different direction.")
            continue

        state = next_state
        bonus = score_board.record(state)
        display_board_state(state, score_board, bonus)

    # 4. Game Ended
    if state.game_over:
        clear_game()
        print("\n--- Final Board State ---")
        display_board_state(state, score_board)
        print(final_message(state))
    save_high_score(score_board.high_score)



def final_message(state: engine.GameState) -> str:
    """What to tell the player once the game has ended."""
    if engine.progress(state) == GameProgressState.GAME_WON:
        return f"Congratulations! You reached the {state.goal_value} tile (or the challenge target)!"
    if state.mode == TIME_ATTACK and state.time_left == 0:
        return "Time is up! Better luck next time!"
    if state.mode == CHALLENGE and state.move_count >= state.moves_limit:
        return f"Out of moves: the {state.target_value} tile was not reached in {state.moves_limit} moves."
    return "No more moves possible. Better luck next time!"

# --- Display Function (Example of external usage) ---
def display_board_state(state: engine.GameState, score_board: ScoreBoard, bonus: Optional[int] = None):
    """Prints the board, score, and game status to the console."""
    print(f"\nScore: {state.score}  Bonus: {score_board.bonus_points}  Best: {score_board.high_score}")
    if bonus:
        print(f"+{bonus} bonus!")
    progress = engine.progress(state)
    status_message = {
        GameProgressState.INITIALIZED: f"Status: {progress.name}",
        GameProgressState.IN_PROGRESS: f"Status: {progress.name}",
        GameProgressState.GAME_WON: "YOU WON!",
        GameProgressState.GAME_OVER: "GAME OVER!"
    }
    print(status_message.get(progress, f"Status: {progress.name} (Unknown)"))
    if state.time_left is not None:
        print(f"Time left: {state.time_left // 60:02d}:{state.time_left % 60:02d}")
    if state.moves_limit is not None:
        print(f"Target: {state.target_value}  Moves left: {state.moves_limit - state.move_count}")

    for row in state.board:
        print("\t".join(map(str, row)))
    print("-" * (state.grid_size * 6)) # Adjust width based on board size


if __name__ == "__main__":
    main()
