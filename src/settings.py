# settings.py
# Default configuration shared by the engine, the API and the CLI driver.

import os
from pathlib import Path

GRID_SIZE = 5
GOAL_TILE = 8192

CLASSIC = "classic"
TIME_ATTACK = "time_attack"
CHALLENGE = "challenge"
GAME_MODES = (CLASSIC, TIME_ATTACK, CHALLENGE)

TIME_ATTACK_SECONDS = 180  # 3 minutes
CHALLENGE_TARGET = 256
CHALLENGE_MOVES_LIMIT = 100

RATE_LIMIT = "100/minute"

SAVE_FILE_NAME = "savegame.json"
HIGH_SCORE_FILE_NAME = "highscore.json"


def storage_dir() -> Path:
    """Directory for save files; FUSION2048_HOME overrides the default ~/.fusion2048."""
    override = os.environ.get("FUSION2048_HOME")
    if override:
        return Path(override)
    return Path.home() / ".fusion2048"
