# scoring.py
# Bonus points and high-score tracking on top of the engine's merge score.
# The engine's GameState.score is never touched here.

from typing import Dict, List, Optional

from engine import GameState

# (score threshold, bonus awarded once when it is crossed)
MILESTONES = [(500, 100), (1000, 200), (2048, 400), (4096, 800), (8192, 1600)]

MERGE_CHAIN_RATE = 0.15


def high_value_bonus(tile_value: int) -> int:
    """Bonus for producing a large tile by merging; nothing below 512."""
    if tile_value < 512:
        return 0
    if tile_value >= 8192:
        return tile_value * 2
    if tile_value >= 4096:
        return int(tile_value * 1.5)
    if tile_value >= 2048:
        return int(tile_value * 1.2)
    if tile_value >= 1024:
        return int(tile_value * 1.1)
    return int(tile_value * 0.5)


class ScoreBoard:
    """
    Follows one game move by move and accumulates bonus points.

    Feed it every snapshot the engine returns via ``record``; snapshots that are
    not new moves (no-ops, ticks) are ignored.
    """

    def __init__(self, high_score: int = 0):
        self.high_score = high_score
        self.score = 0
        self.bonus_points = 0
        self.achievements: Dict[str, int] = {}
        self._reached: List[int] = []
        self._last_move_count = 0

    @property
    def total(self) -> int:
        return self.score + self.bonus_points

    def record(self, state: GameState) -> int:
        """
        Accounts for the move that produced ``state``.
        Returns:
            int: Bonus points earned by that move.
        """
        if state.move_count <= self._last_move_count:
            self.score = state.score
            return 0
        self._last_move_count = state.move_count
        self.score = state.score

        merged = [tile.value for tile in state.tiles if tile.merged_from]
        earned = sum(high_value_bonus(value) for value in merged)
        if len(merged) > 1:
            earned += int(state.last_move_score * len(merged) * MERGE_CHAIN_RATE)
        earned += self._check_milestones(state.move_count)

        self.bonus_points += earned
        self.high_score = max(self.high_score, self.total)
        return earned

    def _check_milestones(self, move_count: int) -> int:
        earned = 0
        for threshold, reward in MILESTONES:
            if threshold not in self._reached and self.score >= threshold:
                self._reached.append(threshold)
                self.achievements[f"score_{threshold}"] = move_count
                earned += reward
        return earned

    def next_milestone(self) -> Optional[int]:
        for threshold, _ in MILESTONES:
            if threshold not in self._reached:
                return threshold
        return None

    def resume(self, state: GameState) -> None:
        """Picks up a saved game: milestones its score already passed are not awarded again."""
        self.reset()
        self.score = state.score
        self._last_move_count = state.move_count
        self._reached = [threshold for threshold, _ in MILESTONES if threshold <= state.score]

    def reset(self) -> None:
        """Starts tracking a new game; the high score is kept."""
        self.score = 0
        self.bonus_points = 0
        self.achievements = {}
        self._reached = []
        self._last_move_count = 0
