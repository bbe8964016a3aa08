"""
Set of tests for the score board bonuses.
"""
import random
from unittest import TestCase, main

import engine
from core import DIRECTION
from scoring import ScoreBoard, high_value_bonus


def padded(rows, size=5):
    board = [list(row) + [0] * (size - len(row)) for row in rows]
    return board + [[0] * size for _ in range(size - len(board))]


class TestHighValueBonus(TestCase):

    def test_table(self):
        self.assertEqual(high_value_bonus(256), 0)
        self.assertEqual(high_value_bonus(512), 256)
        self.assertEqual(high_value_bonus(1024), 1126)
        self.assertEqual(high_value_bonus(2048), 2457)
        self.assertEqual(high_value_bonus(4096), 6144)
        self.assertEqual(high_value_bonus(8192), 16384)


class TestScoreBoard(TestCase):

    def test_large_merge_with_milestones(self):
        score_board = ScoreBoard()
        state = engine.from_board(padded([[512, 512]]))
        state = engine.move(state, DIRECTION.LEFT, rng=random.Random(0))

        earned = score_board.record(state)
        self.assertEqual(state.score, 1024)
        # 1024 tile bonus plus the 500 and 1000 milestones.
        self.assertEqual(earned, 1126 + 100 + 200)
        self.assertEqual(score_board.total, 1024 + 1426)
        self.assertEqual(score_board.high_score, score_board.total)
        self.assertEqual(set(score_board.achievements), {"score_500", "score_1000"})
        self.assertEqual(score_board.next_milestone(), 2048)

    def test_merge_chain(self):
        score_board = ScoreBoard()
        state = engine.from_board(padded([[2, 2], [4, 4]]))
        state = engine.move(state, DIRECTION.LEFT, rng=random.Random(0))
        self.assertEqual(state.last_move_score, 12)
        self.assertEqual(score_board.record(state), 3)

    def test_same_snapshot_counts_once(self):
        score_board = ScoreBoard()
        state = engine.move(engine.from_board(padded([[2, 2], [4, 4]])), DIRECTION.LEFT, rng=random.Random(0))
        score_board.record(state)
        self.assertEqual(score_board.record(state), 0)
        self.assertEqual(score_board.bonus_points, 3)

    def test_engine_score_untouched(self):
        score_board = ScoreBoard()
        state = engine.move(engine.from_board(padded([[512, 512]])), DIRECTION.LEFT, rng=random.Random(0))
        score_board.record(state)
        self.assertEqual(state.score, 1024)
        self.assertEqual(score_board.score, 1024)

    def test_reset_keeps_high_score(self):
        score_board = ScoreBoard(high_score=50)
        state = engine.move(engine.from_board(padded([[512, 512]])), DIRECTION.LEFT, rng=random.Random(0))
        score_board.record(state)
        best = score_board.high_score
        score_board.reset()
        self.assertEqual(score_board.total, 0)
        self.assertEqual(score_board.high_score, best)
        self.assertEqual(score_board.next_milestone(), 500)


    def test_resume_skips_passed_milestones(self):
        score_board = ScoreBoard(high_score=5000)
        state = engine.from_board(padded([[256, 256]]), score=900, move_count=10)
        score_board.resume(state)
        self.assertEqual(score_board.score, 900)
        self.assertEqual(score_board.next_milestone(), 1000)

        state = engine.move(state, DIRECTION.LEFT, rng=random.Random(0))
        self.assertEqual(state.score, 1412)
        # 512 tile bonus plus the 1000 milestone; 500 was passed before the save.
        self.assertEqual(score_board.record(state), 256 + 200)
        self.assertNotIn("score_500", score_board.achievements)
        self.assertEqual(score_board.achievements["score_1000"], 11)
        self.assertEqual(score_board.high_score, 5000)

if __name__ == "__main__":
    main()
