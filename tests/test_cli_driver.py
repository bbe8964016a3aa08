"""
Set of tests for the terminal driver's end-of-game messages.
"""
from unittest import TestCase, main

import engine
from cli_driver import final_message
from settings import CHALLENGE, TIME_ATTACK


class TestFinalMessage(TestCase):

    def test_time_up(self):
        state = engine.from_board([[2, 0], [0, 0]], mode=TIME_ATTACK, time_limit=3)
        state = engine.tick(state, 3)
        self.assertTrue(state.game_over)
        self.assertTrue(final_message(state).startswith("Time is up!"))

    def test_board_exhausted(self):
        state = engine.from_board([[2, 4], [4, 2]])
        self.assertIn("No more moves possible", final_message(state))

    def test_challenge_out_of_moves(self):
        state = engine.from_board([[2, 0], [0, 0]], mode=CHALLENGE, target_value=64, moves_limit=3, move_count=3)
        self.assertIn("Out of moves", final_message(state))

    def test_won(self):
        state = engine.from_board([[2048, 0], [0, 0]], goal_value=2048)
        self.assertIn("Congratulations", final_message(state))


if __name__ == "__main__":
    main()
