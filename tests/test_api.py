"""
Set of tests for the HTTP API.
"""
from unittest import TestCase, main

from fastapi.testclient import TestClient

import engine
from api import app, limiter
from core import GameProgressState
from settings import CHALLENGE, RATE_LIMIT, TIME_ATTACK
from storage import GameSnapshot


def snapshot_json(state):
    return GameSnapshot.from_state(state).model_dump(mode="json")


class TestGameAPI(TestCase):

    def setUp(self):
        limiter.reset()
        self.addCleanup(limiter.reset)
        self.client = TestClient(app)

    def test_new_game_defaults(self):
        response = self.client.post("/game/new", json={"seed": 3})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["state"]["grid_size"], 5)
        self.assertEqual(data["state"]["goal_value"], 8192)
        self.assertEqual(len(data["state"]["tiles"]), 2)
        self.assertEqual(data["progress"], GameProgressState.INITIALIZED.value)
        self.assertTrue(data["possible_moves"])

    def test_new_game_rejects_bad_size(self):
        response = self.client.post("/game/new", json={"size": 1})
        self.assertEqual(response.status_code, 422)

    def test_new_game_rejects_unknown_mode(self):
        response = self.client.post("/game/new", json={"mode": "zen"})
        self.assertEqual(response.status_code, 400)

    def test_new_time_attack_game(self):
        response = self.client.post("/game/new", json={"mode": TIME_ATTACK, "time_limit": 2, "size": 4})
        self.assertEqual(response.status_code, 200)
        state = response.json()["state"]
        self.assertEqual(state["time_left"], 2)

        response = self.client.post("/game/tick", json={"state": state, "seconds": 2})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["state"]["time_left"], 0)
        self.assertTrue(data["state"]["game_over"])
        self.assertEqual(data["progress"], GameProgressState.GAME_OVER.value)

    def test_move(self):
        state = engine.from_board([[2, 2, 4, 4], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        response = self.client.post("/game/move",
                                    json={"state": snapshot_json(state), "direction": "left", "seed": 1})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data["move_was_effective"])
        self.assertEqual(data["state"]["score"], 12)
        self.assertEqual(data["state"]["board"][0][:2], [4, 8])
        self.assertEqual(data["state"]["move_count"], 1)
        self.assertEqual(data["progress"], GameProgressState.IN_PROGRESS.value)

    def test_ineffective_move(self):
        state = engine.from_board([[2, 4, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]])
        response = self.client.post("/game/move", json={"state": snapshot_json(state), "direction": "left"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data["move_was_effective"])
        self.assertEqual(data["state"], snapshot_json(state))
        self.assertIn("not effective", data["message"])

    def test_winning_challenge_move(self):
        state = engine.from_board([[2, 2, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0], [0, 0, 0, 0]],
                                  mode=CHALLENGE, target_value=4, moves_limit=5)
        response = self.client.post("/game/move", json={"state": snapshot_json(state), "direction": "left"})
        data = response.json()
        self.assertEqual(data["progress"], GameProgressState.GAME_WON.value)
        self.assertEqual(data["message"], "Congratulations! You won!")
        self.assertEqual(data["possible_moves"], [])

    def test_invalid_direction(self):
        state = engine.from_board([[2, 2], [0, 0]])
        response = self.client.post("/game/move", json={"state": snapshot_json(state), "direction": "diagonal"})
        self.assertEqual(response.status_code, 422)

    def test_tampered_snapshot(self):
        data = snapshot_json(engine.from_board([[2, 2], [0, 0]]))
        data["board"][1][1] = 8
        response = self.client.post("/game/move", json={"state": data, "direction": "left"})
        self.assertEqual(response.status_code, 422)

    def test_snapshot_mode_fields_must_match_mode(self):
        data = snapshot_json(engine.from_board([[2, 2], [0, 0]]))
        response = self.client.post("/game/move", json={"state": {**data, "mode": CHALLENGE}, "direction": "left"})
        self.assertEqual(response.status_code, 422)
        response = self.client.post("/game/tick", json={"state": {**data, "mode": TIME_ATTACK}, "seconds": 1})
        self.assertEqual(response.status_code, 422)
        response = self.client.post("/game/tick",
                                    json={"state": {**data, "mode": TIME_ATTACK, "time_limit": 5, "time_left": 9}})
        self.assertEqual(response.status_code, 422)

    def test_possible_moves(self):
        state = engine.from_board([[2, 0], [2, 0]])
        response = self.client.post("/game/possible-moves", json=snapshot_json(state))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), ["down", "right", "up"])

    def test_rate_limit(self):
        allowed = int(RATE_LIMIT.split("/")[0])
        body = snapshot_json(engine.from_board([[2, 0], [2, 0]]))
        for _ in range(allowed):
            self.assertEqual(self.client.post("/game/possible-moves", json=body).status_code, 200)
        response = self.client.post("/game/possible-moves", json=body)
        self.assertEqual(response.status_code, 429)


if __name__ == "__main__":
    main()
