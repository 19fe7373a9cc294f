import os
import sys
import unittest
from unittest import mock

from fastapi.testclient import TestClient

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from client import TrackerClient
from rest_api import TrackerAPI


class ClientTest(unittest.TestCase):
    """Route the client's requests calls through FastAPI's test client."""

    def setUp(self) -> None:
        self.db = "test_client.db"
        self.yaml = "test_client.yaml"
        for path in (self.db, self.yaml):
            if os.path.exists(path):
                os.remove(path)
        self.api = TrackerAPI(db_path=self.db, yaml_path=self.yaml)
        test_client = TestClient(self.api.app)

        def fake_get(url, params=None, timeout=None):
            return test_client.get(url, params=params)

        def fake_post(url, json=None, timeout=None):
            return test_client.post(url, json=json)

        patcher_get = mock.patch("client.requests.get", side_effect=fake_get)
        patcher_post = mock.patch("client.requests.post", side_effect=fake_post)
        patcher_get.start()
        patcher_post.start()
        self.addCleanup(patcher_get.stop)
        self.addCleanup(patcher_post.stop)
        self.client = TrackerClient(base_url="http://testserver/")

    def tearDown(self) -> None:
        for path in (self.db, self.yaml):
            if os.path.exists(path):
                os.remove(path)

    def test_full_workout(self) -> None:
        bench = self.client.add_exercise("Bench Press", "Barbell", ["Push"])
        self.client.add_exercise("Cable Fly", "Cable")
        self.assertEqual(
            [e["name"] for e in self.client.list_exercises(equipment=["Barbell"])],
            ["Bench Press"],
        )
        routine = self.client.add_routine(
            "Push Day", [{"exerciseId": bench["id"], "sets": 2, "reps": 8}]
        )
        session = self.client.start_workout(routine["id"])
        for s in session["exercises"][0]["sets"]:
            self.assertTrue(self.client.toggle_set(session["id"], s["id"])["completed"])
        self.assertTrue(self.client.finish_workout(session["id"])["completed"])
        self.assertEqual(self.client.recent_sessions()[0]["id"], session["id"])
        history = self.client.exercise_history(bench["id"])
        self.assertEqual(len(history[0]["sets"]), 2)

    def test_http_errors_raise(self) -> None:
        with self.assertRaises(Exception):
            self.client.start_workout("missing")


if __name__ == "__main__":
    unittest.main()
