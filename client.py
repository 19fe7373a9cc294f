import requests
from typing import Optional


class TrackerClient:
    """Simple REST client for the workout tracker API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, **params):
        resp = requests.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _post(self, path: str, payload: Optional[dict] = None):
        resp = requests.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def list_exercises(self, query: str = "", equipment: Optional[list[str]] = None) -> list[dict]:
        params = {"query": query}
        if equipment:
            params["equipment"] = "|".join(equipment)
        return self._get("/exercises", **params)

    def add_exercise(self, name: str, equipment: Optional[str] = None, tags: Optional[list[str]] = None) -> dict:
        return self._post("/exercises", {"name": name, "equipment": equipment, "tags": tags})

    def add_routine(self, name: str, exercises: list[dict]) -> dict:
        return self._post("/routines", {"name": name, "exercises": exercises})

    def start_workout(self, routine_id: str) -> dict:
        return self._post(f"/routines/{routine_id}/start")

    def toggle_set(self, session_id: str, set_id: str) -> dict:
        return self._post(f"/sessions/{session_id}/sets/{set_id}/toggle")

    def finish_workout(self, session_id: str) -> dict:
        return self._post(f"/sessions/{session_id}/finish")

    def recent_sessions(self, limit: int = 5) -> list[dict]:
        return self._get("/sessions/recent", limit=limit)

    def exercise_history(self, exercise_id: str, limit: int = 3) -> list[dict]:
        return self._get(f"/exercises/{exercise_id}/history", limit=limit)
