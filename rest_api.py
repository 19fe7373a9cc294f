import logging
from typing import Iterable, Optional

from fastapi import APIRouter, Body, FastAPI, HTTPException

from config import APP_VERSION
from db import KeyValueRepository
from session_service import SessionService
from settings_schema import load_settings
from stats_service import StatisticsService
from tools import FilterTools
from workout_data import WorkoutDataStore

logger = logging.getLogger(__name__)


def _split(value: Optional[str]) -> list[str]:
    return [v for v in value.split("|") if v] if value else []


def _dump(records: Iterable) -> list[dict]:
    return [r.to_storage() for r in records]


class TrackerAPI:
    """Provides REST endpoints over the workout data store."""

    def __init__(
        self,
        db_path: str | None = None,
        yaml_path: str = "settings.yaml",
    ) -> None:
        self.settings = load_settings(yaml_path)
        self.db_path = db_path or self.settings.db_path
        self.storage = KeyValueRepository(self.db_path)
        self.store = WorkoutDataStore(self.storage, self.settings)
        self.session_service = SessionService(self.store)
        self.statistics = StatisticsService(self.store)
        self.app = FastAPI(
            title="Liftlog API",
            description="REST API for exercises, routines and workout sessions",
            version=APP_VERSION,
        )
        self._setup_routes()

    @staticmethod
    def _not_found(kind: str, record_id: str) -> HTTPException:
        return HTTPException(status_code=404, detail=f"{kind} {record_id} not found")

    def _setup_routes(self) -> None:
        exercises_router = APIRouter(prefix="/exercises", tags=["Exercises"])
        routines_router = APIRouter(prefix="/routines", tags=["Routines"])
        sessions_router = APIRouter(prefix="/sessions", tags=["Sessions"])

        @self.app.get(
            "/health",
            summary="Health check",
            description="Verify API and storage connectivity.",
        )
        def health():
            try:
                self.storage.keys()
                return {"status": "ok"}
            except Exception as e:  # pragma: no cover - connectivity failure
                logger.exception("health check failed")
                raise HTTPException(status_code=500, detail=str(e))

        @self.app.get("/stats/overview")
        def stats_overview():
            return self.statistics.overview()

        @exercises_router.get("")
        def list_exercises(
            query: str = "",
            equipment: str | None = None,
            tags: str | None = None,
        ):
            found = FilterTools.filter_exercises(
                self.store.exercises, query, _split(equipment), _split(tags)
            )
            return _dump(found)

        @exercises_router.post("")
        def add_exercise(payload: dict = Body(...)):
            try:
                return self.store.add_exercise(payload).to_storage()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @exercises_router.get("/{exercise_id}")
        def get_exercise(exercise_id: str):
            exercise = self.store.get_exercise(exercise_id)
            if exercise is None:
                raise self._not_found("exercise", exercise_id)
            return exercise.to_storage()

        @exercises_router.put("/{exercise_id}")
        def update_exercise(exercise_id: str, payload: dict = Body(...)):
            try:
                exercise = self.store.update_exercise(exercise_id, payload)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if exercise is None:
                raise self._not_found("exercise", exercise_id)
            return exercise.to_storage()

        @exercises_router.delete("/{exercise_id}")
        def delete_exercise(exercise_id: str):
            if not self.store.delete_exercise(exercise_id):
                raise self._not_found("exercise", exercise_id)
            return {"status": "deleted"}

        @exercises_router.get("/{exercise_id}/history")
        def exercise_history(
            exercise_id: str,
            limit: int | None = None,
            equipment: str | None = None,
        ):
            history = self.store.get_exercise_history(exercise_id, limit)
            return _dump(FilterTools.filter_history_by_equipment(history, _split(equipment)))

        @routines_router.get("")
        def list_routines():
            return _dump(self.store.routines)

        @routines_router.post("")
        def add_routine(payload: dict = Body(...)):
            try:
                return self.store.add_routine(payload).to_storage()
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))

        @routines_router.get("/{routine_id}")
        def get_routine(routine_id: str):
            routine = self.store.get_routine(routine_id)
            if routine is None:
                raise self._not_found("routine", routine_id)
            return routine.to_storage()

        @routines_router.put("/{routine_id}")
        def update_routine(routine_id: str, payload: dict = Body(...)):
            try:
                routine = self.store.update_routine(routine_id, payload)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if routine is None:
                raise self._not_found("routine", routine_id)
            return routine.to_storage()

        @routines_router.delete("/{routine_id}")
        def delete_routine(routine_id: str):
            if not self.store.delete_routine(routine_id):
                raise self._not_found("routine", routine_id)
            return {"status": "deleted"}

        @routines_router.get("/{routine_id}/history")
        def routine_history(routine_id: str, equipment: str | None = None):
            history = self.store.get_routine_history(routine_id)
            return _dump(FilterTools.filter_sessions_by_equipment(history, _split(equipment)))

        @routines_router.post(
            "/{routine_id}/start",
            summary="Start workout",
            description="Create a new session from the routine.",
        )
        def start_workout(routine_id: str):
            session = self.session_service.start_workout(routine_id)
            if session is None:
                raise self._not_found("routine", routine_id)
            return session.to_storage()

        @sessions_router.get("")
        def list_sessions(status: str | None = None, equipment: str | None = None):
            if status == "active":
                sessions = self.store.get_active_sessions()
            elif status == "completed":
                sessions = self.store.get_completed_sessions()
            elif status is None:
                sessions = self.store.sessions
            else:
                raise HTTPException(
                    status_code=400,
                    detail="invalid status; expected 'active' or 'completed'",
                )
            return _dump(FilterTools.filter_sessions_by_equipment(sessions, _split(equipment)))

        @sessions_router.get("/recent")
        def recent_sessions(limit: int | None = None):
            return _dump(self.store.get_recent_sessions(limit))

        @sessions_router.get("/{session_id}")
        def get_session(session_id: str):
            session = self.store.get_session(session_id)
            if session is None:
                raise self._not_found("session", session_id)
            return session.to_storage()

        @sessions_router.put("/{session_id}")
        def update_session(session_id: str, payload: dict = Body(...)):
            try:
                session = self.store.update_session(session_id, payload)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if session is None:
                raise self._not_found("session", session_id)
            return session.to_storage()

        @sessions_router.delete(
            "/{session_id}",
            summary="Cancel workout",
            description="Delete the session.",
        )
        def delete_session(session_id: str):
            if not self.session_service.cancel_workout(session_id):
                raise self._not_found("session", session_id)
            return {"status": "deleted"}

        @sessions_router.post("/{session_id}/finish")
        def finish_session(session_id: str):
            session = self.session_service.finish_workout(session_id)
            if session is None:
                raise self._not_found("session", session_id)
            return session.to_storage()

        @sessions_router.get("/{session_id}/progress")
        def session_progress(session_id: str):
            session = self.store.get_session(session_id)
            if session is None:
                raise self._not_found("session", session_id)
            progress = self.statistics.session_progress(session)
            progress["exercises"] = self.statistics.exercise_summary(session)
            return progress

        @sessions_router.post("/{session_id}/exercises/{index}/sets")
        def add_set(session_id: str, index: int):
            new_set = self.session_service.add_set(session_id, index)
            if new_set is None:
                raise self._not_found("session exercise", f"{session_id}/{index}")
            return new_set.to_storage()

        @sessions_router.put("/{session_id}/sets/{set_id}")
        def update_set(session_id: str, set_id: str, payload: dict = Body(...)):
            try:
                updated = self.session_service.update_set(session_id, set_id, payload)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e))
            if updated is None:
                raise self._not_found("set", set_id)
            return updated.to_storage()

        @sessions_router.delete("/{session_id}/sets/{set_id}")
        def remove_set(session_id: str, set_id: str):
            if not self.session_service.remove_set(session_id, set_id):
                raise self._not_found("set", set_id)
            return {"status": "deleted"}

        @sessions_router.post("/{session_id}/sets/{set_id}/toggle")
        def toggle_set(session_id: str, set_id: str):
            updated = self.session_service.toggle_set_completed(session_id, set_id)
            if updated is None:
                raise self._not_found("set", set_id)
            return updated.to_storage()

        self.app.include_router(exercises_router)
        self.app.include_router(routines_router)
        self.app.include_router(sessions_router)


if __name__ == "__main__":
    import uvicorn

    from config import configure_logging

    api = TrackerAPI()
    configure_logging(api.settings.log_level)
    uvicorn.run(api.app)
