from __future__ import annotations

from typing import Dict, List

from workout_data import WorkoutDataStore
from workout_schema import WorkoutSession


class StatisticsService:
    """Compute summary figures for sessions and the whole data store."""

    def __init__(self, store: WorkoutDataStore) -> None:
        self.store = store

    @staticmethod
    def session_progress(session: WorkoutSession) -> Dict[str, int]:
        """Return completed and total set counts across the session."""
        total = sum(len(ex.sets) for ex in session.exercises)
        completed = sum(len(ex.completed_sets()) for ex in session.exercises)
        return {"completed": completed, "total": total}

    @staticmethod
    def exercise_summary(session: WorkoutSession) -> List[dict]:
        return [
            {
                "exercise_id": ex.exercise_id,
                "exercise_name": ex.exercise_name,
                "equipment": ex.equipment.value if ex.equipment else None,
                "completed_sets": len(ex.completed_sets()),
                "total_sets": len(ex.sets),
            }
            for ex in session.exercises
        ]

    def overview(self) -> Dict[str, int]:
        sessions = self.store.sessions
        completed = sum(1 for s in sessions if s.completed)
        return {
            "exercises": len(self.store.exercises),
            "routines": len(self.store.routines),
            "completed_sessions": completed,
            "active_sessions": len(sessions) - completed,
        }
