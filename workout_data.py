from __future__ import annotations

import json
import logging
from typing import Any, Iterable, List, Mapping, Optional, Type

from db import STORAGE_KEYS
from settings_schema import SettingsSchema
from workout_schema import (
    UNKNOWN_NAME,
    Exercise,
    ExerciseHistoryEntry,
    HistorySet,
    Record,
    Routine,
    WorkoutSession,
)

logger = logging.getLogger(__name__)

_MODELS: dict[str, Type[Record]] = {
    "exercises": Exercise,
    "routines": Routine,
    "sessions": WorkoutSession,
}


class WorkoutDataStore:
    """In-memory exercises, routines and sessions mirrored to a key-value store.

    ``storage`` is any object with ``get(key) -> str | None`` and
    ``set(key, value)``; see :class:`db.KeyValueRepository`. Each collection is
    written as one JSON array under its key in ``STORAGE_KEYS`` whenever it
    changes.

    Records handed out are copies and records accepted are validated into new
    instances, so callers never hold a reference to stored state.
    """

    def __init__(self, storage, settings: SettingsSchema | None = None) -> None:
        self.storage = storage
        self.settings = settings or SettingsSchema()
        self._collections: dict[str, list] = {name: [] for name in _MODELS}
        self._loaded = False
        self.load()

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """(Re)load every collection from storage.

        A value that cannot be parsed, or that repeats an id, leaves that
        collection empty; the error is logged and loading continues with the
        next key.
        """
        self._loaded = False
        for name, model in _MODELS.items():
            self._collections[name] = self._load_collection(name, model)
        self._loaded = True
        logger.info(
            "loaded %d exercises, %d routines, %d sessions",
            len(self._collections["exercises"]),
            len(self._collections["routines"]),
            len(self._collections["sessions"]),
        )

    def _load_collection(self, name: str, model: Type[Record]) -> list:
        key = STORAGE_KEYS[name]
        raw = self.storage.get(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array under {key}")
            records = [model.model_validate(item) for item in data]
            self._check_unique(name, records)
            return records
        except ValueError:
            logger.exception("could not load %s from %s, starting empty", name, key)
            return []

    def _persist(self, name: str) -> None:
        if not self._loaded:
            return
        payload = json.dumps([r.to_storage() for r in self._collections[name]])
        self.storage.set(STORAGE_KEYS[name], payload)
        logger.debug("persisted %d %s", len(self._collections[name]), name)

    def export(self) -> dict:
        """Return all collections in their storage representation."""
        return {
            name: [r.to_storage() for r in items]
            for name, items in self._collections.items()
        }

    def replace_all(
        self,
        exercises: Iterable = (),
        routines: Iterable = (),
        sessions: Iterable = (),
    ) -> None:
        """Replace every collection, validating all records before any write."""
        incoming = {
            "exercises": [self._coerce("exercises", e) for e in exercises],
            "routines": [self._coerce("routines", r) for r in routines],
            "sessions": [self._coerce("sessions", s) for s in sessions],
        }
        for name, items in incoming.items():
            self._check_unique(name, items)
        for name, items in incoming.items():
            self._collections[name] = items
            self._persist(name)

    # ------------------------------------------------------------------
    # generic helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _check_unique(name: str, records: list) -> None:
        ids = [r.id for r in records]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate ids in {name}")

    @staticmethod
    def _copy(record: Optional[Record]) -> Optional[Record]:
        return record.model_copy(deep=True) if record is not None else None

    def _coerce(self, name: str, record: Any) -> Record:
        model = _MODELS[name]
        if isinstance(record, (model, Mapping)):
            return model.model_validate(record)
        raise ValueError(f"expected {model.__name__} or mapping, got {type(record).__name__}")

    def _find(self, name: str, record_id: str) -> Optional[Record]:
        for item in self._collections[name]:
            if item.id == record_id:
                return item
        return None

    def _add(self, name: str, record: Any, prepend: bool = False) -> Record:
        item = self._coerce(name, record)
        if self._find(name, item.id) is not None:
            raise ValueError(f"{name} already contains id {item.id}")
        if prepend:
            self._collections[name].insert(0, item)
        else:
            self._collections[name].append(item)
        self._persist(name)
        return self._copy(item)

    def _update(
        self, name: str, record_id: str, updates: Mapping[str, Any]
    ) -> Optional[Record]:
        items = self._collections[name]
        for idx, item in enumerate(items):
            if item.id == record_id:
                items[idx] = item.merged(updates)
                self._persist(name)
                return self._copy(items[idx])
        return None

    def _delete(self, name: str, record_id: str) -> bool:
        items = self._collections[name]
        remaining = [item for item in items if item.id != record_id]
        if len(remaining) == len(items):
            return False
        self._collections[name] = remaining
        self._persist(name)
        return True

    @staticmethod
    def _newest_first(sessions: Iterable[WorkoutSession]) -> List[WorkoutSession]:
        return sorted(sessions, key=lambda s: s.date, reverse=True)

    # ------------------------------------------------------------------
    # read access
    # ------------------------------------------------------------------
    @property
    def exercises(self) -> List[Exercise]:
        return [self._copy(r) for r in self._collections["exercises"]]

    @property
    def routines(self) -> List[Routine]:
        return [self._copy(r) for r in self._collections["routines"]]

    @property
    def sessions(self) -> List[WorkoutSession]:
        return [self._copy(r) for r in self._collections["sessions"]]

    def get_exercise(self, exercise_id: str) -> Optional[Exercise]:
        return self._copy(self._find("exercises", exercise_id))

    def get_routine(self, routine_id: str) -> Optional[Routine]:
        return self._copy(self._find("routines", routine_id))

    def get_session(self, session_id: str) -> Optional[WorkoutSession]:
        return self._copy(self._find("sessions", session_id))

    def exercise_name(self, exercise_id: str) -> str:
        exercise = self._find("exercises", exercise_id)
        return exercise.name if exercise else UNKNOWN_NAME

    # ------------------------------------------------------------------
    # exercises
    # ------------------------------------------------------------------
    def add_exercise(self, exercise: Exercise | Mapping[str, Any]) -> Exercise:
        return self._add("exercises", exercise)

    def update_exercise(
        self, exercise_id: str, updates: Mapping[str, Any]
    ) -> Optional[Exercise]:
        return self._update("exercises", exercise_id, updates)

    def delete_exercise(self, exercise_id: str) -> bool:
        """Delete an exercise and drop it from every routine.

        Routines themselves are kept, even when they end up empty. Sessions
        are left untouched.
        """
        removed = self._delete("exercises", exercise_id)
        routines = self._collections["routines"]
        pruned = False
        for idx, routine in enumerate(routines):
            kept = [ex for ex in routine.exercises if ex.exercise_id != exercise_id]
            if len(kept) != len(routine.exercises):
                routines[idx] = routine.model_copy(update={"exercises": kept})
                pruned = True
        if pruned:
            self._persist("routines")
        return removed

    # ------------------------------------------------------------------
    # routines
    # ------------------------------------------------------------------
    def add_routine(self, routine: Routine | Mapping[str, Any]) -> Routine:
        return self._add("routines", routine)

    def update_routine(
        self, routine_id: str, updates: Mapping[str, Any]
    ) -> Optional[Routine]:
        return self._update("routines", routine_id, updates)

    def delete_routine(self, routine_id: str) -> bool:
        return self._delete("routines", routine_id)

    # ------------------------------------------------------------------
    # sessions
    # ------------------------------------------------------------------
    def add_session(self, session: WorkoutSession | Mapping[str, Any]) -> WorkoutSession:
        """Insert ``session`` at the front of the sessions collection."""
        return self._add("sessions", session, prepend=True)

    def update_session(
        self, session_id: str, updates: Mapping[str, Any]
    ) -> Optional[WorkoutSession]:
        return self._update("sessions", session_id, updates)

    def delete_session(self, session_id: str) -> bool:
        return self._delete("sessions", session_id)

    # ------------------------------------------------------------------
    # derived queries
    # ------------------------------------------------------------------
    def get_exercise_history(
        self, exercise_id: str, limit: int | None = None
    ) -> List[ExerciseHistoryEntry]:
        """Return completed sets of ``exercise_id`` from recent completed sessions.

        Sessions are scanned newest first. A session contributes one entry
        when its first entry for the exercise has at least one completed set;
        other sessions are skipped and do not count towards ``limit``.
        """
        if limit is None:
            limit = self.settings.history_limit
        history: List[ExerciseHistoryEntry] = []
        if limit <= 0:
            return history
        completed = self._newest_first(s for s in self._collections["sessions"] if s.completed)
        for session in completed:
            entry = next(
                (e for e in session.exercises if e.exercise_id == exercise_id), None
            )
            if entry is None:
                continue
            done = entry.completed_sets()
            if not done:
                continue
            history.append(
                ExerciseHistoryEntry(
                    date=session.date,
                    routine_name=session.routine_name,
                    equipment=entry.equipment,
                    sets=[
                        HistorySet(
                            reps=s.reps, weight=s.weight, notes=s.notes, tags=s.tags
                        )
                        for s in done
                    ],
                )
            )
            if len(history) >= limit:
                break
        return history

    def get_recent_sessions(self, limit: int | None = None) -> List[WorkoutSession]:
        if limit is None:
            limit = self.settings.recent_limit
        if limit <= 0:
            return []
        recent = self._newest_first(self._collections["sessions"])[:limit]
        return [self._copy(s) for s in recent]

    def get_routine_history(self, routine_id: str) -> List[WorkoutSession]:
        return [
            self._copy(s)
            for s in self._newest_first(self._collections["sessions"])
            if s.routine_id == routine_id and s.completed
        ]

    def get_active_sessions(self) -> List[WorkoutSession]:
        sessions = self._newest_first(self._collections["sessions"])
        return [self._copy(s) for s in sessions if not s.completed]

    def get_completed_sessions(self) -> List[WorkoutSession]:
        sessions = self._newest_first(self._collections["sessions"])
        return [self._copy(s) for s in sessions if s.completed]
