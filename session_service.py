from __future__ import annotations

import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from workout_data import WorkoutDataStore
from workout_schema import (
    UNKNOWN_NAME,
    Exercise,
    Routine,
    SessionExercise,
    WorkoutSession,
    WorkoutSet,
    new_id,
    utc_now,
)

Clock = Callable[[], datetime.datetime]
IdFactory = Callable[[], str]

_FIXED_SET_FIELDS = {"id", "exercise_id", "exerciseId"}


def build_session(
    routine: Routine,
    exercises: Iterable[Exercise],
    now: datetime.datetime | None = None,
    id_factory: IdFactory | None = None,
) -> WorkoutSession:
    """Create a new, uncompleted session from ``routine``.

    One entry per routine exercise, in routine order. Names and equipment are
    resolved against ``exercises`` at this moment; the routine's equipment
    override wins over the exercise default. Every entry gets ``sets`` fresh
    sets carrying the routine's rep target and nothing else.
    """
    make_id = id_factory or new_id
    by_id = {e.id: e for e in exercises}
    entries = []
    for item in routine.exercises:
        exercise = by_id.get(item.exercise_id)
        entries.append(
            SessionExercise(
                exercise_id=item.exercise_id,
                exercise_name=exercise.name if exercise else UNKNOWN_NAME,
                equipment=item.equipment or (exercise.equipment if exercise else None),
                sets=[
                    WorkoutSet(
                        id=make_id(),
                        exercise_id=item.exercise_id,
                        reps=item.reps,
                    )
                    for _ in range(item.sets)
                ],
            )
        )
    return WorkoutSession(
        id=make_id(),
        routine_id=routine.id,
        routine_name=routine.name,
        date=now or utc_now(),
        exercises=entries,
        completed=False,
    )


class SessionService:
    """Starts, edits and finishes workout sessions through the data store."""

    def __init__(
        self,
        store: WorkoutDataStore,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
        default_reps: int | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or utc_now
        self.id_factory = id_factory or new_id
        if default_reps is None:
            default_reps = store.settings.default_set_reps
        self.default_reps = default_reps

    def start_workout(self, routine_id: str) -> Optional[WorkoutSession]:
        routine = self.store.get_routine(routine_id)
        if routine is None:
            return None
        session = build_session(
            routine, self.store.exercises, self.clock(), self.id_factory
        )
        return self.store.add_session(session)

    def finish_workout(self, session_id: str) -> Optional[WorkoutSession]:
        return self.store.update_session(session_id, {"completed": True})

    def cancel_workout(self, session_id: str) -> bool:
        return self.store.delete_session(session_id)

    def _save_exercises(
        self, session: WorkoutSession, entries: list[SessionExercise]
    ) -> Optional[WorkoutSession]:
        return self.store.update_session(session.id, {"exercises": entries})

    def add_set(self, session_id: str, exercise_index: int) -> Optional[WorkoutSet]:
        """Append a set to the exercise at ``exercise_index``.

        The new set repeats the reps and weight of the current last set.
        """
        session = self.store.get_session(session_id)
        if session is None or not 0 <= exercise_index < len(session.exercises):
            return None
        entry = session.exercises[exercise_index]
        last = entry.sets[-1] if entry.sets else None
        new_set = WorkoutSet(
            id=self.id_factory(),
            exercise_id=entry.exercise_id,
            reps=last.reps if last and last.reps else self.default_reps,
            weight=last.weight if last else None,
        )
        entries = list(session.exercises)
        entries[exercise_index] = entry.model_copy(update={"sets": [*entry.sets, new_set]})
        self._save_exercises(session, entries)
        return new_set

    def remove_set(self, session_id: str, set_id: str) -> bool:
        session = self.store.get_session(session_id)
        position = session.find_set(set_id) if session else None
        if position is None:
            return False
        ex_idx, set_idx = position
        entries = list(session.exercises)
        sets = list(entries[ex_idx].sets)
        del sets[set_idx]
        entries[ex_idx] = entries[ex_idx].model_copy(update={"sets": sets})
        self._save_exercises(session, entries)
        return True

    def update_set(
        self, session_id: str, set_id: str, updates: Mapping[str, Any]
    ) -> Optional[WorkoutSet]:
        fixed = _FIXED_SET_FIELDS.intersection(updates)
        if fixed:
            raise ValueError(f"cannot change {', '.join(sorted(fixed))} of a set")
        session = self.store.get_session(session_id)
        position = session.find_set(set_id) if session else None
        if position is None:
            return None
        ex_idx, set_idx = position
        entries = list(session.exercises)
        sets = list(entries[ex_idx].sets)
        sets[set_idx] = sets[set_idx].merged(updates)
        entries[ex_idx] = entries[ex_idx].model_copy(update={"sets": sets})
        self._save_exercises(session, entries)
        return sets[set_idx]

    def toggle_set_completed(self, session_id: str, set_id: str) -> Optional[WorkoutSet]:
        session = self.store.get_session(session_id)
        position = session.find_set(set_id) if session else None
        if position is None:
            return None
        ex_idx, set_idx = position
        current = session.exercises[ex_idx].sets[set_idx]
        return self.update_set(session_id, set_id, {"completed": not current.completed})
