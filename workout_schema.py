"""Record types for exercises, routines and workout sessions.

Python attributes are snake_case; stored JSON uses camelCase keys
(``createdAt``, ``routineId``, ``exerciseName`` ...). Either spelling is
accepted when validating input.
"""

from __future__ import annotations

import datetime
import uuid
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

UNKNOWN_NAME = "Unknown"


class Equipment(str, Enum):
    BARBELL = "Barbell"
    DUMBBELL = "Dumbbell"
    CABLE = "Cable"
    SMITH_MACHINE = "Smith Machine"
    MACHINE = "Machine"


class ExerciseTag(str, Enum):
    PUSH = "Push"
    PULL = "Pull"
    UPPER = "Upper"
    LOWER = "Lower"
    CHEST = "Chest"
    BACK = "Back"
    SHOULDERS = "Shoulders"
    ARMS = "Arms"
    LEGS = "Legs"
    CORE = "Core"
    CARDIO = "Cardio"


class SetTag(str, Enum):
    WARMUP = "warmup"
    DROPSET = "dropset"
    SUPERSET = "superset"
    FAILURE = "failure"


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Record(BaseModel):
    """Immutable base model with camelCase aliases for storage.

    Nested records passed in are validated again and copied, so a record
    never shares state with the objects it was built from.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        revalidate_instances="always",
    )

    @field_validator("created_at", "date", check_fields=False)
    @classmethod
    def ensure_utc(cls, value: datetime.datetime) -> datetime.datetime:
        # naive timestamps are stored as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value

    @classmethod
    def field_name(cls, key: str) -> str:
        """Return the attribute name for ``key`` given in either spelling."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        raise ValueError(f"unknown field '{key}' for {cls.__name__}")

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def merged(self, updates: Mapping[str, Any]) -> "Record":
        """Return a validated copy with only the fields in ``updates`` replaced.

        Fields missing from ``updates`` keep their current values. Changing the
        ``id`` of a record is rejected.
        """
        changes = {self.field_name(k): v for k, v in updates.items()}
        if "id" in changes and changes["id"] != getattr(self, "id", None):
            raise ValueError("id cannot be changed")
        data = dict(self)
        data.update(changes)
        return type(self).model_validate(data)


class NamedRecord(Record):
    @field_validator("name", check_fields=False)
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value


class Exercise(NamedRecord):
    id: str = Field(default_factory=new_id)
    name: str
    equipment: Equipment | None = None
    tags: list[ExerciseTag] | None = None
    created_at: datetime.datetime = Field(default_factory=utc_now)


class RoutineExercise(Record):
    exercise_id: str
    sets: int = Field(3, ge=1)
    reps: int = Field(10, ge=0)
    equipment: Equipment | None = None


class Routine(NamedRecord):
    id: str = Field(default_factory=new_id)
    name: str
    exercises: list[RoutineExercise] = Field(default_factory=list)
    created_at: datetime.datetime = Field(default_factory=utc_now)

    def exercise_ids(self) -> list[str]:
        return [ex.exercise_id for ex in self.exercises]


class WorkoutSet(Record):
    id: str = Field(default_factory=new_id)
    exercise_id: str
    reps: int = Field(ge=0)
    weight: float | None = Field(None, ge=0)
    notes: str | None = None
    tags: list[SetTag] | None = None
    completed: bool = False


class SessionExercise(Record):
    """Exercise entry of a session.

    ``exercise_name`` and ``equipment`` are copies taken when the session
    started; they are not refreshed when the exercise is edited later.
    """

    exercise_id: str
    exercise_name: str = UNKNOWN_NAME
    equipment: Equipment | None = None
    sets: list[WorkoutSet] = Field(default_factory=list)

    def completed_sets(self) -> list[WorkoutSet]:
        return [s for s in self.sets if s.completed]


class WorkoutSession(Record):
    id: str = Field(default_factory=new_id)
    routine_id: str
    routine_name: str
    date: datetime.datetime = Field(default_factory=utc_now)
    exercises: list[SessionExercise] = Field(default_factory=list)
    completed: bool = False

    def merged(self, updates: Mapping[str, Any]) -> "WorkoutSession":
        session = super().merged(updates)
        if session.date != self.date:
            raise ValueError("session date cannot be changed")
        return session

    def find_set(self, set_id: str) -> tuple[int, int] | None:
        """Return ``(exercise_index, set_index)`` of ``set_id`` or ``None``."""
        for ex_idx, entry in enumerate(self.exercises):
            for set_idx, workout_set in enumerate(entry.sets):
                if workout_set.id == set_id:
                    return ex_idx, set_idx
        return None


class HistorySet(Record):
    reps: int
    weight: float | None = None
    notes: str | None = None
    tags: list[SetTag] | None = None


class ExerciseHistoryEntry(Record):
    date: datetime.datetime
    routine_name: str
    equipment: Equipment | None = None
    sets: list[HistorySet]
