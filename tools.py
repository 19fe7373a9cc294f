from typing import Iterable, List, Optional

from workout_schema import (
    Equipment,
    Exercise,
    ExerciseHistoryEntry,
    ExerciseTag,
    WorkoutSession,
)


class FilterTools:
    """Predicate filters used by exercise and history listings.

    An empty or missing selection matches everything. A non-empty selection
    matches a record when any of its values is selected.
    """

    @staticmethod
    def _selection(values: Optional[Iterable]) -> set:
        return {v.value if hasattr(v, "value") else v for v in values or ()}

    @staticmethod
    def matches_equipment(
        equipment: Optional[Equipment], selection: Optional[Iterable[str]]
    ) -> bool:
        selected = FilterTools._selection(selection)
        if not selected:
            return True
        return equipment is not None and equipment.value in selected

    @staticmethod
    def matches_tags(
        tags: Optional[Iterable[ExerciseTag]], selection: Optional[Iterable[str]]
    ) -> bool:
        selected = FilterTools._selection(selection)
        if not selected:
            return True
        return any(tag.value in selected for tag in tags or ())

    @staticmethod
    def matches_name(name: str, query: str) -> bool:
        """Case-insensitive substring match; a blank query matches all."""
        return query.lower() in name.lower()

    @staticmethod
    def filter_exercises(
        exercises: Iterable[Exercise],
        query: str = "",
        equipment: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> List[Exercise]:
        return [
            e
            for e in exercises
            if FilterTools.matches_name(e.name, query)
            and FilterTools.matches_equipment(e.equipment, equipment)
            and FilterTools.matches_tags(e.tags, tags)
        ]

    @staticmethod
    def filter_sessions_by_equipment(
        sessions: Iterable[WorkoutSession], equipment: Optional[Iterable[str]]
    ) -> List[WorkoutSession]:
        selected = FilterTools._selection(equipment)
        if not selected:
            return list(sessions)
        return [
            s
            for s in sessions
            if any(
                FilterTools.matches_equipment(ex.equipment, selected)
                for ex in s.exercises
            )
        ]

    @staticmethod
    def filter_history_by_equipment(
        entries: Iterable[ExerciseHistoryEntry], equipment: Optional[Iterable[str]]
    ) -> List[ExerciseHistoryEntry]:
        return [
            h for h in entries if FilterTools.matches_equipment(h.equipment, equipment)
        ]
