from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from models import WorkoutHistoryEntry, WorkoutSet
from tools import MathTools
from workout_service import WorkoutDataService


@dataclass(frozen=True)
class WorkoutOccurrence:
    date: datetime.date
    program_id: str
    session_id: str
    sets: Tuple[WorkoutHistoryEntry, ...] = field(default_factory=tuple)

    @property
    def volume(self) -> float:
        return MathTools.volume((h.reps, h.weight) for h in self.sets)


@dataclass(frozen=True)
class ExerciseProgressPoint:
    date: datetime.date
    max_weight: float
    total_reps: int
    volume: float
    set_count: int


@dataclass(frozen=True)
class SessionProgressPoint:
    date: datetime.date
    volume: float
    total_sets: int


def _entry_date(entry: WorkoutHistoryEntry) -> datetime.date:
    # date as stored, no timezone conversion
    return entry.completed_at.date()


def _sort_key(entry: WorkoutHistoryEntry) -> tuple:
    return (entry.completed_at, entry.id)


class HistoryAggregator:
    """Pure transforms from the flat history log to chart series.

    Results depend only on the grouping keys of the entries, never on the
    order in which they are supplied.
    """

    @staticmethod
    def filter_history(
        history: Iterable[WorkoutHistoryEntry],
        program_id: Optional[str] = None,
        session_id: Optional[str] = None,
        exercise_id: Optional[str] = None,
    ) -> List[WorkoutHistoryEntry]:
        """Keep entries matching every given id. ``None`` matches all."""
        return [
            h
            for h in history
            if (program_id is None or h.program_id == program_id)
            and (session_id is None or h.session_id == session_id)
            and (exercise_id is None or h.exercise_id == exercise_id)
        ]

    @staticmethod
    def workouts_by_date(
        history: Iterable[WorkoutHistoryEntry],
    ) -> List[WorkoutOccurrence]:
        """Group entries into workout occurrences, newest date first."""
        grouped: Dict[Tuple[datetime.date, str, str], List[WorkoutHistoryEntry]] = {}
        for h in history:
            key = (_entry_date(h), h.program_id, h.session_id)
            grouped.setdefault(key, []).append(h)
        keys = sorted(grouped, key=lambda k: (k[1], k[2]))
        keys.sort(key=lambda k: k[0], reverse=True)
        return [
            WorkoutOccurrence(
                date=k[0],
                program_id=k[1],
                session_id=k[2],
                sets=tuple(sorted(grouped[k], key=_sort_key)),
            )
            for k in keys
        ]

    @staticmethod
    def exercise_progression(
        history: Iterable[WorkoutHistoryEntry], exercise_id: str
    ) -> List[ExerciseProgressPoint]:
        """One aggregate point per training day for ``exercise_id``, oldest first."""
        by_date: Dict[datetime.date, Dict[str, float]] = {}
        for h in history:
            if h.exercise_id != exercise_id:
                continue
            item = by_date.setdefault(
                _entry_date(h),
                {"max_weight": h.weight, "reps": 0, "volume": 0.0, "sets": 0},
            )
            item["max_weight"] = max(item["max_weight"], h.weight)
            item["reps"] += h.reps
            item["volume"] += h.volume
            item["sets"] += 1
        return [
            ExerciseProgressPoint(
                date=d,
                max_weight=by_date[d]["max_weight"],
                total_reps=int(by_date[d]["reps"]),
                volume=by_date[d]["volume"],
                set_count=int(by_date[d]["sets"]),
            )
            for d in sorted(by_date)
        ]

    @staticmethod
    def session_progression(
        history: Iterable[WorkoutHistoryEntry],
    ) -> List[SessionProgressPoint]:
        """Total volume and set count per day, oldest first.

        Callers narrow ``history`` with :meth:`filter_history` first.
        """
        by_date: Dict[datetime.date, Dict[str, float]] = {}
        for h in history:
            entry = by_date.setdefault(_entry_date(h), {"volume": 0.0, "sets": 0})
            entry["volume"] += h.volume
            entry["sets"] += 1
        return [
            SessionProgressPoint(
                date=d,
                volume=by_date[d]["volume"],
                total_sets=int(by_date[d]["sets"]),
            )
            for d in sorted(by_date)
        ]

    @staticmethod
    def summary(history: Iterable[WorkoutHistoryEntry]) -> Dict[str, int]:
        """Return the number of distinct workouts and of logged sets."""
        workouts = set()
        sets = 0
        for h in history:
            workouts.add((_entry_date(h), h.program_id, h.session_id))
            sets += 1
        return {"total_workouts": len(workouts), "total_sets": sets}


class StatisticsService:
    """Compute workout statistics for analysis."""

    def __init__(self, data: WorkoutDataService) -> None:
        self.data = data

    def workouts_by_date(self) -> List[WorkoutOccurrence]:
        return HistoryAggregator.workouts_by_date(self.data.history)

    def exercise_progression(
        self,
        exercise_id: str,
        program_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> List[ExerciseProgressPoint]:
        history = HistoryAggregator.filter_history(
            self.data.history, program_id, session_id
        )
        return HistoryAggregator.exercise_progression(history, exercise_id)

    def session_progression(
        self,
        program_id: Optional[str] = None,
        session_id: Optional[str] = None,
        exercise_id: Optional[str] = None,
    ) -> List[SessionProgressPoint]:
        if program_id is None and session_id is None:
            return []
        history = HistoryAggregator.filter_history(
            self.data.history, program_id, session_id, exercise_id
        )
        return HistoryAggregator.session_progression(history)

    def summary(self) -> Dict[str, int]:
        return HistoryAggregator.summary(self.data.history)

    def set_progress(
        self,
        program_id: str,
        session_id: str,
        exercise_id: str,
        workout_set: WorkoutSet,
        before: Optional[datetime.datetime] = None,
    ) -> Optional[str]:
        """Trend of a completed set against its last recorded performance.

        ``before`` ignores entries logged at or after that time, e.g. the
        start of the running workout.
        """
        if not workout_set.is_completed:
            return None
        if before is None:
            last = self.data.get_last_performance(
                program_id, session_id, exercise_id, workout_set.id
            )
        else:
            earlier = [
                h
                for h in HistoryAggregator.filter_history(
                    self.data.history, program_id, session_id, exercise_id
                )
                if h.set_id == workout_set.id and h.completed_at < before
            ]
            last = max(earlier, key=_sort_key) if earlier else None
        if last is None:
            return None
        return MathTools.progress_indicator(
            workout_set.completed_reps or 0,
            workout_set.completed_weight or 0.0,
            last.reps,
            last.weight,
        )

    def program_name(self, program_id: str) -> Optional[str]:
        program = self.data.get_program(program_id)
        return program.name if program is not None else None

    def session_name(self, program_id: str, session_id: str) -> Optional[str]:
        program = self.data.get_program(program_id)
        if program is None:
            return None
        session = program.get_session(session_id)
        return session.name if session is not None else None

    def exercise_name(self, exercise_id: str) -> Optional[str]:
        for program in self.data.programs:
            for session in program.sessions:
                exercise = session.get_exercise(exercise_id)
                if exercise is not None:
                    return exercise.name
        return None
