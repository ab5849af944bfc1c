from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import ValidationError as PydanticValidationError

from exceptions import NoActiveWorkoutError, ValidationError, WorkoutAlreadyActiveError
from models import (
    ActiveWorkout,
    Exercise,
    Program,
    Session,
    SetType,
    WorkoutHistoryEntry,
    WorkoutSet,
    build_exercise,
    build_program,
    build_session,
    generate_id,
    utc_now,
)
from storage_service import StorageService

logger = logging.getLogger(__name__)


def _validated_program(program: Program) -> Program:
    """Return a fresh, fully validated copy of ``program``."""
    try:
        return Program.model_validate(program.model_dump())
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e


@dataclass(frozen=True)
class SessionProgress:
    completed_sets: int
    total_sets: int

    @property
    def percent(self) -> float:
        if self.total_sets == 0:
            return 0.0
        return self.completed_sets / self.total_sets * 100

    @property
    def all_completed(self) -> bool:
        return self.total_sets > 0 and self.completed_sets == self.total_sets


class WorkoutDataService:
    """Owns programs, history and the active workout.

    State is loaded once on construction. Every mutation builds the new
    collection before swapping it in, then mirrors it through ``storage``.
    Accessors hand out deep copies so callers cannot alter the held state.
    """

    def __init__(
        self,
        storage: StorageService,
        clock: Callable[[], datetime.datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
        replace_active_workout: bool = False,
    ) -> None:
        self.storage = storage
        self.clock = clock or utc_now
        self.id_factory = id_factory or generate_id
        self.replace_active_workout = replace_active_workout
        state = storage.load()
        self._programs: list[Program] = state.programs
        self._history: list[WorkoutHistoryEntry] = state.history
        self._active: Optional[ActiveWorkout] = state.active_workout

    # ----- state accessors -----

    @property
    def is_loaded(self) -> bool:
        return self.storage.is_loaded

    @property
    def programs(self) -> list[Program]:
        return [p.model_copy(deep=True) for p in self._programs]

    @property
    def history(self) -> list[WorkoutHistoryEntry]:
        # entries are frozen
        return list(self._history)

    @property
    def active_workout(self) -> Optional[ActiveWorkout]:
        if self._active is None:
            return None
        return self._active.model_copy(deep=True)

    def get_program(self, program_id: str) -> Optional[Program]:
        program = self._find_program(program_id)
        if program is None:
            return None
        return program.model_copy(deep=True)

    def _find_program(self, program_id: str) -> Optional[Program]:
        for p in self._programs:
            if p.id == program_id:
                return p
        return None

    def _set_programs(self, programs: list[Program]) -> None:
        self._programs = programs
        self.storage.save("programs", self._programs)

    def _set_history(self, history: list[WorkoutHistoryEntry]) -> None:
        self._history = history
        self.storage.save("history", self._history)

    def _set_active(self, active: Optional[ActiveWorkout]) -> None:
        self._active = active
        self.storage.save("active_workout", self._active)

    # ----- programs -----

    def add_program(self, program: Program) -> None:
        validated = _validated_program(program)
        self._set_programs(self._programs + [validated])
        logger.info("Added program %s (%s)", program.id, program.name)

    def update_program(self, program: Program) -> bool:
        if self._find_program(program.id) is None:
            logger.debug("update_program: unknown program %s", program.id)
            return False
        replacement = _validated_program(program)
        self._set_programs(
            [replacement if p.id == program.id else p for p in self._programs]
        )
        return True

    def delete_program(self, program_id: str) -> bool:
        remaining = [p for p in self._programs if p.id != program_id]
        if len(remaining) == len(self._programs):
            logger.debug("delete_program: unknown program %s", program_id)
            return False
        self._set_programs(remaining)
        logger.info("Deleted program %s", program_id)
        return True

    def create_program(self, name: str, description: str | None = None) -> Program:
        program = build_program(
            name, description, id_factory=self.id_factory, clock=self.clock
        )
        self.add_program(program)
        return program.model_copy(deep=True)

    def add_session(self, program_id: str, name: str | None = None) -> Optional[Session]:
        program = self.get_program(program_id)
        if program is None:
            return None
        if name is None:
            name = f"Session {len(program.sessions) + 1}"
        session = build_session(name, id_factory=self.id_factory)
        program.sessions.append(session)
        self.update_program(program)
        return session.model_copy(deep=True)

    def remove_session(self, program_id: str, session_id: str) -> bool:
        program = self.get_program(program_id)
        if program is None or program.get_session(session_id) is None:
            return False
        program.sessions = [s for s in program.sessions if s.id != session_id]
        return self.update_program(program)

    def add_exercise(
        self,
        program_id: str,
        session_id: str,
        name: str,
        num_sets: int,
        target_reps: int,
        target_weight: float,
        set_type: SetType | str = SetType.FORCE,
        notes: str | None = None,
    ) -> Optional[Exercise]:
        exercise = build_exercise(
            name,
            num_sets,
            target_reps,
            target_weight,
            set_type=set_type,
            notes=notes,
            id_factory=self.id_factory,
        )
        program = self.get_program(program_id)
        if program is None:
            return None
        session = program.get_session(session_id)
        if session is None:
            return None
        session.exercises.append(exercise)
        self.update_program(program)
        return exercise.model_copy(deep=True)

    def remove_exercise(self, program_id: str, session_id: str, exercise_id: str) -> bool:
        program = self.get_program(program_id)
        if program is None:
            return False
        session = program.get_session(session_id)
        if session is None or session.get_exercise(exercise_id) is None:
            return False
        session.exercises = [e for e in session.exercises if e.id != exercise_id]
        return self.update_program(program)

    # ----- workout lifecycle -----

    def start_workout(
        self, program_id: str, session_id: str, replace: bool | None = None
    ) -> ActiveWorkout:
        if replace is None:
            replace = self.replace_active_workout
        if self._active is not None:
            if not replace:
                raise WorkoutAlreadyActiveError(
                    self._active.program_id, self._active.session_id
                )
            logger.info(
                "Replacing active workout %s/%s",
                self._active.program_id,
                self._active.session_id,
            )
        active = ActiveWorkout(
            program_id=program_id,
            session_id=session_id,
            started_at=self.clock(),
            current_exercise_index=0,
            completed_sets={},
        )
        self._set_active(active)
        logger.info("Started workout %s/%s", program_id, session_id)
        return active.model_copy(deep=True)

    def complete_set(
        self, exercise_id: str, set_id: str, completed_set: WorkoutSet
    ) -> Optional[WorkoutHistoryEntry]:
        """Record ``completed_set`` for the running workout.

        The active workout keeps one snapshot per set, while history gains a
        new entry on every call.
        """
        if self._active is None:
            logger.debug("complete_set: no active workout")
            return None
        snapshot = completed_set.model_copy(deep=True)
        completed = dict(self._active.completed_sets)
        completed[ActiveWorkout.set_key(exercise_id, set_id)] = snapshot
        active = self._active.model_copy(update={"completed_sets": completed})
        entry = WorkoutHistoryEntry(
            id=self.id_factory(),
            program_id=self._active.program_id,
            session_id=self._active.session_id,
            exercise_id=exercise_id,
            set_id=set_id,
            reps=completed_set.completed_reps or 0,
            weight=completed_set.completed_weight or 0,
            completed_at=self.clock(),
        )
        self._set_active(active)
        self._set_history(self._history + [entry])
        return entry

    def end_workout(self) -> None:
        if self._active is not None:
            logger.info(
                "Ended workout %s/%s", self._active.program_id, self._active.session_id
            )
        self._set_active(None)

    def get_last_performance(
        self, program_id: str, session_id: str, exercise_id: str, set_id: str
    ) -> Optional[WorkoutHistoryEntry]:
        """Most recent entry for the set; equal timestamps resolve to the larger id."""
        matches = [
            h
            for h in self._history
            if h.program_id == program_id
            and h.session_id == session_id
            and h.exercise_id == exercise_id
            and h.set_id == set_id
        ]
        if not matches:
            return None
        return max(matches, key=lambda h: (h.completed_at, h.id))

    # ----- navigation -----

    def _active_session(self) -> Optional[Session]:
        if self._active is None:
            return None
        program = self._find_program(self._active.program_id)
        if program is None:
            return None
        return program.get_session(self._active.session_id)

    def advance_exercise(self, index: int) -> ActiveWorkout:
        if self._active is None:
            raise NoActiveWorkoutError("no workout is running")
        session = self._active_session()
        count = len(session.exercises) if session is not None else 0
        if index < 0 or index >= max(count, 1):
            raise ValidationError(
                f"exercise index {index} out of range for {count} exercises"
            )
        active = self._active.model_copy(update={"current_exercise_index": index})
        self._set_active(active)
        return active.model_copy(deep=True)

    def next_exercise(self) -> ActiveWorkout:
        if self._active is None:
            raise NoActiveWorkoutError("no workout is running")
        session = self._active_session()
        last = len(session.exercises) - 1 if session is not None else 0
        index = min(self._active.current_exercise_index + 1, max(last, 0))
        return self.advance_exercise(index)

    def previous_exercise(self) -> ActiveWorkout:
        if self._active is None:
            raise NoActiveWorkoutError("no workout is running")
        return self.advance_exercise(max(self._active.current_exercise_index - 1, 0))

    # ----- run views -----

    def working_session(self) -> Optional[Session]:
        """The active session with completed snapshots laid over its sets."""
        session = self._active_session()
        if session is None:
            return None
        working = session.model_copy(deep=True)
        for exercise in working.exercises:
            exercise.sets = [
                self._active.completed_set(exercise.id, s.id) or s
                for s in exercise.sets
            ]
        return working.model_copy(deep=True)

    def session_progress(self) -> SessionProgress:
        working = self.working_session()
        if working is None:
            return SessionProgress(0, 0)
        done = sum(
            1 for ex in working.exercises for s in ex.sets if s.is_completed
        )
        return SessionProgress(done, working.total_sets)
