"""Workout tracker data models.

Programs own sessions, sessions own exercises and exercises own their sets.
History entries are flat immutable facts that reference the templates by id
only, so they survive edits and deletions of the program they came from.
Every model serialises with camelCase field names, which is the layout kept
in the key-value store.
"""

from __future__ import annotations

import datetime
import secrets
import time
from enum import Enum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from exceptions import ValidationError

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_id() -> str:
    """Return ``<epoch millis>-<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class TrackerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Return the stored representation of the model."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SetType(str, Enum):
    FORCE = "force"
    MYO_REP = "myo-rep"


class WorkoutSet(TrackerModel):
    """A planned set, optionally carrying the performed reps and weight."""
    id: str
    type: SetType = SetType.FORCE
    target_reps: int = Field(gt=0)
    target_weight: float = Field(ge=0)
    completed_reps: int | None = Field(default=None, ge=0)
    completed_weight: float | None = Field(default=None, ge=0)
    is_completed: bool = False

    @model_validator(mode="after")
    def _completed_requires_actuals(self) -> "WorkoutSet":
        if self.is_completed and (
            self.completed_reps is None or self.completed_weight is None
        ):
            raise ValueError(
                "a completed set needs completed_reps and completed_weight"
            )
        return self

    @property
    def is_pending(self) -> bool:
        return not self.is_completed

    def with_actuals(
        self, reps: int | None = None, weight: float | None = None
    ) -> "WorkoutSet":
        """Return a copy holding edited actuals without completing the set."""
        update: dict = {}
        if reps is not None:
            if reps < 0:
                raise ValidationError("reps must be non-negative")
            update["completed_reps"] = int(reps)
        if weight is not None:
            if weight < 0:
                raise ValidationError("weight must be non-negative")
            update["completed_weight"] = float(weight)
        return self.model_copy(update=update)

    def complete(
        self, reps: int | None = None, weight: float | None = None
    ) -> "WorkoutSet":
        """Return a completed copy.

        Missing actuals fall back to values already entered on the set and
        then to the targets.
        """
        edited = self.with_actuals(reps, weight)
        return edited.model_copy(
            update={
                "completed_reps": (
                    edited.completed_reps
                    if edited.completed_reps is not None
                    else edited.target_reps
                ),
                "completed_weight": (
                    edited.completed_weight
                    if edited.completed_weight is not None
                    else edited.target_weight
                ),
                "is_completed": True,
            }
        )


class Exercise(TrackerModel):
    id: str
    name: str
    sets: list[WorkoutSet] = []
    notes: str | None = None

    def get_set(self, set_id: str) -> WorkoutSet | None:
        for s in self.sets:
            if s.id == set_id:
                return s
        return None


class Session(TrackerModel):
    id: str
    name: str
    exercises: list[Exercise] = []

    @property
    def total_sets(self) -> int:
        return sum(len(ex.sets) for ex in self.exercises)

    def get_exercise(self, exercise_id: str) -> Exercise | None:
        for ex in self.exercises:
            if ex.id == exercise_id:
                return ex
        return None


class Program(TrackerModel):
    id: str
    name: str = Field(min_length=1)
    description: str | None = None
    sessions: list[Session] = []
    created_at: datetime.datetime

    @property
    def total_exercises(self) -> int:
        return sum(len(s.exercises) for s in self.sessions)

    def get_session(self, session_id: str) -> Session | None:
        for s in self.sessions:
            if s.id == session_id:
                return s
        return None


class WorkoutHistoryEntry(TrackerModel):
    """One completed set. Never mutated once recorded."""
    model_config = ConfigDict(frozen=True)

    id: str
    program_id: str
    session_id: str
    exercise_id: str
    set_id: str
    reps: int
    weight: float
    completed_at: datetime.datetime

    @property
    def volume(self) -> float:
        return self.weight * self.reps


class ActiveWorkout(TrackerModel):
    program_id: str
    session_id: str
    started_at: datetime.datetime
    current_exercise_index: int = Field(default=0, ge=0)
    completed_sets: dict[str, WorkoutSet] = {}

    @staticmethod
    def set_key(exercise_id: str, set_id: str) -> str:
        return f"{exercise_id}-{set_id}"

    def completed_set(self, exercise_id: str, set_id: str) -> WorkoutSet | None:
        return self.completed_sets.get(self.set_key(exercise_id, set_id))


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require_name(name: str, what: str) -> str:
    cleaned = _clean_text(name)
    if cleaned is None:
        raise ValidationError(f"{what} name must not be empty")
    return cleaned


def build_exercise(
    name: str,
    num_sets: int,
    target_reps: int,
    target_weight: float,
    set_type: SetType | str = SetType.FORCE,
    notes: str | None = None,
    id_factory: Callable[[], str] = generate_id,
) -> Exercise:
    """Create an exercise with ``num_sets`` identical pending sets."""
    name = _require_name(name, "exercise")
    if int(num_sets) != num_sets or num_sets <= 0:
        raise ValidationError("num_sets must be a positive integer")
    if int(target_reps) != target_reps or target_reps <= 0:
        raise ValidationError("target_reps must be a positive integer")
    if target_weight < 0:
        raise ValidationError("target_weight must be non-negative")
    try:
        sets = [
            WorkoutSet(
                id=id_factory(),
                type=SetType(set_type),
                target_reps=int(target_reps),
                target_weight=float(target_weight),
            )
            for _ in range(int(num_sets))
        ]
        return Exercise(
            id=id_factory(), name=name, sets=sets, notes=_clean_text(notes)
        )
    except (PydanticValidationError, ValueError) as e:
        raise ValidationError(str(e)) from e


def build_session(
    name: str,
    exercises: list[Exercise] | None = None,
    id_factory: Callable[[], str] = generate_id,
) -> Session:
    name = _require_name(name, "session")
    return Session(id=id_factory(), name=name, exercises=list(exercises or []))


def build_program(
    name: str,
    description: str | None = None,
    sessions: list[Session] | None = None,
    id_factory: Callable[[], str] = generate_id,
    clock: Callable[[], datetime.datetime] = utc_now,
) -> Program:
    name = _require_name(name, "program")
    return Program(
        id=id_factory(),
        name=name,
        description=_clean_text(description),
        sessions=list(sessions or []),
        created_at=clock(),
    )
