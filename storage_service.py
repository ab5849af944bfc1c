from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from db import KeyValueRepository
from exceptions import CorruptStateError
from models import ActiveWorkout, Program, WorkoutHistoryEntry

logger = logging.getLogger(__name__)

PROGRAMS_KEY = "workout_programs"
HISTORY_KEY = "workout_history"
ACTIVE_WORKOUT_KEY = "active_workout"

_PROGRAMS = TypeAdapter(list[Program])
_HISTORY = TypeAdapter(list[WorkoutHistoryEntry])


@dataclass
class StoredState:
    programs: list[Program] = field(default_factory=list)
    history: list[WorkoutHistoryEntry] = field(default_factory=list)
    active_workout: Optional[ActiveWorkout] = None


class StorageService:
    """Mirror the programs, history and active workout to a key-value store.

    Each collection lives under its own key and is always written whole.
    ``store`` needs ``get``, ``set`` and ``remove``; :class:`KeyValueRepository`
    is the SQLite implementation.
    """

    COLLECTIONS = {
        "programs": PROGRAMS_KEY,
        "history": HISTORY_KEY,
        "active_workout": ACTIVE_WORKOUT_KEY,
    }

    def __init__(self, store: KeyValueRepository) -> None:
        self.store = store
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def load(self) -> StoredState:
        state = StoredState()
        try:
            state.programs = self._decode_list(PROGRAMS_KEY, _PROGRAMS)
        except CorruptStateError as e:
            logger.warning("Ignoring corrupt programs: %s", e)
        try:
            state.history = self._decode_list(HISTORY_KEY, _HISTORY)
        except CorruptStateError as e:
            logger.warning("Ignoring corrupt history: %s", e)
        try:
            state.active_workout = self._decode_active_workout()
        except CorruptStateError as e:
            logger.warning("Ignoring corrupt active workout: %s", e)
        self._loaded = True
        logger.debug(
            "Loaded %d programs, %d history entries, active workout: %s",
            len(state.programs),
            len(state.history),
            state.active_workout is not None,
        )
        return state

    def save(self, collection: str, value) -> bool:
        """Replace the stored ``collection`` with ``value``.

        Returns ``False`` when the write was dropped because :meth:`load`
        has not run yet.
        """
        try:
            key = self.COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"unknown collection: {collection}") from None
        if not self._loaded:
            logger.warning("Dropping write of %s before initial load", collection)
            return False
        if collection == "active_workout":
            if value is None:
                self.store.remove(key)
                logger.debug("Removed %s", key)
                return True
            payload = value.to_json_dict()
        else:
            payload = [item.to_json_dict() for item in value]
        self.store.set(key, json.dumps(payload))
        logger.debug("Saved %s", key)
        return True

    def _read_json(self, key: str):
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStateError(key, f"invalid JSON: {e}") from e

    def _decode_list(self, key: str, adapter: TypeAdapter) -> list:
        data = self._read_json(key)
        if data is None:
            return []
        try:
            return adapter.validate_python(data)
        except PydanticValidationError as e:
            raise CorruptStateError(key, str(e)) from e

    def _decode_active_workout(self) -> Optional[ActiveWorkout]:
        data = self._read_json(ACTIVE_WORKOUT_KEY)
        if data is None:
            return None
        try:
            return ActiveWorkout.model_validate(data)
        except PydanticValidationError as e:
            raise CorruptStateError(ACTIVE_WORKOUT_KEY, str(e)) from e
