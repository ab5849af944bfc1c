from __future__ import annotations

import logging
from typing import Callable

from config import configure_logging, load_settings
from db import KeyValueRepository
from rest_timer import RestTimer
from stats_service import StatisticsService
from storage_service import StorageService
from workout_service import WorkoutDataService

logger = logging.getLogger(__name__)


class WorkoutTracker:
    """Wires storage, services and the rest timer from the YAML settings."""

    def __init__(
        self,
        settings_path: str = "settings.yaml",
        db_path: str | None = None,
        on_rest_complete: Callable[[], None] | None = None,
        timer_scheduler=None,
    ) -> None:
        self.settings = load_settings(settings_path)
        configure_logging(self.settings.log_level)
        self.store = KeyValueRepository(db_path or self.settings.db_path)
        self.storage = StorageService(self.store)
        self.workouts = WorkoutDataService(
            self.storage,
            replace_active_workout=self.settings.replace_active_workout,
        )
        self.stats = StatisticsService(self.workouts)
        self.timer = RestTimer(
            self.settings.rest_timer_seconds,
            on_complete=on_rest_complete,
            scheduler=timer_scheduler,
            min_seconds=self.settings.timer_min_seconds,
            max_seconds=self.settings.timer_max_seconds,
            step_seconds=self.settings.timer_step_seconds,
            presets=self.settings.timer_presets,
        )
        logger.info("Workout tracker ready using %s", self.store.db_path)

    def end_workout(self) -> None:
        """End the running workout and stop the rest timer."""
        self.workouts.end_workout()
        self.timer.reset()

    def close(self) -> None:
        self.timer.close()
