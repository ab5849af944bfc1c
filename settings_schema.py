from typing import List

from pydantic import BaseModel, ValidationError, field_validator, model_validator


class SettingsSchema(BaseModel):
    db_path: str = "workout.db"
    rest_timer_seconds: int = 90
    timer_min_seconds: int = 5
    timer_max_seconds: int = 300
    timer_step_seconds: int = 5
    timer_presets: List[int] = [30, 60, 90, 120, 180]
    replace_active_workout: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value

    @model_validator(mode="after")
    def _timer_range(self) -> "SettingsSchema":
        if self.timer_min_seconds <= 0:
            raise ValueError("timer_min_seconds must be positive")
        if self.timer_min_seconds > self.timer_max_seconds:
            raise ValueError("timer_min_seconds must not exceed timer_max_seconds")
        if self.timer_step_seconds <= 0:
            raise ValueError("timer_step_seconds must be positive")
        return self


def validate_settings(data: dict) -> SettingsSchema:
    try:
        return SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))
