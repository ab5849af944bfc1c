"""Workout tracker exceptions."""


class WorkoutTrackerError(Exception):
    """Base exception for workout tracker errors."""
    pass


class ValidationError(WorkoutTrackerError, ValueError):
    """Raised when authoring input is rejected."""
    pass


class CorruptStateError(WorkoutTrackerError):
    """Raised when a stored collection cannot be decoded."""

    def __init__(self, key: str, message: str):
        super().__init__(f"{key}: {message}")
        self.key = key


class WorkoutAlreadyActiveError(WorkoutTrackerError):
    """Raised when starting a workout while another one is running."""

    def __init__(self, program_id: str, session_id: str):
        super().__init__(
            f"workout already active for program {program_id}, session {session_id}"
        )
        self.program_id = program_id
        self.session_id = session_id


class NoActiveWorkoutError(WorkoutTrackerError):
    """Raised when an operation requires a running workout."""
    pass
