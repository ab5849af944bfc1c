from typing import Iterable, Tuple


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    @staticmethod
    def clamp(value: float, min_value: float, max_value: float) -> float:
        """Clamp ``value`` to the inclusive range [min_value, max_value]."""
        if min_value > max_value:
            raise ValueError("min_value must not exceed max_value")
        return max(min_value, min(value, max_value))

    @staticmethod
    def volume(sets: Iterable[Tuple[int, float]]) -> float:
        """Compute training volume as the sum of reps times weight."""
        vol = 0.0
        for reps, weight in sets:
            vol += reps * weight
        return vol

    @staticmethod
    def progress_indicator(
        reps: int, weight: float, last_reps: int, last_weight: float
    ) -> str:
        """Compare a set with the previous performance of the same set.

        Returns ``"up"`` when either weight or reps increased, ``"down"``
        when either decreased and ``"same"`` otherwise. An increase wins
        over a simultaneous decrease.
        """
        weight_diff = weight - last_weight
        reps_diff = reps - last_reps
        if weight_diff > 0 or reps_diff > 0:
            return "up"
        if weight_diff < 0 or reps_diff < 0:
            return "down"
        return "same"


def format_time(seconds: int) -> str:
    """Return ``seconds`` as ``m:ss``."""
    if seconds < 0:
        raise ValueError("seconds must be non-negative")
    mins, secs = divmod(int(seconds), 60)
    return f"{mins}:{secs:02d}"
