import os
import sys
import random
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from db import KeyValueRepository
from models import WorkoutHistoryEntry, WorkoutSet, build_exercise, build_program, build_session
from stats_service import (
    ExerciseProgressPoint,
    HistoryAggregator,
    SessionProgressPoint,
    StatisticsService,
)
from storage_service import StorageService
from workout_service import WorkoutDataService

UTC = datetime.timezone.utc


def entry(entry_id, day, hour, weight, reps, exercise="e1", program="p1", session="s1", set_id="set1"):
    return WorkoutHistoryEntry(
        id=entry_id,
        program_id=program,
        session_id=session,
        exercise_id=exercise,
        set_id=set_id,
        reps=reps,
        weight=weight,
        completed_at=datetime.datetime(2024, 4, day, hour, 0, tzinfo=UTC),
    )


class HistoryAggregatorTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.history = [
            entry("h1", 1, 10, 20.0, 10),
            entry("h2", 1, 10, 25.0, 8, set_id="set2"),
            entry("h3", 1, 11, 40.0, 12, exercise="e2"),
            entry("h4", 3, 9, 27.5, 8),
            entry("h5", 3, 9, 50.0, 5, program="p2", session="s9", exercise="e7"),
            entry("h6", 8, 18, 30.0, 6),
        ]

    def test_same_day_sets_collapse(self) -> None:
        points = HistoryAggregator.exercise_progression(self.history[:2], "e1")
        self.assertEqual(
            points,
            [
                ExerciseProgressPoint(
                    date=datetime.date(2024, 4, 1),
                    max_weight=25.0,
                    total_reps=18,
                    volume=400.0,
                    set_count=2,
                )
            ],
        )

    def test_exercise_progression_ascending(self) -> None:
        points = HistoryAggregator.exercise_progression(self.history, "e1")
        self.assertEqual(
            [p.date.day for p in points], [1, 3, 8]
        )
        self.assertEqual(points[1].max_weight, 27.5)
        self.assertEqual(points[1].volume, 220.0)
        self.assertEqual(points[2].set_count, 1)
        self.assertEqual(HistoryAggregator.exercise_progression(self.history, "zz"), [])

    def test_exercise_progression_ignores_input_order(self) -> None:
        expected = HistoryAggregator.exercise_progression(self.history, "e1")
        rng = random.Random(7)
        for _ in range(20):
            shuffled = list(self.history)
            rng.shuffle(shuffled)
            self.assertEqual(
                HistoryAggregator.exercise_progression(shuffled, "e1"), expected
            )

    def test_session_progression(self) -> None:
        filtered = HistoryAggregator.filter_history(self.history, "p1", "s1")
        points = HistoryAggregator.session_progression(filtered)
        self.assertEqual(
            points,
            [
                SessionProgressPoint(datetime.date(2024, 4, 1), 880.0, 3),
                SessionProgressPoint(datetime.date(2024, 4, 3), 220.0, 1),
                SessionProgressPoint(datetime.date(2024, 4, 8), 180.0, 1),
            ],
        )
        shuffled = list(filtered)
        random.Random(3).shuffle(shuffled)
        self.assertEqual(HistoryAggregator.session_progression(shuffled), points)

    def test_workouts_by_date_newest_first(self) -> None:
        occurrences = HistoryAggregator.workouts_by_date(self.history)
        self.assertEqual(
            [(o.date.day, o.program_id, o.session_id) for o in occurrences],
            [(8, "p1", "s1"), (3, "p1", "s1"), (3, "p2", "s9"), (1, "p1", "s1")],
        )
        self.assertEqual([h.id for h in occurrences[-1].sets], ["h1", "h2", "h3"])
        self.assertEqual(occurrences[-1].volume, 880.0)
        reversed_history = list(reversed(self.history))
        self.assertEqual(HistoryAggregator.workouts_by_date(reversed_history), occurrences)

    def test_calendar_date_uses_stored_offset(self) -> None:
        late = WorkoutHistoryEntry(
            id="h9",
            program_id="p1",
            session_id="s1",
            exercise_id="e1",
            set_id="set1",
            reps=5,
            weight=10,
            completed_at=datetime.datetime(
                2024, 3, 1, 23, 30, tzinfo=datetime.timezone(datetime.timedelta(hours=-5))
            ),
        )
        points = HistoryAggregator.session_progression([late])
        self.assertEqual(points[0].date, datetime.date(2024, 3, 1))

    def test_filter_history(self) -> None:
        self.assertEqual(len(HistoryAggregator.filter_history(self.history)), 6)
        self.assertEqual(
            [h.id for h in HistoryAggregator.filter_history(self.history, exercise_id="e2")],
            ["h3"],
        )
        self.assertEqual(
            len(HistoryAggregator.filter_history(self.history, program_id="p2")), 1
        )

    def test_summary(self) -> None:
        self.assertEqual(
            HistoryAggregator.summary(self.history),
            {"total_workouts": 4, "total_sets": 6},
        )
        self.assertEqual(
            HistoryAggregator.summary([]), {"total_workouts": 0, "total_sets": 0}
        )


class StatisticsServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db_path = "test_stats_service.db"
        if os.path.exists(self.db_path):
            os.remove(self.db_path)
        self.now = datetime.datetime(2024, 4, 1, 10, 0, tzinfo=UTC)
        self.data = WorkoutDataService(
            StorageService(KeyValueRepository(self.db_path)), clock=self._tick
        )
        self.stats = StatisticsService(self.data)
        exercise = build_exercise("Bench", 2, 10, 20.0)
        self.exercise = exercise
        self.program = build_program("PPL", sessions=[build_session("Push", [exercise])])
        self.session = self.program.sessions[0]
        self.data.add_program(self.program)

    def tearDown(self) -> None:
        if os.path.exists(self.db_path):
            os.remove(self.db_path)

    def _tick(self) -> datetime.datetime:
        self.now += datetime.timedelta(minutes=5)
        return self.now

    def _log(self, workout_set: WorkoutSet, reps: int, weight: float) -> WorkoutSet:
        done = workout_set.complete(reps=reps, weight=weight)
        self.data.complete_set(self.exercise.id, workout_set.id, done)
        return done

    def test_progressions_from_service(self) -> None:
        first_set = self.exercise.sets[0]
        self.data.start_workout(self.program.id, self.session.id)
        self._log(first_set, 10, 20.0)
        self._log(self.exercise.sets[1], 8, 25.0)
        self.data.end_workout()

        points = self.stats.exercise_progression(self.exercise.id)
        self.assertEqual(len(points), 1)
        self.assertEqual(points[0].volume, 400.0)
        self.assertEqual(self.stats.session_progression(), [])
        session_points = self.stats.session_progression(self.program.id, self.session.id)
        self.assertEqual(session_points[0].total_sets, 2)
        self.assertEqual(self.stats.summary(), {"total_workouts": 1, "total_sets": 2})
        self.assertEqual(len(self.stats.workouts_by_date()), 1)

    def test_set_progress(self) -> None:
        workout_set = self.exercise.sets[0]
        self.data.start_workout(self.program.id, self.session.id)
        self._log(workout_set, 10, 20.0)
        self.data.end_workout()

        started = self.data.start_workout(self.program.id, self.session.id).started_at
        heavier = workout_set.complete(reps=10, weight=22.5)
        self.assertEqual(
            self.stats.set_progress(self.program.id, self.session.id, self.exercise.id, heavier),
            "up",
        )
        fewer = workout_set.complete(reps=9, weight=20.0)
        self.assertEqual(
            self.stats.set_progress(self.program.id, self.session.id, self.exercise.id, fewer),
            "down",
        )
        self.data.complete_set(self.exercise.id, workout_set.id, heavier)
        self.assertEqual(
            self.stats.set_progress(
                self.program.id, self.session.id, self.exercise.id, heavier
            ),
            "same",
        )
        self.assertEqual(
            self.stats.set_progress(
                self.program.id, self.session.id, self.exercise.id, heavier, before=started
            ),
            "up",
        )
        self.assertIsNone(
            self.stats.set_progress(self.program.id, self.session.id, self.exercise.id, workout_set)
        )
        self.assertIsNone(
            self.stats.set_progress(
                self.program.id, self.session.id, self.exercise.id, self.exercise.sets[1].complete()
            )
        )

    def test_names(self) -> None:
        self.assertEqual(self.stats.program_name(self.program.id), "PPL")
        self.assertEqual(self.stats.session_name(self.program.id, self.session.id), "Push")
        self.assertEqual(self.stats.exercise_name(self.exercise.id), "Bench")
        self.data.delete_program(self.program.id)
        self.assertIsNone(self.stats.program_name(self.program.id))
        self.assertIsNone(self.stats.session_name(self.program.id, self.session.id))
        self.assertIsNone(self.stats.exercise_name(self.exercise.id))


if __name__ == "__main__":
    unittest.main()
