"""Turn the final state of a session into a :class:`WorkoutLog`."""

from __future__ import annotations

from workout_engine import DEFAULT_CALORIES_PER_MINUTE
from workout_engine.models import WorkoutLog, WorkoutPlan, exercise_records
from workout_engine.utils import date_key, round_half_up


def session_totals(plan: WorkoutPlan) -> dict:
    """Return volume and set/exercise counts for ``plan``.

    Only sets explicitly marked completed contribute volume; ``total_sets``
    counts every planned set.
    """

    total_volume = 0
    completed_sets = 0
    completed_exercises = 0
    for ex in plan.exercises:
        done = [s for s in ex.completed_sets if s.completed]
        total_volume += sum(s.volume for s in done)
        completed_sets += len(done)
        if done:
            completed_exercises += 1
    return {
        "total_volume": total_volume,
        "completed_sets_count": completed_sets,
        "completed_exercises": completed_exercises,
        "total_sets": plan.total_sets,
    }


def estimate_calories(
    plan: WorkoutPlan,
    duration: int,
    calories_per_minute: float = DEFAULT_CALORIES_PER_MINUTE,
) -> float:
    """Prefer the plan's own estimate; otherwise scale by ``duration``."""

    if plan.estimated_calories_burned and plan.estimated_calories_burned > 0:
        return plan.estimated_calories_burned
    return round_half_up(duration * calories_per_minute)


def build_workout_log(
    plan: WorkoutPlan,
    start_time: float,
    end_time: float,
    rating: int,
    note: str = "",
    calories_per_minute: float = DEFAULT_CALORIES_PER_MINUTE,
) -> WorkoutLog:
    """Compute the completion summary of ``plan``.

    ``start_time`` and ``end_time`` are POSIX timestamps; the duration is
    reported in whole minutes and the log is keyed by the end date.
    """

    duration = round_half_up((end_time - start_time) / 60)
    totals = session_totals(plan)
    return WorkoutLog(
        date=date_key(end_time),
        workout_name=plan.workout_name,
        target_muscles=tuple(plan.target_muscles),
        exercises=exercise_records(plan.exercises),
        duration=duration,
        calories_burned=estimate_calories(plan, duration, calories_per_minute),
        rating=rating,
        note=note,
        start_time=start_time,
        end_time=end_time,
        created_at=end_time,
        **totals,
    )
