"""Plain data types shared by the session engine.

Plans arrive as JSON from the plan catalog, which uses camelCase keys, so
every ``from_dict`` accepts both the snake_case and the camelCase spelling.
``to_dict`` always emits snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from workout_engine import DEFAULT_REST_SECONDS


def _get(data: dict, name: str, alias: str | None = None, default: Any = None) -> Any:
    if name in data:
        return data[name]
    if alias and alias in data:
        return data[alias]
    return default


@dataclass(frozen=True)
class CompletedSet:
    """Result slot for one planned set."""

    reps: float = 0
    weight: float = 0
    completed: bool = False

    @property
    def volume(self) -> float:
        return self.reps * self.weight if self.completed else 0

    def to_dict(self) -> dict:
        return {"reps": self.reps, "weight": self.weight, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict) -> "CompletedSet":
        return cls(
            reps=data.get("reps", 0),
            weight=data.get("weight", 0),
            completed=bool(data.get("completed", False)),
        )


@dataclass(frozen=True)
class PlanItem:
    """Warmup or cooldown entry, e.g. ``("Arm circles", "30 sec")``."""

    name: str
    duration: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "duration": self.duration}

    @classmethod
    def from_dict(cls, data: dict) -> "PlanItem":
        return cls(name=data.get("name", ""), duration=str(data.get("duration", "")))


@dataclass
class Exercise:
    """A planned exercise together with its per-set results."""

    name: str
    sets: int = 1
    muscle_group: str = ""
    reps: str = ""
    suggested_weight: str = ""
    rest_seconds: int | None = None
    instructions: str = ""
    tips: str = ""
    alternatives: list[str] = field(default_factory=list)
    completed_sets: list[CompletedSet] = field(default_factory=list)

    def __post_init__(self) -> None:
        if int(self.sets) < 1:
            raise ValueError(f"Exercise '{self.name}' must have at least one set")
        self.sets = int(self.sets)
        if self.rest_seconds is not None:
            if int(self.rest_seconds) < 0:
                raise ValueError(f"Exercise '{self.name}' has negative rest time")
            self.rest_seconds = int(self.rest_seconds)

    def rest_for(self, default: int = DEFAULT_REST_SECONDS) -> int:
        """Return the rest after each set, ``default`` when none is planned."""

        return default if self.rest_seconds is None else self.rest_seconds

    def reset_results(self) -> None:
        """Replace ``completed_sets`` with one empty slot per planned set."""

        self.completed_sets = [CompletedSet() for _ in range(self.sets)]

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.completed_sets if s.completed)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "muscle_group": self.muscle_group,
            "sets": self.sets,
            "reps": self.reps,
            "suggested_weight": self.suggested_weight,
            "rest_seconds": self.rest_seconds,
            "instructions": self.instructions,
            "tips": self.tips,
            "alternatives": list(self.alternatives),
            "completed_sets": [s.to_dict() for s in self.completed_sets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Exercise":
        return cls(
            name=data.get("name", ""),
            sets=_get(data, "sets", default=1),
            muscle_group=_get(data, "muscle_group", "muscleGroup", ""),
            reps=str(_get(data, "reps", default="")),
            suggested_weight=str(_get(data, "suggested_weight", "suggestedWeight", "")),
            rest_seconds=_get(data, "rest_seconds", "restSeconds"),
            instructions=data.get("instructions", ""),
            tips=data.get("tips", ""),
            alternatives=list(data.get("alternatives", [])),
            completed_sets=[
                CompletedSet.from_dict(s)
                for s in _get(data, "completed_sets", "completedSets", [])
            ],
        )


@dataclass
class WorkoutPlan:
    """Template for one workout as produced by the plan catalog."""

    workout_name: str
    exercises: list[Exercise] = field(default_factory=list)
    target_muscles: list[str] = field(default_factory=list)
    estimated_duration: int = 0
    estimated_calories_burned: float | None = None
    warmup: list[PlanItem] = field(default_factory=list)
    cooldown: list[PlanItem] = field(default_factory=list)
    coach_note: str = ""

    @property
    def total_sets(self) -> int:
        return sum(ex.sets for ex in self.exercises)

    def to_dict(self) -> dict:
        return {
            "workout_name": self.workout_name,
            "target_muscles": list(self.target_muscles),
            "estimated_duration": self.estimated_duration,
            "estimated_calories_burned": self.estimated_calories_burned,
            "warmup": [w.to_dict() for w in self.warmup],
            "exercises": [ex.to_dict() for ex in self.exercises],
            "cooldown": [c.to_dict() for c in self.cooldown],
            "coach_note": self.coach_note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutPlan":
        return cls(
            workout_name=_get(data, "workout_name", "workoutName", ""),
            exercises=[Exercise.from_dict(ex) for ex in data.get("exercises", [])],
            target_muscles=list(_get(data, "target_muscles", "targetMuscles", [])),
            estimated_duration=_get(data, "estimated_duration", "estimatedDuration", 0),
            estimated_calories_burned=_get(
                data, "estimated_calories_burned", "estimatedCaloriesBurned"
            ),
            warmup=[PlanItem.from_dict(w) for w in data.get("warmup", [])],
            cooldown=[PlanItem.from_dict(c) for c in data.get("cooldown", [])],
            coach_note=_get(data, "coach_note", "coachNote", ""),
        )


@dataclass(frozen=True)
class ExerciseRecord:
    """Per-exercise entry of a :class:`WorkoutLog`."""

    name: str
    muscle_group: str
    sets: tuple[CompletedSet, ...]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "muscle_group": self.muscle_group,
            "sets": [s.to_dict() for s in self.sets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExerciseRecord":
        return cls(
            name=data.get("name", ""),
            muscle_group=_get(data, "muscle_group", "muscleGroup", ""),
            sets=tuple(CompletedSet.from_dict(s) for s in data.get("sets", [])),
        )


@dataclass(frozen=True)
class WorkoutLog:
    """Durable summary of a completed session."""

    date: str
    workout_name: str
    target_muscles: tuple[str, ...]
    exercises: tuple[ExerciseRecord, ...]
    duration: int
    total_volume: float
    completed_exercises: int
    total_sets: int
    completed_sets_count: int
    calories_burned: float
    rating: int
    note: str
    start_time: float
    end_time: float
    created_at: float

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "workout_name": self.workout_name,
            "target_muscles": list(self.target_muscles),
            "exercises": [ex.to_dict() for ex in self.exercises],
            "duration": self.duration,
            "total_volume": self.total_volume,
            "completed_exercises": self.completed_exercises,
            "total_sets": self.total_sets,
            "completed_sets_count": self.completed_sets_count,
            "calories_burned": self.calories_burned,
            "rating": self.rating,
            "note": self.note,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkoutLog":
        return cls(
            date=data["date"],
            workout_name=data.get("workout_name", ""),
            target_muscles=tuple(data.get("target_muscles", [])),
            exercises=tuple(ExerciseRecord.from_dict(ex) for ex in data.get("exercises", [])),
            duration=data.get("duration", 0),
            total_volume=data.get("total_volume", 0),
            completed_exercises=data.get("completed_exercises", 0),
            total_sets=data.get("total_sets", 0),
            completed_sets_count=data.get("completed_sets_count", 0),
            calories_burned=data.get("calories_burned", 0),
            rating=data.get("rating", 0),
            note=data.get("note", ""),
            start_time=data.get("start_time", 0.0),
            end_time=data.get("end_time", 0.0),
            created_at=data.get("created_at", data.get("end_time", 0.0)),
        )


@dataclass(frozen=True)
class SessionState:
    """Read-only snapshot of a :class:`~workout_engine.workout_session.WorkoutSession`."""

    active: bool
    workout_name: str | None
    current_exercise_index: int
    current_set_index: int
    start_time: float | None
    rest_timer_active: bool
    rest_time_remaining: int


def exercise_records(exercises: Iterable[Exercise]) -> tuple[ExerciseRecord, ...]:
    """Freeze the per-set results of ``exercises`` for a log."""

    return tuple(
        ExerciseRecord(ex.name, ex.muscle_group, tuple(ex.completed_sets))
        for ex in exercises
    )
