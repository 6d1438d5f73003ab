import copy
import logging
import threading
import time
from pathlib import Path
from typing import Callable

from kivy.clock import Clock

from workout_engine import (
    DEFAULT_CALORIES_PER_MINUTE,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_REST_SECONDS,
    REST_TICK_INTERVAL,
)
from workout_engine import settings
from workout_engine.aggregator import build_workout_log
from workout_engine.models import (
    CompletedSet,
    Exercise,
    SessionState,
    WorkoutLog,
    WorkoutPlan,
)
from workout_engine.navigator import ExerciseNavigator
from workout_engine.rest_timer import RestCountdown, RestTimer
from workout_engine.sessions import PendingSave, PersistenceGateway
from workout_engine.utils import format_timer, parse_display_number


class WorkoutSession:
    """Live state of a workout performed from a :class:`WorkoutPlan`.

    One object holds at most one active session.  Starting copies the plan and
    allocates an empty result slot for every planned set; the copy is then
    changed only through the methods below, which all run under one lock.
    Completing or cancelling returns the object to its inactive state so it
    can be reused for the next workout.

    Completion follows a "reset now, persist best-effort" contract: the
    in-memory state is cleared and the :class:`WorkoutLog` returned before the
    gateway is called, and a failed save only ends up in
    :attr:`failed_saves`.
    """

    def __init__(
        self,
        gateway: PersistenceGateway | None = None,
        user_id: str | None = None,
        *,
        clock=None,
        time_func: Callable[[], float] = time.time,
        default_rest_seconds: int = DEFAULT_REST_SECONDS,
        calories_per_minute: float = DEFAULT_CALORIES_PER_MINUTE,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        tick_interval: float = REST_TICK_INTERVAL,
        persist_async: bool = False,
        on_rest_finished: Callable[[RestCountdown], None] | None = None,
    ):
        self.gateway = gateway
        self.user_id = user_id
        self.default_rest_seconds = default_rest_seconds
        self.calories_per_minute = calories_per_minute
        self.history_limit = history_limit
        self.persist_async = persist_async
        self._clock = clock if clock is not None else Clock
        self._time = time_func
        self._lock = threading.RLock()
        self.rest_timer = RestTimer(
            self._clock, time_func, tick_interval, on_finished=on_rest_finished
        )

        # plan of the day, staged before the user presses start
        self.today_workout: WorkoutPlan | None = None
        self.active_program: str | None = None
        self.history: list[WorkoutLog] = []
        self.failed_saves: list[PendingSave] = []

        self.plan: WorkoutPlan | None = None
        self.active = False
        self.start_time: float | None = None
        self._navigator: ExerciseNavigator | None = None

    @classmethod
    def from_settings(cls, path: Path | None = None, **kwargs) -> "WorkoutSession":
        """Create a session configured from the settings file at ``path``."""

        options = settings.session_options(path)
        options.update(kwargs)
        return cls(**options)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self.rest_timer.cancel()
        self.plan = None
        self.active = False
        self.start_time = None
        self._navigator = None

    def _accepts(self, exercise_index: int, action: str) -> bool:
        """Return ``True`` if ``exercise_index`` is the exercise in progress."""

        if not self.active:
            logging.warning("Ignoring %s: no active workout session", action)
            return False
        if exercise_index != self._navigator.exercise_index:
            logging.warning(
                "Ignoring %s for exercise %s; current exercise is %s",
                action,
                exercise_index,
                self._navigator.exercise_index,
            )
            return False
        return True

    @property
    def exercises(self) -> list[Exercise]:
        return self.plan.exercises if self.plan else []

    @property
    def current_exercise_index(self) -> int:
        return self._navigator.exercise_index if self._navigator else 0

    @property
    def current_set_index(self) -> int:
        return self._navigator.set_index if self._navigator else 0

    @property
    def current_exercise(self) -> Exercise | None:
        if not self.active:
            return None
        return self.plan.exercises[self._navigator.exercise_index]

    @property
    def rest_timer_active(self) -> bool:
        return self.rest_timer.active

    @property
    def rest_time_remaining(self) -> int:
        return self.rest_timer.remaining

    def state(self) -> SessionState:
        """Return a read-only snapshot of the session."""

        with self._lock:
            return SessionState(
                active=self.active,
                workout_name=self.plan.workout_name if self.plan else None,
                current_exercise_index=self.current_exercise_index,
                current_set_index=self.current_set_index,
                start_time=self.start_time,
                rest_timer_active=self.rest_timer.active,
                rest_time_remaining=self.rest_timer.remaining,
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_today_workout(self, plan: WorkoutPlan) -> None:
        """Stage ``plan`` so :meth:`start_session` can start it later."""

        self.today_workout = plan

    def set_active_program(self, program_id: str | None) -> None:
        self.active_program = program_id

    def start_session(self, plan: WorkoutPlan | None = None) -> None:
        """Begin a workout from ``plan`` or from the staged plan.

        The plan itself is never modified; the session works on a deep copy
        whose result slots are all empty.
        """

        plan = plan if plan is not None else self.today_workout
        if plan is None:
            raise ValueError("No workout plan to start")
        if not plan.exercises:
            raise ValueError(f"Workout '{plan.workout_name}' has no exercises")

        snapshot = copy.deepcopy(plan)
        for ex in snapshot.exercises:
            ex.reset_results()

        with self._lock:
            if self.active:
                logging.warning(
                    "Discarding active workout '%s' to start '%s'",
                    self.plan.workout_name,
                    snapshot.workout_name,
                )
            self._reset()
            self.plan = snapshot
            self._navigator = ExerciseNavigator(
                [ex.sets for ex in snapshot.exercises], self.rest_timer
            )
            self.start_time = self._time()
            self.active = True
        logging.info(
            "Started workout '%s' with %s exercises",
            snapshot.workout_name,
            len(snapshot.exercises),
        )

    def cancel_session(self) -> bool:
        """Discard the active session without producing a log."""

        with self._lock:
            if not self.active:
                return False
            name = self.plan.workout_name
            self._reset()
        logging.info("Cancelled workout '%s'", name)
        return True

    def complete_session(
        self, rating: int, note: str = "", user_id: str | None = None
    ) -> WorkoutLog | None:
        """Finish the active session and return its :class:`WorkoutLog`.

        ``None`` is returned when no session is active.  The session is reset
        before the log is handed to the gateway, so the outcome of the save
        never affects the returned log or the session state.
        """

        with self._lock:
            if not self.active or self.start_time is None:
                logging.warning("Ignoring completion: no active workout session")
                return None
            if not 1 <= rating <= 5:
                raise ValueError("Rating must be between 1 and 5")
            log = build_workout_log(
                self.plan,
                self.start_time,
                self._time(),
                rating,
                note,
                calories_per_minute=self.calories_per_minute,
            )
            self._reset()
        logging.info(
            "Completed workout '%s': %s/%s sets, volume %s",
            log.workout_name,
            log.completed_sets_count,
            log.total_sets,
            log.total_volume,
        )

        user = user_id or self.user_id
        if self.persist_async:
            self._clock.schedule_once(lambda dt: self._persist(user, log), 0)
        else:
            self._persist(user, log)
        return log

    # ------------------------------------------------------------------
    # Set logging
    # ------------------------------------------------------------------

    def log_set(self, exercise_index: int, reps: float, weight: float) -> bool:
        """Record the current set of ``exercise_index`` as completed.

        The set pointer then moves on and, if the exercise has sets left, the
        rest countdown starts.  After the final set the pointer wraps back to
        the first set.  Calls for another exercise, or for a set that is
        already completed, are ignored and return ``False``.
        """

        with self._lock:
            if not self._accepts(exercise_index, "log_set"):
                return False
            nav = self._navigator
            ex = self.plan.exercises[exercise_index]
            if ex.completed_sets[nav.set_index].completed:
                logging.warning(
                    "Set %s of '%s' is already logged", nav.set_index + 1, ex.name
                )
                return False
            ex.completed_sets[nav.set_index] = CompletedSet(reps, weight, True)
            if nav.advance_set():
                self.rest_timer.start(ex.rest_for(self.default_rest_seconds))
            else:
                self.rest_timer.cancel()
        return True

    def skip_set(self, exercise_index: int) -> bool:
        """Move past the current set without recording it or resting."""

        with self._lock:
            if not self._accepts(exercise_index, "skip_set"):
                return False
            self._navigator.advance_set()
        return True

    def edit_set(
        self, exercise_index: int, set_index: int, reps: float, weight: float
    ) -> bool:
        """Correct reps and load of a set that has already been logged."""

        with self._lock:
            if not self.active:
                logging.warning("Ignoring edit_set: no active workout session")
                return False
            if not 0 <= exercise_index < len(self.plan.exercises):
                logging.warning("Ignoring edit_set for exercise %s", exercise_index)
                return False
            results = self.plan.exercises[exercise_index].completed_sets
            if not 0 <= set_index < len(results) or not results[set_index].completed:
                logging.warning(
                    "Ignoring edit_set: set %s of exercise %s is not logged",
                    set_index,
                    exercise_index,
                )
                return False
            results[set_index] = CompletedSet(reps, weight, True)
        return True

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_exercise(self) -> bool:
        with self._lock:
            if not self.active:
                return False
            return self._navigator.next_exercise()

    def prev_exercise(self) -> bool:
        with self._lock:
            if not self.active:
                return False
            return self._navigator.prev_exercise()

    def set_current_exercise(self, index: int) -> bool:
        """Jump to exercise ``index``; out-of-range targets are ignored."""

        with self._lock:
            if not self.active:
                return False
            return self._navigator.jump_to(index)

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    def start_rest_timer(self, seconds: int) -> RestCountdown | None:
        with self._lock:
            if not self.active:
                return None
            return self.rest_timer.start(seconds)

    def stop_rest_timer(self) -> bool:
        with self._lock:
            return self.rest_timer.cancel()

    def adjust_rest_timer(self, seconds: int) -> bool:
        """Lengthen (or shorten, if negative) the running rest period."""

        with self._lock:
            return self.rest_timer.adjust(seconds)

    # ------------------------------------------------------------------
    # Progress helpers
    # ------------------------------------------------------------------

    def elapsed_seconds(self) -> int:
        if self.start_time is None:
            return 0
        return max(0, int(self._time() - self.start_time))

    def completed_set_count(self) -> int:
        return sum(ex.completed_count for ex in self.exercises)

    def all_sets_completed(self, exercise_index: int | None = None) -> bool:
        if not self.active:
            return False
        idx = self.current_exercise_index if exercise_index is None else exercise_index
        if not 0 <= idx < len(self.plan.exercises):
            return False
        return all(s.completed for s in self.plan.exercises[idx].completed_sets)

    def all_exercises_done(self) -> bool:
        if not self.active:
            return False
        return all(
            self.all_sets_completed(idx) for idx in range(len(self.plan.exercises))
        )

    def is_last_exercise(self) -> bool:
        return self.active and self._navigator.is_last_exercise()

    def is_last_set(self) -> bool:
        return self.active and self._navigator.is_last_set()

    def next_set_display(self) -> str:
        ex = self.current_exercise
        if ex is None:
            return ""
        return f"Set {self.current_set_index + 1} of {ex.sets}"

    def rest_display(self) -> str:
        """Return the rest countdown as ``MM:SS``, empty when not resting."""

        remaining = self.rest_timer.remaining
        return format_timer(remaining) if remaining > 0 else ""

    def suggested_inputs(self) -> tuple[int | None, float | None]:
        """Return reps and load to prefill for the current exercise."""

        ex = self.current_exercise
        if ex is None:
            return None, None
        reps = parse_display_number(ex.reps)
        return (
            int(reps) if reps is not None else None,
            parse_display_number(ex.suggested_weight),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, user_id: str | None, log: WorkoutLog) -> bool:
        if self.gateway is None:
            logging.debug("No persistence gateway; workout log not saved")
            return False
        if user_id is None:
            self._record_failure(user_id, log, "No user id")
            logging.warning("Workout log for %s not saved: no user id", log.date)
            return False
        try:
            saved = self.gateway.save(user_id, log.date, log)
        except Exception as exc:
            logging.warning(
                "Error saving workout log for %s", log.date, exc_info=True
            )
            self._record_failure(user_id, log, str(exc))
            return False
        if not saved:
            logging.warning("Workout log for %s was rejected by storage", log.date)
            self._record_failure(user_id, log, "Save rejected")
            return False
        return True

    def _record_failure(self, user_id: str | None, log: WorkoutLog, error: str) -> None:
        with self._lock:
            self.failed_saves.append(PendingSave(user_id, log.date, log, error))

    def retry_failed_saves(self) -> int:
        """Try again to save every failed log; return how many succeeded."""

        with self._lock:
            pending, self.failed_saves = self.failed_saves, []
        saved = 0
        for item in pending:
            if self._persist(item.user_id or self.user_id, item.log):
                saved += 1
        return saved

    def fetch_history(
        self, limit: int | None = None, user_id: str | None = None
    ) -> list[WorkoutLog]:
        """Load past logs, newest first, into :attr:`history`.

        On a storage error the previously loaded history is kept.
        """

        user = user_id or self.user_id
        if self.gateway is None or user is None:
            return self.history
        try:
            history = self.gateway.fetch_history(user, limit or self.history_limit)
        except Exception:
            logging.exception("Error fetching workout history")
            return self.history
        self.history = history
        return history
