import os
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("KIVY_NO_ARGS", "1")
os.environ.setdefault("KIVY_LOG_MODE", "PYTHON")

from workout_engine.models import Exercise, PlanItem, WorkoutPlan
from workout_engine.rest_timer import RestTimer
from workout_engine.sessions import MemoryLogStore
from workout_engine.workout_session import WorkoutSession

START = 1_700_000_000.0


class FakeTime:
    """Controllable replacement for ``time.time``."""

    def __init__(self, now: float = START):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEvent:
    def __init__(self, callback, timeout, repeat):
        self.callback = callback
        self.timeout = timeout
        self.repeat = repeat
        self.is_triggered = True

    def cancel(self):
        self.is_triggered = False


class FakeClock:
    """Records scheduled callbacks and runs them only on :meth:`tick`."""

    def __init__(self):
        self.events: list[FakeEvent] = []

    def schedule_interval(self, callback, timeout):
        event = FakeEvent(callback, timeout, True)
        self.events.append(event)
        return event

    def schedule_once(self, callback, timeout=0):
        event = FakeEvent(callback, timeout, False)
        self.events.append(event)
        return event

    @property
    def pending(self) -> list[FakeEvent]:
        return [e for e in self.events if e.is_triggered]

    def tick(self) -> None:
        for event in self.pending:
            result = event.callback(event.timeout)
            if not event.repeat or result is False:
                event.cancel()


class FailingStore(MemoryLogStore):
    """Store whose saves raise until ``fail`` is switched off."""

    def __init__(self):
        super().__init__()
        self.fail = True

    def save(self, user_id, date_key, log):
        if self.fail:
            self.save_calls += 1
            raise OSError("storage offline")
        return super().save(user_id, date_key, log)


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def rest_timer(fake_clock, fake_time):
    return RestTimer(clock=fake_clock, time_func=fake_time)


@pytest.fixture
def plan() -> WorkoutPlan:
    """Two exercises with three and two sets, 20 seconds rest."""

    return WorkoutPlan(
        workout_name="Upper Body A",
        target_muscles=["chest", "back"],
        estimated_duration=45,
        estimated_calories_burned=None,
        warmup=[PlanItem("Arm circles", "1 min")],
        exercises=[
            Exercise("Bench Press", sets=3, muscle_group="chest", reps="8-10",
                     suggested_weight="20 kg", rest_seconds=20),
            Exercise("Push-up", sets=2, muscle_group="chest", reps="12",
                     suggested_weight="Bodyweight", rest_seconds=20),
        ],
        cooldown=[PlanItem("Chest stretch", "30 sec")],
        coach_note="Control the negative.",
    )


@pytest.fixture
def store():
    return MemoryLogStore()


@pytest.fixture
def session(store, fake_clock, fake_time):
    return WorkoutSession(store, "user-1", clock=fake_clock, time_func=fake_time)
