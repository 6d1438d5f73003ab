"""Bounds-checked exercise and set pointers."""

from __future__ import annotations

import logging

from workout_engine.rest_timer import RestTimer


class ExerciseNavigator:
    """Track the current exercise and set of a session.

    Every exercise-level move resets the set pointer and cancels the rest
    countdown, since a countdown belongs to the exercise being performed.
    Moves that would leave the exercise list are ignored.
    """

    def __init__(self, set_counts: list[int], rest_timer: RestTimer):
        self.set_counts = list(set_counts)
        self.rest_timer = rest_timer
        self.exercise_index = 0
        self.set_index = 0

    @property
    def exercise_count(self) -> int:
        return len(self.set_counts)

    @property
    def current_set_count(self) -> int:
        return self.set_counts[self.exercise_index]

    def is_last_exercise(self) -> bool:
        return self.exercise_index == self.exercise_count - 1

    def is_last_set(self) -> bool:
        return self.set_index == self.current_set_count - 1

    def next_exercise(self) -> bool:
        if self.exercise_index >= self.exercise_count - 1:
            return False
        self._move_to(self.exercise_index + 1)
        return True

    def prev_exercise(self) -> bool:
        if self.exercise_index <= 0:
            return False
        self._move_to(self.exercise_index - 1)
        return True

    def jump_to(self, index: int) -> bool:
        if index < 0 or index >= self.exercise_count:
            logging.warning(
                "Ignoring jump to exercise %s; plan has %s exercises",
                index,
                self.exercise_count,
            )
            return False
        self._move_to(index)
        return True

    def advance_set(self) -> bool:
        """Move to the next set of the current exercise.

        After the last set the pointer wraps back to the first set rather
        than moving on to the next exercise.  Returns ``True`` if sets remain
        after the one just finished.
        """

        next_set = self.set_index + 1
        if next_set < self.current_set_count:
            self.set_index = next_set
            return True
        self.set_index = 0
        return False

    def _move_to(self, index: int) -> None:
        self.exercise_index = index
        self.set_index = 0
        self.rest_timer.cancel()
