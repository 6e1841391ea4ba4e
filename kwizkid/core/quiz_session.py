#!/usr/bin/env python3
"""
View-local quiz progress.

Per-question progress is not part of AppState (``AnswerQuestion`` is a
reducer no-op). A QuizSession tracks the answers for one Quiz on the screen
side and produces the QuizScore that the screen then dispatches with
``QuizCompleted``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime

from kwizkid.core.dataclasses import Question, Quiz, QuizScore

logger = logging.getLogger(__name__)


class QuizSession:
    """Answer tracking and scoring for a single quiz run."""

    def __init__(self, quiz: Quiz, clock: Callable[[], float] = time.monotonic) -> None:
        self.quiz = quiz
        self._clock = clock
        self._started_at = clock()
        self._index = 0
        self._selected: int | None = None
        self._answers: list[int | None] = [None] * quiz.question_count
        self._submitted = False
        self._finished_at: float | None = None

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question | None:
        if self.is_finished or not self.quiz.questions:
            return None
        return self.quiz.questions[self._index]

    @property
    def is_finished(self) -> bool:
        return self._finished_at is not None

    @property
    def correct_count(self) -> int:
        return sum(
            1
            for question, answer in zip(self.quiz.questions, self._answers, strict=True)
            if answer is not None and question.is_correct(answer)
        )

    @property
    def answers(self) -> tuple[int | None, ...]:
        return tuple(self._answers)

    @property
    def elapsed_seconds(self) -> int:
        end = self._finished_at if self._finished_at is not None else self._clock()
        return int(end - self._started_at)

    @property
    def time_remaining(self) -> int:
        return max(self.quiz.time_limit - self.elapsed_seconds, 0)

    def select_answer(self, option_index: int) -> None:
        """Highlight an option for the current question without scoring it."""
        question = self.current_question
        if question is None or self._submitted:
            return
        if not 0 <= option_index < len(question.options):
            msg = f"Option {option_index} out of range for question {question.id}"
            raise IndexError(msg)
        self._selected = option_index

    def submit_answer(self) -> bool | None:
        """
        Score the selected option for the current question.

        Returns:
            True/False for correct/incorrect, or None when nothing is selected.

        """
        question = self.current_question
        if question is None or self._selected is None or self._submitted:
            return None
        self._answers[self._index] = self._selected
        self._submitted = True
        return question.is_correct(self._selected)

    def next_question(self) -> bool:
        """Advance to the next question. Returns False once the quiz is finished."""
        if self.is_finished:
            return False
        if self._index < self.quiz.question_count - 1:
            self._index += 1
            self._selected = None
            self._submitted = False
            return True
        self._finished_at = self._clock()
        return False

    def finish(self, completed_at: datetime | None = None) -> QuizScore:
        """Close the session and build its score."""
        if self._finished_at is None:
            self._finished_at = self._clock()
        score = QuizScore(
            total_questions=self.quiz.question_count,
            correct_answers=self.correct_count,
            time_spent=min(self.elapsed_seconds, self.quiz.time_limit),
            category=self.quiz.category,
            completed_at=completed_at or datetime.now(),
        )
        logger.debug("Quiz %s finished: %d/%d", self.quiz.id, score.correct_answers, score.total_questions)
        return score
