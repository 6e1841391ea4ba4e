#!/usr/bin/env python3
"""
Question bank seeding.

Generates questions for every category x difficulty x age range combination
and stores them in the question bank, reporting progress after each task. A
failed task is logged and skipped; the run carries on with the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from kwizkid.core.constants import Difficulty
from kwizkid.core.dataclasses import AgeRange, Question
from kwizkid.core.exceptions import AppError
from kwizkid.services.question_bank import StoredQuestion

if TYPE_CHECKING:
    from kwizkid.services.content_service import AIQuestionGenerator
    from kwizkid.services.question_bank import InMemoryQuestionBank

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchGenerationConfig:
    questions_per_category: int = 50
    categories: tuple[str, ...] = ("Science", "Math", "History", "Geography", "Animals", "Space")
    difficulties: tuple[Difficulty, ...] = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD)
    age_ranges: tuple[AgeRange, ...] = field(
        default_factory=lambda: (
            AgeRange(5, 8),  # early elementary
            AgeRange(9, 12),  # late elementary
            AgeRange(13, 16),  # middle school
        )
    )

    @property
    def total_tasks(self) -> int:
        return len(self.categories) * len(self.difficulties) * len(self.age_ranges)


@dataclass(frozen=True)
class GenerationProgress:
    total_tasks: int
    completed_tasks: int
    current_task: str
    is_complete: bool = False
    failed_tasks: tuple[str, ...] = ()

    @property
    def percentage(self) -> float:
        if self.total_tasks <= 0:
            return 1.0
        return self.completed_tasks / self.total_tasks


ProgressCallback = Callable[[GenerationProgress], None]

_BASE_QUESTIONS: dict[str, tuple[Question, ...]] = {
    "science": (
        Question(
            "science_1",
            "What is the chemical symbol for water?",
            ("H2O", "CO2", "NaCl", "O2"),
            0,
            "Water is made of two hydrogen atoms and one oxygen atom.",
        ),
        Question(
            "science_2",
            "Which planet is known as the Red Planet?",
            ("Venus", "Mars", "Jupiter", "Saturn"),
            1,
            "Mars is called the Red Planet because of its reddish appearance.",
        ),
    ),
    "math": (
        Question("math_1", "What is 5 + 3?", ("6", "7", "8", "9"), 2, "5 + 3 equals 8."),
        Question("math_2", "What is 10 - 4?", ("5", "6", "7", "8"), 1, "10 - 4 equals 6."),
    ),
    "history": (
        Question(
            "history_1",
            "Who was the first president of the United States?",
            ("Thomas Jefferson", "George Washington", "John Adams", "Benjamin Franklin"),
            1,
            "George Washington was the first president of the United States.",
            Difficulty.MEDIUM,
        ),
        Question(
            "history_2",
            "In what year did World War II end?",
            ("1944", "1945", "1946", "1947"),
            1,
            "World War II ended in 1945.",
            Difficulty.MEDIUM,
        ),
    ),
    "general": (
        Question(
            "general_1",
            "What is the capital of France?",
            ("London", "Berlin", "Paris", "Madrid"),
            2,
            "Paris is the capital of France.",
        ),
        Question(
            "general_2",
            "Which animal is known as the King of the Jungle?",
            ("Tiger", "Lion", "Elephant", "Giraffe"),
            1,
            "The lion is often called the King of the Jungle.",
        ),
    ),
}


def fallback_batch(category: str, difficulty: Difficulty, count: int) -> list[Question]:
    """Variations of a few base questions, used when AI generation fails."""
    base = _BASE_QUESTIONS.get(category.lower(), _BASE_QUESTIONS["general"])
    return [
        replace(base[i % len(base)], id=f"{base[i % len(base)].id}_var_{i}", difficulty=difficulty)
        for i in range(max(count, 0))
    ]


class QuestionBatchGenerator:
    """Fills the question bank from the AI generator."""

    def __init__(self, generator: AIQuestionGenerator, bank: InMemoryQuestionBank) -> None:
        self.generator = generator
        self.bank = bank
        self.progress: GenerationProgress | None = None
        self.is_generating = False

    def _report(self, progress: GenerationProgress, on_progress: ProgressCallback | None) -> None:
        self.progress = progress
        if on_progress is not None:
            on_progress(progress)

    async def _questions_for(self, category: str, difficulty: Difficulty, age_range: AgeRange, count: int) -> list[Question]:
        try:
            return await self.generator.generate_questions(category, difficulty, age_range, count)
        except AppError as e:
            logger.warning("AI generation failed for %s, using fallback questions: %s", category, e.description)
            return fallback_batch(category, difficulty, count)

    async def generate_question_database(
        self,
        config: BatchGenerationConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> GenerationProgress:
        """
        Generate and store questions for every combination in ``config``.

        Returns the final progress, which lists the tasks that failed.
        """
        config = config or BatchGenerationConfig()
        self.is_generating = True
        completed = 0
        failed: list[str] = []
        stored_total = 0
        self._report(GenerationProgress(config.total_tasks, 0, "Starting generation..."), on_progress)

        try:
            for category in config.categories:
                for difficulty in config.difficulties:
                    for age_range in config.age_ranges:
                        task = f"{category} - {difficulty.value} - {age_range}"
                        self._report(
                            GenerationProgress(config.total_tasks, completed, task, failed_tasks=tuple(failed)),
                            on_progress,
                        )
                        try:
                            questions = await self._questions_for(
                                category, difficulty, age_range, config.questions_per_category
                            )
                            await self.bank.store_questions(
                                [StoredQuestion(q, category, difficulty, age_range) for q in questions]
                            )
                        except AppError as e:
                            logger.error("Failed to generate questions for %s: %s", task, e.description)
                            failed.append(task)
                            continue
                        completed += 1
                        stored_total += len(questions)
                        logger.info("Generated %d questions for %s", len(questions), task)
        finally:
            self.is_generating = False

        final = GenerationProgress(
            config.total_tasks, completed, "Generation complete!", is_complete=True, failed_tasks=tuple(failed)
        )
        self._report(final, on_progress)
        logger.info("Question bank generation finished: %d questions, %d failed tasks", stored_total, len(failed))
        return final

    async def database_stats(self) -> tuple[int, dict[str, int]]:
        """Total stored questions and counts per category."""
        per_category: dict[str, int] = {}
        for stored in self.bank.all_questions():
            per_category[stored.category] = per_category.get(stored.category, 0) + 1
        return sum(per_category.values()), per_category

    async def clear_database(self) -> None:
        self.bank.clear()
        logger.info("Question bank cleared")
