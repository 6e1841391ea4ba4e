#!/usr/bin/env python3
"""
In-memory question bank.

Questions are stored together with the category name, difficulty and age
range they were generated for, and looked up by an exact match on all three.
When nothing is stored for a query the bank can fall back to a fixed set of
mock questions so a quiz can always be built.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime

from kwizkid.core.constants import Difficulty
from kwizkid.core.dataclasses import AgeRange, Question

logger = logging.getLogger(__name__)

# Returned by question_count when nothing matching is stored
DEFAULT_QUESTION_COUNT = 25


# === Models ===


@dataclass(frozen=True)
class QuestionQuery:
    """Lookup key for stored questions."""

    category: str
    difficulty: Difficulty
    age_range: AgeRange
    count: int

    def matches(self, stored: StoredQuestion) -> bool:
        return (
            stored.category == self.category
            and stored.difficulty == self.difficulty
            and stored.age_range == self.age_range
        )


@dataclass(frozen=True)
class StoredQuestion:
    """A question as kept in the bank."""

    question: Question
    category: str
    difficulty: Difficulty
    age_range: AgeRange
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    usage_count: int = 0

    @classmethod
    def for_query(cls, question: Question, query: QuestionQuery) -> StoredQuestion:
        return cls(question=question, category=query.category, difficulty=query.difficulty, age_range=query.age_range)


# === Mock content ===


def mock_questions(difficulty: Difficulty, count: int) -> list[Question]:
    """Fixed general-knowledge questions used when the bank has nothing stored."""
    questions = [
        Question(
            id="mock_1",
            text="What is the capital of France?",
            options=("London", "Berlin", "Paris", "Madrid"),
            correct_answer=2,
            explanation="Paris is the capital and largest city of France.",
            difficulty=difficulty,
        ),
        Question(
            id="mock_2",
            text="Which planet is closest to the Sun?",
            options=("Venus", "Mercury", "Earth", "Mars"),
            correct_answer=1,
            explanation="Mercury is the closest planet to the Sun in our solar system.",
            difficulty=difficulty,
        ),
        Question(
            id="mock_3",
            text="What is 2 + 2?",
            options=("3", "4", "5", "6"),
            correct_answer=1,
            explanation="2 + 2 equals 4.",
            difficulty=difficulty,
        ),
        Question(
            id="mock_4",
            text="Which animal is known as the 'King of the Jungle'?",
            options=("Tiger", "Lion", "Elephant", "Giraffe"),
            correct_answer=1,
            explanation="The lion is often called the 'King of the Jungle'.",
            difficulty=difficulty,
        ),
        Question(
            id="mock_5",
            text="What color do you get when you mix red and blue?",
            options=("Green", "Purple", "Orange", "Yellow"),
            correct_answer=1,
            explanation="Red and blue make purple when mixed together.",
            difficulty=difficulty,
        ),
    ]
    return questions[: max(count, 0)]


# === Bank ===


class InMemoryQuestionBank:
    """Thread-safe in-memory question storage."""

    def __init__(self, table_name: str = "KwizKidQuestions") -> None:
        self.table_name = table_name
        self._questions: list[StoredQuestion] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._questions)

    def _matching(self, query: QuestionQuery) -> list[StoredQuestion]:
        with self._lock:
            return [stored for stored in self._questions if query.matches(stored)]

    async def store_questions(self, questions: list[StoredQuestion]) -> None:
        with self._lock:
            self._questions.extend(questions)
        logger.info("Stored %d questions in %s", len(questions), self.table_name)

    async def batch_store_questions(self, questions: list[StoredQuestion], batch_size: int = 25) -> None:
        """Store ``questions`` in chunks of ``batch_size``."""
        for start in range(0, len(questions), batch_size):
            await self.store_questions(questions[start : start + batch_size])
        logger.info("Batch storage of %d questions completed", len(questions))

    async def fetch_questions(self, query: QuestionQuery, fallback_to_mock: bool = True) -> list[Question]:
        """
        Return up to ``query.count`` stored questions matching ``query``.

        When nothing matches, mock questions are returned instead, unless
        ``fallback_to_mock`` is False, in which case the result is empty.
        Each returned stored question has its usage count incremented.
        """
        logger.debug("Fetching questions for %s (%s, %s)", query.category, query.difficulty, query.age_range)
        matching = self._matching(query)[: query.count]
        if matching:
            self._record_usage(matching)
            logger.info("Retrieved %d questions for %s from the bank", len(matching), query.category)
            return [stored.question for stored in matching]

        if not fallback_to_mock:
            return []
        questions = mock_questions(query.difficulty, query.count)
        logger.info("No stored questions for %s, using %d mock questions", query.category, len(questions))
        return questions

    def _record_usage(self, used: list[StoredQuestion]) -> None:
        used_ids = {stored.id for stored in used}
        with self._lock:
            self._questions = [
                replace(stored, usage_count=stored.usage_count + 1) if stored.id in used_ids else stored
                for stored in self._questions
            ]

    async def question_count(self, category: str, difficulty: Difficulty, age_range: AgeRange) -> int:
        """Number of stored questions for the key, or DEFAULT_QUESTION_COUNT if none are stored."""
        count = len(self._matching(QuestionQuery(category, difficulty, age_range, count=0)))
        return count if count > 0 else DEFAULT_QUESTION_COUNT

    def cache_questions(self, questions: list[Question], query: QuestionQuery) -> None:
        """Keep questions fetched elsewhere so later lookups for ``query`` find them."""
        stored = [StoredQuestion.for_query(question, query) for question in questions]
        with self._lock:
            self._questions.extend(stored)
        logger.debug("Cached %d questions for %s", len(stored), query.category)

    def get_cached_questions(self, query: QuestionQuery) -> list[Question] | None:
        matching = self._matching(query)
        if not matching:
            return None
        return [stored.question for stored in matching[: query.count]]

    def all_questions(self) -> list[StoredQuestion]:
        with self._lock:
            return list(self._questions)

    def clear(self) -> None:
        with self._lock:
            self._questions.clear()
