#!/usr/bin/env python3
"""
Domain value types for KwizKid.

All types are frozen dataclasses. Sequences are stored as tuples so that a
state snapshot holding them can never be changed in place.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from kwizkid.core.constants import Difficulty, ParentalDefaults

# === User ===


@dataclass(frozen=True)
class AgeRange:
    """Inclusive age bounds."""

    min: int
    max: int

    def contains(self, age: int) -> bool:
        return self.min <= age <= self.max

    def __str__(self) -> str:
        return f"Ages {self.min}-{self.max}"


@dataclass(frozen=True)
class ParentalControls:
    """Limits set by a parent. Time values are minutes."""

    time_limit: int = ParentalDefaults.TIME_LIMIT
    daily_time_limit: int = ParentalDefaults.DAILY_TIME_LIMIT
    content_filter: bool = True
    progress_tracking: bool = True


@dataclass(frozen=True)
class UserPreferences:
    """Per-user quiz preferences."""

    difficulty: Difficulty = Difficulty.EASY
    session_length: int = ParentalDefaults.SESSION_LENGTH  # minutes
    sound_effects: bool = True
    favorite_categories: tuple[str, ...] = ()
    parental_controls: ParentalControls = field(default_factory=ParentalControls)


@dataclass(frozen=True)
class User:
    """A signed-in child profile."""

    id: str
    name: str
    age: int
    preferences: UserPreferences = field(default_factory=UserPreferences)


# === Quiz ===


@dataclass(frozen=True, eq=False)
class QuizCategory:
    """
    Catalog entry for a quiz subject.

    Identity is the ``id`` alone: two categories with the same id compare
    equal and hash the same even when their other fields differ.
    """

    id: str
    name: str
    description: str
    icon: str
    color: str
    difficulty: Difficulty
    age_range: AgeRange

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QuizCategory):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Question:
    """A multiple choice question with a zero-based correct answer index."""

    id: str
    text: str
    options: tuple[str, ...]
    correct_answer: int
    explanation: str
    difficulty: Difficulty = Difficulty.EASY

    def is_valid(self) -> bool:
        return 0 <= self.correct_answer < len(self.options)

    def is_correct(self, answer_index: int) -> bool:
        return answer_index == self.correct_answer

    @classmethod
    def from_dict(cls, data: dict[str, Any], question_id: str, default_difficulty: Difficulty = Difficulty.EASY) -> Question:
        """Build a question from the JSON shape returned by content providers."""
        raw_difficulty = data.get("difficulty")
        try:
            difficulty = Difficulty(raw_difficulty) if raw_difficulty else default_difficulty
        except ValueError:
            difficulty = default_difficulty
        return cls(
            id=str(data.get("id") or question_id),
            text=str(data["text"]),
            options=tuple(str(option) for option in data["options"]),
            correct_answer=int(data["correctAnswer"] if "correctAnswer" in data else data["correct_answer"]),
            explanation=str(data.get("explanation", "")),
            difficulty=difficulty,
        )


@dataclass(frozen=True)
class Quiz:
    """A fixed, ordered set of questions for one category."""

    id: str
    category: QuizCategory
    questions: tuple[Question, ...]
    time_limit: int  # seconds

    @property
    def question_count(self) -> int:
        return len(self.questions)


@dataclass(frozen=True)
class QuizScore:
    """Result of a completed quiz. Created once and never modified."""

    total_questions: int
    correct_answers: int
    time_spent: int  # seconds
    category: QuizCategory
    completed_at: datetime

    @property
    def accuracy(self) -> float:
        if self.total_questions <= 0:
            return 0.0
        return self.correct_answers / self.total_questions

    @property
    def percentage(self) -> int:
        return int(self.accuracy * 100)

    @property
    def is_perfect(self) -> bool:
        return self.total_questions > 0 and self.correct_answers == self.total_questions


# === Statistics ===


@dataclass(frozen=True)
class CategoryStats:
    """Aggregate results for one category."""

    quizzes_completed: int = 0
    total_questions: int = 0
    correct_answers: int = 0
    accuracy: float = 0.0
    average_score: float = 0.0
    best_score: int = 0
    time_spent: int = 0


@dataclass(frozen=True)
class Achievement:
    """A badge with progress towards its requirement."""

    id: str
    title: str
    description: str
    icon: str
    is_unlocked: bool = False
    unlocked_date: datetime | None = None
    progress: int = 0
    requirement: int = 1


@dataclass(frozen=True)
class WeeklyProgress:
    """Activity summary for the week starting on ``week_start`` (a Monday)."""

    week_start: date
    quizzes_completed: int
    time_spent: int
    average_score: float


@dataclass(frozen=True)
class UserStats:
    """Cumulative learning statistics."""

    total_quizzes_completed: int = 0
    total_questions_answered: int = 0
    correct_answers: int = 0
    total_time_spent: int = 0  # seconds
    current_streak: int = 0  # days
    longest_streak: int = 0  # days
    achievements: tuple[Achievement, ...] = ()
    category_stats: Mapping[str, CategoryStats] = field(default_factory=lambda: MappingProxyType({}))
    weekly_progress: tuple[WeeklyProgress, ...] = ()
    last_quiz_date: datetime | None = None

    def __post_init__(self) -> None:
        # Committed snapshots must not be changed through the mapping
        if not isinstance(self.category_stats, MappingProxyType):
            object.__setattr__(self, "category_stats", MappingProxyType(dict(self.category_stats)))

    @property
    def average_accuracy(self) -> float:
        if self.total_questions_answered <= 0:
            return 0.0
        return self.correct_answers / self.total_questions_answered

    @property
    def unlocked_achievements(self) -> tuple[Achievement, ...]:
        return tuple(a for a in self.achievements if a.is_unlocked)


# === Catalog ===

DEFAULT_CATEGORIES: tuple[QuizCategory, ...] = (
    QuizCategory(
        id="math",
        name="Math Magic",
        description="Numbers, shapes, and calculations",
        icon="plus.circle.fill",
        color="blue",
        difficulty=Difficulty.EASY,
        age_range=AgeRange(5, 12),
    ),
    QuizCategory(
        id="science",
        name="Science Fun",
        description="Discover the wonders of science",
        icon="atom",
        color="green",
        difficulty=Difficulty.EASY,
        age_range=AgeRange(6, 12),
    ),
    QuizCategory(
        id="reading",
        name="Reading Adventure",
        description="Words, stories, and language",
        icon="book.fill",
        color="orange",
        difficulty=Difficulty.EASY,
        age_range=AgeRange(4, 10),
    ),
    QuizCategory(
        id="history",
        name="Time Travel",
        description="Explore the past and present",
        icon="clock.fill",
        color="purple",
        difficulty=Difficulty.MEDIUM,
        age_range=AgeRange(8, 14),
    ),
    QuizCategory(
        id="geography",
        name="World Explorer",
        description="Countries, capitals, and cultures",
        icon="globe",
        color="teal",
        difficulty=Difficulty.MEDIUM,
        age_range=AgeRange(7, 12),
    ),
    QuizCategory(
        id="art",
        name="Creative Corner",
        description="Colors, artists, and creativity",
        icon="paintbrush.fill",
        color="pink",
        difficulty=Difficulty.EASY,
        age_range=AgeRange(5, 12),
    ),
)
