#!/usr/bin/env python3
"""
Child safety heuristics.

Word-list based content filtering, age checks, safe fallback questions and
parental-control helpers, plus the moderation and language-adjustment rules
applied to generated questions. These are plain substring heuristics; none of
them call out to a remote moderation service.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from kwizkid.core.constants import Difficulty, ParentalDefaults

if TYPE_CHECKING:
    from kwizkid.core.dataclasses import Question, QuizCategory, QuizScore

logger = logging.getLogger(__name__)

# === Word lists ===

FILTERED_WORDS: tuple[str, ...] = ("bad", "stupid", "dumb", "hate", "kill", "die", "dead")
AGE_SENSITIVE_WORDS: tuple[str, ...] = ("violence", "weapon", "danger", "scary", "frightening")
CHILD_UNSAFE_WORDS: tuple[str, ...] = (*AGE_SENSITIVE_WORDS, "inappropriate", "adult", "mature", "explicit")
MODERATION_WORDS: tuple[str, ...] = (*CHILD_UNSAFE_WORDS, "harmful")

# Below this age AGE_SENSITIVE_WORDS make content inappropriate
AGE_SENSITIVE_UNTIL = 8
FALLBACK_QUESTION = "What is your favorite color?"


def _contains_any(content: str, words: tuple[str, ...]) -> list[str]:
    lowered = content.lower()
    return [word for word in words if word in lowered]


# === Safe question templates ===

_TEMPLATES: dict[str, tuple[tuple[int, tuple[str, ...]], ...]] = {
    # (upper age bound exclusive, templates); the last band has no upper bound
    "math": (
        (6, ("How many fingers do you have?", "What comes after 1?", "How many legs does a cat have?", "What is 1 + 1?")),
        (10, ("What is 2 + 2?", "How many sides does a triangle have?", "What is 5 + 3?", "How many days are in a week?")),
        (999, ("What is 12 + 8?", "How many sides does a square have?", "What is 15 - 7?", "How many months are in a year?")),
    ),
    "science": (
        (6, ("What color is the sun?", "What do plants need to grow?", "What animal says 'moo'?", "What color is grass?")),
        (
            10,
            (
                "What planet do we live on?",
                "What do bees make?",
                "What is the largest animal in the ocean?",
                "What do plants need to grow?",
            ),
        ),
        (
            999,
            (
                "What is the largest planet in our solar system?",
                "What gas do plants produce?",
                "What is the smallest unit of matter?",
                "What is the process by which plants make food?",
            ),
        ),
    ),
    "reading": (
        (
            6,
            (
                "What letter comes after A?",
                "What sound does a cat make?",
                "What is the first letter of your name?",
                "What rhymes with 'cat'?",
            ),
        ),
        (
            10,
            (
                "What is the opposite of 'big'?",
                "What is a word that rhymes with 'dog'?",
                "What is the plural of 'cat'?",
                "What is a word that starts with 'B'?",
            ),
        ),
        (
            999,
            (
                "What is a synonym for 'happy'?",
                "What is the main character in a story called?",
                "What is a word that means 'very big'?",
                "What is the opposite of 'begin'?",
            ),
        ),
    ),
    "history": (
        (
            8,
            (
                "What do we celebrate on the 4th of July?",
                "Who was the first president of the United States?",
                "What is the name of our country?",
                "What do we call the place where people vote?",
            ),
        ),
        (
            999,
            (
                "Who was the first president of the United States?",
                "What year did World War II end?",
                "Who wrote the Declaration of Independence?",
                "What is the name of the ship that brought the Pilgrims to America?",
            ),
        ),
    ),
    "geography": (
        (
            8,
            (
                "What is the name of our country?",
                "What is the capital of our state?",
                "What ocean is on the east coast?",
                "What is the name of our planet?",
            ),
        ),
        (
            999,
            (
                "What is the capital of France?",
                "What is the largest continent?",
                "What is the longest river in the world?",
                "What is the smallest country in the world?",
            ),
        ),
    ),
    "art": (
        (
            6,
            (
                "What color do you get when you mix red and blue?",
                "What is your favorite color?",
                "What do you use to draw?",
                "What shape has three sides?",
            ),
        ),
        (
            10,
            (
                "What color do you get when you mix red and yellow?",
                "What is the name of the artist who painted the Mona Lisa?",
                "What is the primary color that is not red or blue?",
                "What do you call a picture you draw of yourself?",
            ),
        ),
        (
            999,
            (
                "What is the name of the artist who painted the Mona Lisa?",
                "What is the primary color that is not red or blue?",
                "What is the name of the art movement that used bright colors?",
                "What is the name of the artist who painted the Starry Night?",
            ),
        ),
    ),
}


class ChildSafetyService:
    """Content filtering and parental-control helpers."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    # === Content filtering ===

    def filter_content(self, content: str) -> str:
        """Replace every filtered word (case-insensitive, anywhere in the text) with ``***``."""
        filtered = content
        for word in FILTERED_WORDS:
            filtered = re.sub(re.escape(word), "***", filtered, flags=re.IGNORECASE)
        return filtered

    def is_content_appropriate_for_age(self, content: str, age: int) -> bool:
        if age >= AGE_SENSITIVE_UNTIL:
            return True
        found = _contains_any(content, AGE_SENSITIVE_WORDS)
        if found:
            logger.debug("Content rejected for age %d: %s", age, ", ".join(found))
        return not found

    # === Safe language generation ===

    def safe_templates(self, category: QuizCategory, age: int) -> tuple[str, ...]:
        bands = _TEMPLATES.get(category.id)
        if bands is None:
            return (FALLBACK_QUESTION,)
        for upper, templates in bands:
            if age < upper:
                return templates
        return bands[-1][1]

    def generate_safe_question(self, category: QuizCategory, age: int) -> str:
        templates = self.safe_templates(category, age)
        return self._rng.choice(templates) if templates else FALLBACK_QUESTION

    # === Parental controls ===

    @staticmethod
    def validate_time_limit(time_spent: int, limit: int) -> bool:
        return time_spent <= limit

    @staticmethod
    def get_recommended_time_limit(age: int) -> int:
        """Recommended session length in minutes."""
        if 4 <= age <= 6:
            return 15
        if 7 <= age <= 9:
            return 20
        return ParentalDefaults.TIME_LIMIT

    # === Progress tracking ===

    @staticmethod
    def should_track_progress(age: int) -> bool:
        return age >= ParentalDefaults.PROGRESS_TRACKING_MIN_AGE

    @staticmethod
    def generate_progress_report(score: QuizScore, age: int) -> str:
        if age < AGE_SENSITIVE_UNTIL:
            return f"Great job! You got {score.correct_answers} out of {score.total_questions} questions right!"
        return (
            f"You scored {score.percentage}% on the {score.category.name} quiz. "
            f"You got {score.correct_answers} out of {score.total_questions} questions correct!"
        )


# === Moderation ===


@dataclass(frozen=True)
class ModerationResult:
    is_approved: bool
    reason: str
    confidence: float


class ContentModerator:
    """Rejects unsafe words and text too complex for the reader's age."""

    LONG_WORD_LENGTH = 8
    MIN_APPROPRIATENESS = 0.7

    def moderate_content(self, content: str, age: int) -> ModerationResult:
        found = _contains_any(content, MODERATION_WORDS)
        if found:
            return ModerationResult(
                is_approved=False,
                reason=f"Content contains inappropriate words: {', '.join(found)}",
                confidence=0.9,
            )

        score = self.age_appropriateness(content, age)
        if score < self.MIN_APPROPRIATENESS:
            return ModerationResult(
                is_approved=False,
                reason=f"Content may not be appropriate for age {age}",
                confidence=score,
            )
        return ModerationResult(is_approved=True, reason="Content is appropriate", confidence=score)

    def age_appropriateness(self, content: str, age: int) -> float:
        """Score from the share of long words; younger readers tolerate fewer."""
        words = content.split()
        if not words:
            return 1.0
        complexity = sum(1 for word in words if len(word) > self.LONG_WORD_LENGTH) / len(words)
        if age < 6:
            return 1.0 if complexity < 0.1 else 0.5
        if age < 10:
            return 1.0 if complexity < 0.2 else 0.7
        if age < 14:
            return 1.0 if complexity < 0.3 else 0.8
        return 1.0


# === Language adjustment ===

SIMPLER_WORDS: dict[str, str] = {
    "utilize": "use",
    "demonstrate": "show",
    "approximately": "about",
    "consequently": "so",
    "furthermore": "also",
    "nevertheless": "but",
}

RICHER_WORDS: dict[str, str] = {
    "big": "large",
    "small": "tiny",
    "good": "excellent",
    "bad": "poor",
    "fast": "rapid",
    "slow": "gradual",
}

RELATED_TOPICS: dict[str, tuple[str, ...]] = {
    "math": ("addition", "subtraction", "multiplication", "division", "shapes", "counting", "patterns"),
    "science": ("animals", "plants", "weather", "space", "matter", "energy", "environment"),
    "reading": ("phonics", "vocabulary", "comprehension", "grammar", "spelling", "storytelling"),
    "history": ("ancient civilizations", "famous people", "inventions", "cultures", "timeline", "geography"),
    "geography": ("countries", "capitals", "continents", "oceans", "landmarks", "cultures", "climate"),
    "art": ("colors", "shapes", "famous artists", "art techniques", "materials", "creativity"),
}


def _replace_words(text: str, replacements: dict[str, str]) -> str:
    for source, target in replacements.items():
        text = re.sub(rf"\b{re.escape(source)}\b", target, text)
    return text


class LanguageAdjuster:
    """Rewrites generated question text for the reader's age and the quiz difficulty."""

    def validate_content_for_children(self, content: str, age: int) -> bool:
        return not _contains_any(content, CHILD_UNSAFE_WORDS)

    def adjust_language_for_age(self, content: str, age: int) -> str:
        # 8 to 11 year olds and older readers get the text unchanged
        if age < AGE_SENSITIVE_UNTIL:
            return _replace_words(content, SIMPLER_WORDS)
        return content

    def adjust_difficulty(self, question: Question, difficulty: Difficulty) -> Question:
        match difficulty:
            case Difficulty.EASY:
                words = SIMPLER_WORDS
            case Difficulty.HARD:
                words = RICHER_WORDS
            case _:
                return question
        return replace(
            question,
            text=_replace_words(question.text, words),
            explanation=_replace_words(question.explanation, words),
        )

    def expand_topic(self, topic: str, age: int) -> list[str]:
        return list(RELATED_TOPICS.get(topic.lower(), (topic,)))
