#!/usr/bin/env python3
"""
Quiz content service.

``QuizContentService`` is the question and category collaborator the store's
middleware uses. Questions come from the question bank first; when the bank has
nothing for a category they are generated through ``AIQuestionGenerator``,
filtered for child safety, adjusted to the category's age and difficulty,
moderated and stored back into the bank for next time.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import TYPE_CHECKING

from kwizkid.core.constants import Difficulty, QuizDefaults
from kwizkid.core.dataclasses import DEFAULT_CATEGORIES, AgeRange, Question, QuizCategory
from kwizkid.core.exceptions import AppError
from kwizkid.services.child_safety import ContentModerator, LanguageAdjuster
from kwizkid.services.question_bank import QuestionQuery, StoredQuestion

if TYPE_CHECKING:
    from kwizkid.services.protocols import AIProviderProtocol
    from kwizkid.services.question_bank import InMemoryQuestionBank

logger = logging.getLogger(__name__)

CATEGORY_TOPICS: dict[str, str] = {
    "math": "mathematics and numbers",
    "science": "science and nature",
    "reading": "reading and language",
    "history": "history and historical events",
    "geography": "geography and world knowledge",
    "art": "art and creativity",
}


def fallback_questions(count: int) -> list[Question]:
    """Questions used when the AI provider fails or returns nothing."""
    questions = [
        Question(
            id=str(uuid.uuid4()),
            text="What is 2 + 2?",
            options=("3", "4", "5", "6"),
            correct_answer=1,
            explanation="2 + 2 equals 4! When you add 2 and 2 together, you get 4.",
        ),
        Question(
            id=str(uuid.uuid4()),
            text="Which animal lives in the ocean?",
            options=("Elephant", "Fish", "Lion", "Bear"),
            correct_answer=1,
            explanation="Fish live in the ocean! They have gills to breathe underwater.",
        ),
        Question(
            id=str(uuid.uuid4()),
            text="What color do you get when you mix red and blue?",
            options=("Green", "Purple", "Orange", "Yellow"),
            correct_answer=1,
            explanation="Red and blue make purple! Mixing these two colors creates purple.",
        ),
        Question(
            id=str(uuid.uuid4()),
            text="How many sides does a triangle have?",
            options=("2", "3", "4", "5"),
            correct_answer=1,
            explanation="A triangle has 3 sides! That's why it's called a 'tri'angle.",
        ),
        Question(
            id=str(uuid.uuid4()),
            text="What do plants need to grow?",
            options=("Water only", "Sunlight only", "Water and sunlight", "Nothing"),
            correct_answer=2,
            explanation="Plants need both water and sunlight to grow healthy and strong!",
        ),
    ]
    return questions[: max(count, 0)]


class AIQuestionGenerator:
    """Builds prompts for the configured AI provider and falls back to local questions."""

    def __init__(self, provider: AIProviderProtocol) -> None:
        self.provider = provider

    @staticmethod
    def create_prompt(topic: str, difficulty: Difficulty, age_range: AgeRange, count: int) -> str:
        return (
            f'Generate {count} educational quiz questions about "{topic}" '
            f"for children aged {age_range.min}-{age_range.max} years.\n"
            "\n"
            "Requirements:\n"
            f"- Difficulty level: {difficulty.display_name}\n"
            "- Age-appropriate language\n"
            f"- {QuizDefaults.OPTIONS_PER_QUESTION} multiple choice options per question\n"
            "- Include explanations for correct answers\n"
            "- Ensure content is child-safe and educational\n"
            "- Questions should be engaging and fun\n"
            "\n"
            "Format each question as JSON with:\n"
            "- text: The question\n"
            f"- options: Array of {QuizDefaults.OPTIONS_PER_QUESTION} answer choices\n"
            f"- correctAnswer: Index of correct answer (0-{QuizDefaults.OPTIONS_PER_QUESTION - 1})\n"
            "- explanation: Why the answer is correct\n"
            f"- difficulty: {difficulty.value}"
        )

    async def generate_questions(
        self,
        topic: str,
        difficulty: Difficulty,
        age_range: AgeRange,
        count: int = QuizDefaults.QUESTIONS_PER_QUIZ,
    ) -> list[Question]:
        prompt = self.create_prompt(topic, difficulty, age_range, count)
        try:
            questions = await self.provider.generate_questions(prompt)
        except AppError as e:
            logger.warning("AI generation for %r failed, using fallback questions: %s", topic, e.description)
            return fallback_questions(count)

        if not questions:
            logger.warning("AI provider returned no questions for %r, using fallback questions", topic)
            return fallback_questions(count)
        logger.info("AI generated %d questions for %r", len(questions), topic)
        return questions[:count]


class QuizContentService:
    """Database-first question retrieval with AI generation as the fallback."""

    def __init__(
        self,
        bank: InMemoryQuestionBank,
        generator: AIQuestionGenerator,
        language: LanguageAdjuster | None = None,
        moderator: ContentModerator | None = None,
        categories: tuple[QuizCategory, ...] = DEFAULT_CATEGORIES,
    ) -> None:
        self.bank = bank
        self.generator = generator
        self.language = language or LanguageAdjuster()
        self.moderator = moderator or ContentModerator()
        self.categories = categories

    # === Catalog ===

    async def fetch_categories(self) -> list[QuizCategory]:
        return list(self.categories)

    def get_related_topics(self, category: QuizCategory) -> list[str]:
        return self.language.expand_topic(category.id, category.age_range.min)

    @staticmethod
    def topic_for_category(category: QuizCategory) -> str:
        return CATEGORY_TOPICS.get(category.id, category.name)

    # === Questions ===

    async def generate_questions(
        self, category: QuizCategory, count: int = QuizDefaults.QUESTIONS_PER_QUIZ
    ) -> list[Question]:
        query = QuestionQuery(category.name, category.difficulty, category.age_range, count)
        try:
            stored = await self.bank.fetch_questions(query, fallback_to_mock=False)
        except AppError as e:
            logger.warning("Question bank lookup failed for %s: %s", category.id, e.description)
            stored = []

        if stored:
            logger.info("Retrieved %d questions for %s from the question bank", len(stored), category.id)
            return stored

        logger.info("No stored questions for %s, generating with AI", category.id)
        questions = await self._generate_with_ai(category, count)
        if not questions:
            # Everything generated was filtered out
            return await self.bank.fetch_questions(query)

        await self._store(questions, query)
        return questions

    async def generate_custom_questions(
        self,
        topic: str,
        difficulty: Difficulty,
        age_range: AgeRange,
        count: int = QuizDefaults.QUESTIONS_PER_QUIZ,
    ) -> list[Question]:
        """Generate questions for a free-form topic. Nothing is stored."""
        questions = await self.generator.generate_questions(topic, difficulty, age_range, count)
        return self._prepare(questions, difficulty, age_range.min)

    async def _generate_with_ai(self, category: QuizCategory, count: int) -> list[Question]:
        questions = await self.generator.generate_questions(
            self.topic_for_category(category), category.difficulty, category.age_range, count
        )
        return self._prepare(questions, category.difficulty, category.age_range.min)

    def _prepare(self, questions: list[Question], difficulty: Difficulty, age: int) -> list[Question]:
        safe = [q for q in questions if self.language.validate_content_for_children(q.text, age)]
        if len(safe) < len(questions):
            logger.info("Filtered out %d questions unsuitable for age %d", len(questions) - len(safe), age)

        adjusted = []
        for question in safe:
            question = replace(
                question,
                text=self.language.adjust_language_for_age(question.text, age),
                explanation=self.language.adjust_language_for_age(question.explanation, age),
            )
            adjusted.append(self.language.adjust_difficulty(question, difficulty))

        # Moderation sees the text the child will read
        approved = []
        for question in adjusted:
            result = self.moderator.moderate_content(question.text, age)
            if result.is_approved:
                approved.append(question)
            else:
                logger.info("Moderation rejected question %s: %s", question.id, result.reason)
        return approved

    async def _store(self, questions: list[Question], query: QuestionQuery) -> None:
        try:
            await self.bank.store_questions([StoredQuestion.for_query(q, query) for q in questions])
        except AppError as e:
            logger.warning("Failed to store generated questions for %s: %s", query.category, e.description)
