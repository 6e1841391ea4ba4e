#!/usr/bin/env python3
"""
Shared test fixtures for KwizKid.
Provides domain values, fake collaborators and store helpers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from kwizkid.core.constants import Difficulty, SubscriptionStatus
from kwizkid.core.dataclasses import DEFAULT_CATEGORIES, Question, Quiz, QuizCategory, QuizScore, User
from kwizkid.services.child_safety import ChildSafetyService
from kwizkid.store.effects import EffectRunner
from kwizkid.store.store import AppStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


# ============================================================================
# Domain values
# ============================================================================


@pytest.fixture
def math_category() -> QuizCategory:
    """Math category (ages 5-12)."""
    return DEFAULT_CATEGORIES[0]


@pytest.fixture
def science_category() -> QuizCategory:
    """Science category (ages 6-12)."""
    return DEFAULT_CATEGORIES[1]


@pytest.fixture
def user() -> User:
    """An 8 year old with default preferences."""
    return User(id="user-1", name="Sam", age=8)


@pytest.fixture
def questions() -> list[Question]:
    """Three valid questions."""
    return [
        Question("q1", "What is 1 + 1?", ("1", "2", "3", "4"), 1, "1 + 1 is 2."),
        Question("q2", "What is 2 + 2?", ("3", "4", "5", "6"), 1, "2 + 2 is 4."),
        Question("q3", "What is 3 + 3?", ("5", "6", "7", "8"), 1, "3 + 3 is 6.", Difficulty.MEDIUM),
    ]


@pytest.fixture
def quiz(math_category: QuizCategory, questions: list[Question]) -> Quiz:
    return Quiz(id="quiz-1", category=math_category, questions=tuple(questions), time_limit=90)


@pytest.fixture
def make_score(math_category: QuizCategory) -> Callable[..., QuizScore]:
    """Factory for scores; defaults to 4/5 in math completed 2024-03-04 10:00."""

    def _make(
        correct: int = 4,
        total: int = 5,
        time_spent: int = 60,
        category: QuizCategory | None = None,
        completed_at: datetime | None = None,
    ) -> QuizScore:
        return QuizScore(
            total_questions=total,
            correct_answers=correct,
            time_spent=time_spent,
            category=category or math_category,
            completed_at=completed_at or datetime(2024, 3, 4, 10, 0),
        )

    return _make


# ============================================================================
# Fake collaborators
# ============================================================================


@pytest.fixture
def mock_auth(user: User) -> MagicMock:
    """Auth collaborator whose calls succeed with ``user``."""
    auth = MagicMock()
    auth.sign_in = AsyncMock(return_value=user)
    auth.sign_up = AsyncMock(return_value=user)
    auth.sign_out = AsyncMock(return_value=None)
    return auth


@pytest.fixture
def mock_subscriptions() -> MagicMock:
    subscriptions = MagicMock()
    subscriptions.check_status = AsyncMock(return_value=SubscriptionStatus.FREE)
    subscriptions.purchase = AsyncMock(return_value=None)
    return subscriptions


@pytest.fixture
def mock_questions(questions: list[Question]) -> MagicMock:
    service = MagicMock()
    service.generate_questions = AsyncMock(return_value=questions)
    return service


@pytest.fixture
def mock_catalog() -> MagicMock:
    catalog = MagicMock()
    catalog.fetch_categories = AsyncMock(return_value=list(DEFAULT_CATEGORIES))
    return catalog


@pytest.fixture
def mock_tracker() -> MagicMock:
    return MagicMock()


@pytest.fixture
def safety() -> ChildSafetyService:
    return ChildSafetyService()


# ============================================================================
# Store helpers
# ============================================================================


@pytest.fixture
def effect_runner() -> Iterator[EffectRunner]:
    runner = EffectRunner(timeout=5.0)
    yield runner
    runner.close()


@pytest.fixture
def make_store(effect_runner: EffectRunner) -> Callable[..., AppStore]:
    """Build stores that share the test's effect runner (closed on teardown)."""

    def _make(middleware=(), initial_state=None) -> AppStore:
        return AppStore(initial_state=initial_state, middleware=middleware, effect_runner=effect_runner)

    return _make
