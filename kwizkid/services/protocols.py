#!/usr/bin/env python3
"""
Service Protocol Interfaces for KwizKid.

Defines Protocol interfaces for the collaborators the store's middleware
talks to. Middleware receives implementations at construction time and
type hints against these protocols rather than concrete classes, so tests
can substitute fakes.

Usage:
    from kwizkid.services.protocols import AuthServiceProtocol

    def build(auth: AuthServiceProtocol) -> AuthMiddleware:
        return AuthMiddleware(auth)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kwizkid.core.constants import AnalyticsEvent, SubscriptionStatus
    from kwizkid.core.dataclasses import Question, QuizCategory, User


@runtime_checkable
class AuthServiceProtocol(Protocol):
    """
    Protocol for account authentication.

    Failures are raised as AuthenticationError (or another AppError).
    """

    async def sign_in(self, email: str, password: str) -> User:
        """Authenticate an existing account."""
        ...

    async def sign_up(self, email: str, password: str, name: str) -> User:
        """Create an account and return its user."""
        ...

    async def sign_out(self) -> None:
        """End the current session."""
        ...


@runtime_checkable
class SubscriptionServiceProtocol(Protocol):
    """Protocol for subscription status and purchase."""

    async def check_status(self) -> SubscriptionStatus:
        """Return the current subscription tier."""
        ...

    async def purchase(self) -> None:
        """Purchase the premium subscription. Raises SubscriptionError on failure."""
        ...


@runtime_checkable
class QuestionServiceProtocol(Protocol):
    """
    Protocol for quiz content.

    Implementations are expected to fall back to local mock data internally
    when their primary source fails.
    """

    async def generate_questions(self, category: QuizCategory, count: int) -> list[Question]:
        """Return up to ``count`` questions for ``category``."""
        ...


@runtime_checkable
class CategoryCatalogProtocol(Protocol):
    """Protocol for the category catalog."""

    async def fetch_categories(self) -> list[QuizCategory]:
        """Return the ordered category catalog."""
        ...


@runtime_checkable
class AnalyticsTrackerProtocol(Protocol):
    """Protocol for analytics event sinks."""

    def track(self, event: AnalyticsEvent, properties: dict[str, Any] | None = None) -> None:
        """Record one event. Must not raise."""
        ...


@runtime_checkable
class AIProviderProtocol(Protocol):
    """Protocol for AI content generation backends."""

    async def generate_questions(self, prompt: str) -> list[Question]:
        """Generate questions for a fully built prompt."""
        ...

    async def validate_content(self, content: str) -> bool:
        """Return True when ``content`` is acceptable for children."""
        ...

    async def adjust_language(self, content: str, age: int) -> str:
        """Rewrite ``content`` for a reader of ``age``."""
        ...
