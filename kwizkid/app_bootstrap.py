#!/usr/bin/env python3
"""
Application bootstrap utilities.

Sets up logging and builds a fully wired store. This is the only place that
chooses concrete collaborators; everything below it receives them through
constructors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from kwizkid.config import Settings, get_settings
from kwizkid.services.ai_providers import create_provider
from kwizkid.services.analytics import InMemoryAnalyticsTracker
from kwizkid.services.auth_service import MockAuthService
from kwizkid.services.child_safety import ChildSafetyService
from kwizkid.services.content_service import AIQuestionGenerator, QuizContentService
from kwizkid.services.question_bank import InMemoryQuestionBank
from kwizkid.services.subscription_service import LocalSubscriptionService
from kwizkid.store.effects import EffectRunner
from kwizkid.store.middleware import (
    AnalyticsMiddleware,
    AuthMiddleware,
    CategoryMiddleware,
    ContentSafetyMiddleware,
    QuizMiddleware,
    SubscriptionMiddleware,
    logging_middleware,
)
from kwizkid.store.store import AppStore

if TYPE_CHECKING:
    from kwizkid.services.protocols import (
        AnalyticsTrackerProtocol,
        AuthServiceProtocol,
        CategoryCatalogProtocol,
        QuestionServiceProtocol,
        SubscriptionServiceProtocol,
    )
    from kwizkid.store.middleware import Middleware
    from kwizkid.store.state import AppState

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings | None = None) -> Path | None:
    """
    Set up logging from settings.

    Returns:
        Path to log file, or None if using default stderr.

    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    log_file: Path | None = None
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        log_file = Path(settings.log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)
    return log_file


@dataclass(frozen=True)
class AppServices:
    """The collaborators the store's middleware talk to."""

    auth: AuthServiceProtocol
    subscriptions: SubscriptionServiceProtocol
    questions: QuestionServiceProtocol
    catalog: CategoryCatalogProtocol
    analytics: AnalyticsTrackerProtocol
    safety: ChildSafetyService


def build_services(settings: Settings) -> AppServices:
    """Build the default local collaborators, with the AI provider chosen in settings."""
    content = QuizContentService(
        bank=InMemoryQuestionBank(),
        generator=AIQuestionGenerator(create_provider(settings)),
    )
    logger.info("Using %s for question generation", settings.ai_provider.display_name)
    return AppServices(
        auth=MockAuthService(latency=settings.mock_latency),
        subscriptions=LocalSubscriptionService(),
        questions=content,
        catalog=content,
        analytics=InMemoryAnalyticsTracker(),
        safety=ChildSafetyService(),
    )


def build_middleware(settings: Settings, services: AppServices) -> list[Middleware]:
    """Middleware in execution order. ContentSafetyMiddleware must precede QuizMiddleware."""
    return [
        logging_middleware,
        AnalyticsMiddleware(services.analytics),
        ContentSafetyMiddleware(services.safety),
        AuthMiddleware(services.auth),
        CategoryMiddleware(services.catalog),
        QuizMiddleware(services.questions, settings.questions_per_quiz, settings.seconds_per_question),
        SubscriptionMiddleware(services.subscriptions),
    ]


def create_store(
    settings: Settings | None = None,
    services: AppServices | None = None,
    initial_state: AppState | None = None,
) -> AppStore:
    """Build a store wired to ``services`` (or the default local ones)."""
    settings = settings or get_settings()
    services = services or build_services(settings)
    return AppStore(
        initial_state=initial_state,
        middleware=build_middleware(settings, services),
        effect_runner=EffectRunner(timeout=settings.effect_timeout),
    )
