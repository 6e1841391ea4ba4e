"""
KwizKid store - single-writer state container.

Usage:
    store = create_store(settings)
    unsubscribe = store.subscribe(on_change)
    store.dispatch(Actions.app_launched())
"""

from kwizkid.store.actions import Action, Actions, ActionType, AppAction
from kwizkid.store.effects import Effect, EffectRunner
from kwizkid.store.middleware import (
    AnalyticsMiddleware,
    AuthMiddleware,
    CategoryMiddleware,
    ContentSafetyMiddleware,
    Middleware,
    MiddlewareResult,
    QuizMiddleware,
    SubscriptionMiddleware,
    create_effect_middleware,
    logging_middleware,
)
from kwizkid.store.reducer import app_reducer
from kwizkid.store.selectors import Selectors, connect_component
from kwizkid.store.state import AppState, CategorySelectionScreen, QuizScreen, ResultsScreen, Screen, WelcomeScreen
from kwizkid.store.store import AppStore

__all__ = [
    "Action",
    "ActionType",
    "Actions",
    "AnalyticsMiddleware",
    "AppAction",
    "AppState",
    "AppStore",
    "AuthMiddleware",
    "CategoryMiddleware",
    "CategorySelectionScreen",
    "ContentSafetyMiddleware",
    "Effect",
    "EffectRunner",
    "Middleware",
    "MiddlewareResult",
    "QuizMiddleware",
    "QuizScreen",
    "ResultsScreen",
    "Screen",
    "Selectors",
    "SubscriptionMiddleware",
    "WelcomeScreen",
    "app_reducer",
    "connect_component",
    "create_effect_middleware",
    "logging_middleware",
]
