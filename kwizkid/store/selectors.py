"""
Selectors and subscription helpers for the KwizKid store.

Selectors derive values from an ``AppState`` snapshot. Screen code should use
them instead of reaching into state fields so derived rules (premium access,
which categories suit the signed-in child) live in one place.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, assert_never

from kwizkid.core.constants import SubscriptionStatus
from kwizkid.store.state import AppState, CategorySelectionScreen, QuizScreen, ResultsScreen, WelcomeScreen

if TYPE_CHECKING:
    from kwizkid.core.dataclasses import QuizCategory, QuizScore, User, UserStats
    from kwizkid.store.store import AppStore, UnsubscribeFunction

logger = logging.getLogger(__name__)


class Selectors:
    """Selector functions to derive computed state."""

    # === Session ===

    @staticmethod
    def user(state: AppState) -> User | None:
        return state.user

    @staticmethod
    def is_authenticated(state: AppState) -> bool:
        """Check if a user is signed in."""
        return state.user is not None

    @staticmethod
    def user_age(state: AppState) -> int | None:
        return state.user.age if state.user is not None else None

    @staticmethod
    def has_premium_access(state: AppState) -> bool:
        """Premium features are unlocked for premium and trial subscribers."""
        return state.subscription_status in (SubscriptionStatus.PREMIUM, SubscriptionStatus.TRIAL)

    # === Navigation ===

    @staticmethod
    def screen_name(state: AppState) -> str:
        """Get a stable name for the current screen (for logging and routing)."""
        match state.current_screen:
            case WelcomeScreen():
                return "welcome"
            case CategorySelectionScreen():
                return "category_selection"
            case QuizScreen():
                return "quiz"
            case ResultsScreen():
                return "results"
            case _:
                assert_never(state.current_screen)

    @staticmethod
    def active_category(state: AppState) -> QuizCategory | None:
        """Category of the quiz screen, if the quiz screen is showing."""
        if isinstance(state.current_screen, QuizScreen):
            return state.current_screen.category
        return None

    @staticmethod
    def latest_score(state: AppState) -> QuizScore | None:
        """Score shown on the results screen, if it is showing."""
        if isinstance(state.current_screen, ResultsScreen):
            return state.current_screen.score
        return None

    # === Content ===

    @staticmethod
    def category_by_id(state: AppState, category_id: str) -> QuizCategory | None:
        for category in state.categories:
            if category.id == category_id:
                return category
        return None

    @staticmethod
    def age_appropriate_categories(state: AppState) -> tuple[QuizCategory, ...]:
        """Categories whose age range includes the signed-in child (all when signed out)."""
        if state.user is None:
            return state.categories
        return tuple(c for c in state.categories if c.age_range.contains(state.user.age))

    @staticmethod
    def favorite_categories(state: AppState) -> tuple[QuizCategory, ...]:
        if state.user is None:
            return ()
        favorites = state.user.preferences.favorite_categories
        return tuple(c for c in state.categories if c.id in favorites)

    @staticmethod
    def is_quiz_ready(state: AppState) -> bool:
        """Check that a quiz is loaded for the category on screen."""
        category = Selectors.active_category(state)
        return category is not None and state.current_quiz is not None and state.current_quiz.category == category

    # === UI feedback ===

    @staticmethod
    def is_loading(state: AppState) -> bool:
        return state.is_loading

    @staticmethod
    def error_message(state: AppState) -> str | None:
        return state.error_message

    @staticmethod
    def has_error(state: AppState) -> bool:
        return state.error_message is not None

    # === Progress ===

    @staticmethod
    def user_stats(state: AppState) -> UserStats:
        return state.user_stats

    @staticmethod
    def average_accuracy_percent(state: AppState) -> int:
        return int(state.user_stats.average_accuracy * 100)


def connect_component(
    store: AppStore,
    state_to_props: Callable[[AppState], dict[str, Any]],
    handlers: dict[str, Callable[[Any], None]],
) -> UnsubscribeFunction:
    """
    Connect a screen component to the store (similar to Redux connect()).

    Handlers are called once with the current values, then again whenever a
    prop value changes.

    Args:
        store: The app store
        state_to_props: Function that extracts relevant state for this component
        handlers: Dict mapping prop names to handler functions

    Returns:
        Unsubscribe function

    Example:
        connect_component(
            store,
            state_to_props=lambda s: {"loading": s.is_loading},
            handlers={"loading": spinner.set_visible},
        )

    """
    last_props: dict[str, Any] = {}

    def on_state_change(old_state: AppState, new_state: AppState) -> None:
        nonlocal last_props
        new_props = state_to_props(new_state)

        for prop_name, value in new_props.items():
            if prop_name not in last_props or last_props[prop_name] != value:
                if prop_name in handlers:
                    handlers[prop_name](value)

        last_props = new_props

    # Initial render with current state
    on_state_change(store.state, store.state)

    return store.subscribe(on_state_change)
