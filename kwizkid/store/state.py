"""
Application state for the KwizKid store.

``AppState`` is the single source of truth. It is frozen: every dispatch
produces a new snapshot through the reducer and the store swaps it in whole.

``Screen`` is a closed union of frozen dataclasses. The payload of the quiz
and results screens lives inside the variant, so there is no way to be on the
quiz screen without a category or on the results screen without a score.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from kwizkid.core.constants import CurrentTab, SubscriptionStatus
from kwizkid.core.dataclasses import Quiz, QuizCategory, QuizScore, User, UserStats

# =============================================================================
# Screens
# =============================================================================


@dataclass(frozen=True)
class WelcomeScreen:
    """Landing screen shown before sign in."""


@dataclass(frozen=True)
class CategorySelectionScreen:
    """Main tab view with the category grid."""


@dataclass(frozen=True)
class QuizScreen:
    """Quiz in progress for ``category``."""

    category: QuizCategory


@dataclass(frozen=True)
class ResultsScreen:
    """Results for a completed quiz."""

    score: QuizScore


Screen = WelcomeScreen | CategorySelectionScreen | QuizScreen | ResultsScreen


# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class AppState:
    """
    Immutable application state container.

    State is organized into logical sections:
    - Navigation: current screen and selected tab
    - Session: signed-in user and subscription tier
    - Content: category catalog and the loaded quiz
    - UI feedback: loading flag and error banner text
    - Progress: cumulative learning statistics
    """

    # === Navigation ===
    current_screen: Screen = field(default_factory=WelcomeScreen)
    selected_tab: CurrentTab = CurrentTab.HOME

    # === Session ===
    user: User | None = None
    subscription_status: SubscriptionStatus = SubscriptionStatus.FREE

    # === Content ===
    categories: tuple[QuizCategory, ...] = ()
    current_quiz: Quiz | None = None

    # === UI feedback ===
    is_loading: bool = False
    error_message: str | None = None

    # === Progress ===
    user_stats: UserStats = field(default_factory=UserStats)
