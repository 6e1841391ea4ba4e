"""
Reducer for the KwizKid store.

``app_reducer`` is a pure function from (state, action) to the next state.
It performs no I/O and never raises for control flow. Actions that need
network or storage work only set transient flags here; middleware effects do
the work and report back with follow-up actions.
"""

from __future__ import annotations

from dataclasses import replace
from typing import assert_never

from kwizkid.core.constants import SubscriptionStatus
from kwizkid.core.stats import record_quiz_completion
from kwizkid.store.actions import (
    AnswerQuestion,
    AppAction,
    AppDidEnterBackground,
    AppLaunched,
    AppWillEnterForeground,
    AuthenticationFailed,
    AuthenticationSucceeded,
    CategoriesLoaded,
    CategoriesLoadFailed,
    CheckSubscriptionStatus,
    ClearError,
    GoBack,
    LoadCategories,
    NavigateTo,
    PurchaseSubscription,
    QuizCompleted,
    QuizLoaded,
    QuizLoadFailed,
    SelectCategory,
    SelectTab,
    SetError,
    SetLoading,
    SignIn,
    SignOut,
    SignUp,
    StartQuiz,
    SubmitQuiz,
    SubscriptionPurchased,
    SubscriptionPurchaseFailed,
    SubscriptionStatusUpdated,
    UpdateParentalControls,
    UpdateUserPreferences,
)
from kwizkid.store.state import AppState, CategorySelectionScreen, QuizScreen, ResultsScreen, WelcomeScreen


def _tracks_progress(state: AppState) -> bool:
    if state.user is None:
        return True
    return state.user.preferences.parental_controls.progress_tracking


def app_reducer(state: AppState, action: AppAction) -> AppState:
    """
    Pure function that takes current state and action, returns new state.

    This is the ONLY place where state changes are defined.
    """
    match action:
        # === App lifecycle ===
        case AppLaunched():
            return replace(state, current_screen=WelcomeScreen(), is_loading=False)

        case AppWillEnterForeground() | AppDidEnterBackground():
            # Lifecycle notifications are observed by middleware only
            return state

        # === Authentication ===
        case SignIn() | SignUp():
            return replace(state, is_loading=True, error_message=None)

        case AuthenticationSucceeded(user=user):
            return replace(
                state,
                user=user,
                is_loading=False,
                current_screen=CategorySelectionScreen(),
            )

        case AuthenticationFailed(error=error):
            return replace(state, is_loading=False, error_message=error.description)

        case SignOut():
            # Every pending effect is cancelled on sign out
            return replace(state, user=None, current_screen=WelcomeScreen(), is_loading=False)

        # === Categories ===
        case LoadCategories():
            return replace(state, is_loading=True, error_message=None)

        case CategoriesLoaded(categories=categories):
            return replace(state, categories=tuple(categories), is_loading=False)

        case CategoriesLoadFailed(error=error):
            return replace(state, is_loading=False, error_message=error.description)

        # === Quiz ===
        case SelectCategory(category=category):
            return replace(state, current_screen=QuizScreen(category=category))

        case StartQuiz():
            return replace(state, is_loading=True, error_message=None)

        case QuizLoaded(quiz=quiz):
            return replace(state, current_quiz=quiz, is_loading=False)

        case QuizLoadFailed(error=error):
            return replace(state, is_loading=False, error_message=error.description)

        case AnswerQuestion():
            # Per-question progress is screen-local (see QuizSession)
            return state

        case SubmitQuiz():
            return replace(state, is_loading=True)

        case QuizCompleted(score=score):
            user_stats = record_quiz_completion(state.user_stats, score) if _tracks_progress(state) else state.user_stats
            return replace(
                state,
                is_loading=False,
                current_screen=ResultsScreen(score=score),
                current_quiz=None,
                user_stats=user_stats,
            )

        # === Navigation ===
        case NavigateTo(screen=screen) if isinstance(screen, QuizScreen):
            return replace(state, current_screen=screen)

        case NavigateTo(screen=screen):
            # Leaving the quiz screen cancels a pending quiz load
            return replace(state, current_screen=screen, is_loading=False)

        case GoBack():
            # Back navigation is owned by the navigation stack of the screen layer
            return state

        case SelectTab(tab=tab):
            return replace(state, selected_tab=tab)

        # === Subscription ===
        case CheckSubscriptionStatus() | PurchaseSubscription():
            return replace(state, is_loading=True)

        case SubscriptionStatusUpdated(status=status):
            return replace(state, subscription_status=status, is_loading=False)

        case SubscriptionPurchased():
            return replace(state, subscription_status=SubscriptionStatus.PREMIUM, is_loading=False)

        case SubscriptionPurchaseFailed(error=error):
            return replace(state, is_loading=False, error_message=error.description)

        # === UI state ===
        case SetLoading(is_loading=is_loading):
            return replace(state, is_loading=is_loading)

        case SetError(error=error):
            return replace(
                state,
                error_message=error.description if error is not None else None,
                is_loading=False,
            )

        case ClearError():
            return replace(state, error_message=None, is_loading=False)

        # === Settings ===
        case UpdateUserPreferences(preferences=preferences):
            if state.user is None:
                return state
            return replace(state, user=replace(state.user, preferences=preferences))

        case UpdateParentalControls(controls=controls):
            if state.user is None:
                return state
            preferences = replace(state.user.preferences, parental_controls=controls)
            return replace(state, user=replace(state.user, preferences=preferences))

        case _:
            assert_never(action)
