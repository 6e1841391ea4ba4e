"""
Tests for the store middleware.

Middleware are called directly; the effects they return are awaited with
``Effect.run`` so no event loop thread is involved.
"""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from kwizkid.core.constants import AnalyticsEvent, EffectKey, ErrorKind, SubscriptionStatus
from kwizkid.core.dataclasses import AgeRange, ParentalControls, Question, User, UserPreferences
from kwizkid.core.exceptions import AuthenticationError, ContentError, ErrorCodes, NetworkError
from kwizkid.store.actions import (
    AppLaunched,
    AuthenticationFailed,
    AuthenticationSucceeded,
    CategoriesLoaded,
    CategoriesLoadFailed,
    CheckSubscriptionStatus,
    LoadCategories,
    NavigateTo,
    PurchaseSubscription,
    QuizCompleted,
    QuizLoaded,
    QuizLoadFailed,
    SetError,
    SignIn,
    SignOut,
    SignUp,
    StartQuiz,
    SubscriptionPurchased,
    SubscriptionPurchaseFailed,
    SubscriptionStatusUpdated,
)
from kwizkid.store.effects import Effect
from kwizkid.store.middleware import (
    AnalyticsMiddleware,
    AuthMiddleware,
    CategoryMiddleware,
    ContentSafetyMiddleware,
    MiddlewareResult,
    QuizMiddleware,
    SubscriptionMiddleware,
    create_effect_middleware,
    logging_middleware,
)
from kwizkid.store.state import AppState, CategorySelectionScreen, QuizScreen


def noop_dispatch(action) -> None:
    pass


@pytest.fixture
def state() -> AppState:
    return AppState()


@pytest.fixture
def signed_in(user) -> AppState:
    return AppState(user=user, current_screen=CategorySelectionScreen())


# ============================================================================
# Generic middleware
# ============================================================================


class TestMiddlewareResult:
    def test_forward(self) -> None:
        result = MiddlewareResult.forward(AppLaunched())

        assert result.action == AppLaunched()
        assert result.effects == ()
        assert result.cancel_keys == ()
        assert result.is_cancelled is False

    def test_cancelled(self) -> None:
        assert MiddlewareResult(action=None).is_cancelled is True


class TestLoggingMiddleware:
    def test_returns_action_unchanged(self, state) -> None:
        action = AppLaunched()

        assert logging_middleware(action, state, noop_dispatch) is action

    def test_logs_action(self, state, caplog) -> None:
        with caplog.at_level("INFO", logger="kwizkid.store.middleware"):
            logging_middleware(LoadCategories(), state, noop_dispatch)

        assert "load_categories" in caplog.text


class TestCreateEffectMiddleware:
    def test_builds_effect_for_registered_action(self, state) -> None:
        effect = Effect("noop", AsyncMock(return_value=None), AuthenticationFailed)
        builder = MagicMock(return_value=effect)
        middleware = create_effect_middleware({LoadCategories: builder})

        result = middleware(LoadCategories(), state, noop_dispatch)

        builder.assert_called_once_with(LoadCategories(), state)
        assert result.effects == (effect,)
        assert result.action == LoadCategories()

    def test_ignores_other_actions(self, state) -> None:
        builder = MagicMock()
        middleware = create_effect_middleware({LoadCategories: builder})

        result = middleware(AppLaunched(), state, noop_dispatch)

        builder.assert_not_called()
        assert result.effects == ()

    def test_builder_may_return_none(self, state) -> None:
        middleware = create_effect_middleware({LoadCategories: lambda action, state: None})

        assert middleware(LoadCategories(), state, noop_dispatch).effects == ()


# ============================================================================
# Analytics
# ============================================================================


class TestAnalyticsMiddleware:
    def test_tracks_app_launch(self, state, mock_tracker) -> None:
        AnalyticsMiddleware(mock_tracker)(AppLaunched(), state, noop_dispatch)

        mock_tracker.track.assert_called_once_with(AnalyticsEvent.APP_LAUNCHED)

    def test_tracks_quiz_completion(self, state, mock_tracker, make_score) -> None:
        score = make_score(correct=3, total=5, time_spent=42)

        AnalyticsMiddleware(mock_tracker)(QuizCompleted(score), state, noop_dispatch)

        mock_tracker.track.assert_called_once_with(
            AnalyticsEvent.QUIZ_COMPLETED,
            {"category_id": "math", "total_questions": 5, "correct_answers": 3, "time_spent": 42},
        )

    def test_tracks_purchase_start(self, state, mock_tracker) -> None:
        AnalyticsMiddleware(mock_tracker)(PurchaseSubscription(), state, noop_dispatch)

        mock_tracker.track.assert_called_once_with(
            AnalyticsEvent.SUBSCRIPTION_PURCHASE_STARTED, {"current_status": "free"}
        )

    def test_ignores_other_actions_and_forwards(self, state, mock_tracker) -> None:
        result = AnalyticsMiddleware(mock_tracker)(LoadCategories(), state, noop_dispatch)

        mock_tracker.track.assert_not_called()
        assert result.action == LoadCategories()


# ============================================================================
# Content safety
# ============================================================================


class TestContentSafetyMiddleware:
    def test_allows_suitable_category(self, signed_in, safety, math_category) -> None:
        action = StartQuiz(math_category)

        result = ContentSafetyMiddleware(safety)(action, signed_in, noop_dispatch)

        assert result.action is action

    def test_rewrites_when_child_too_young(self, safety, science_category) -> None:
        """A 5 year old cannot start a quiz for ages 6-12."""
        state = AppState(user=User(id="u", name="Tiny", age=5))

        result = ContentSafetyMiddleware(safety)(StartQuiz(science_category), state, noop_dispatch)

        assert isinstance(result.action, SetError)
        assert result.action.error.kind == ErrorKind.CONTENT
        assert result.action.error.error_code == ErrorCodes.CONTENT_REJECTED
        assert "ages 6-12" in result.action.error.message

    def test_rewrites_when_child_too_old(self, safety, math_category) -> None:
        state = AppState(user=User(id="u", name="Alex", age=13))

        result = ContentSafetyMiddleware(safety)(StartQuiz(math_category), state, noop_dispatch)

        assert result.action == SetError(ContentError("Math Magic is meant for ages 5-12"))

    def test_rewrites_when_text_is_unsuitable(self, safety, math_category) -> None:
        scary = replace(math_category, description="Scary monster maths", age_range=AgeRange(5, 12))
        state = AppState(user=User(id="u", name="Kit", age=6))

        result = ContentSafetyMiddleware(safety)(StartQuiz(scary), state, noop_dispatch)

        assert result.action == SetError(ContentError("Content not appropriate for this age group"))

    def test_filter_disabled_by_parent(self, safety, science_category) -> None:
        controls = ParentalControls(content_filter=False)
        young = User(id="u", name="Tiny", age=5, preferences=UserPreferences(parental_controls=controls))

        action = StartQuiz(science_category)
        result = ContentSafetyMiddleware(safety)(action, AppState(user=young), noop_dispatch)

        assert result.action is action

    def test_signed_out_is_not_checked(self, state, safety, science_category) -> None:
        action = StartQuiz(science_category)

        assert ContentSafetyMiddleware(safety)(action, state, noop_dispatch).action is action


# ============================================================================
# Auth
# ============================================================================


class TestAuthMiddleware:
    @pytest.mark.asyncio
    async def test_sign_in_effect_succeeds(self, state, mock_auth, user) -> None:
        result = AuthMiddleware(mock_auth)(SignIn("kid@example.com", "secret"), state, noop_dispatch)

        assert result.action == SignIn("kid@example.com", "secret")
        assert result.cancel_keys == (EffectKey.AUTH,)
        (effect,) = result.effects
        assert effect.cancel_key == EffectKey.AUTH
        assert await effect.run() == AuthenticationSucceeded(user)
        mock_auth.sign_in.assert_awaited_once_with("kid@example.com", "secret")

    @pytest.mark.asyncio
    async def test_sign_in_failure_becomes_failed_action(self, state, mock_auth) -> None:
        mock_auth.sign_in.side_effect = AuthenticationError("Invalid credentials")

        (effect,) = AuthMiddleware(mock_auth)(SignIn("a@b.c", "x"), state, noop_dispatch).effects

        assert await effect.run() == AuthenticationFailed(AuthenticationError("Invalid credentials"))

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_wrapped(self, state, mock_auth) -> None:
        """Non-AppError exceptions become authentication errors, never escape."""
        mock_auth.sign_up.side_effect = RuntimeError("socket closed")

        (effect,) = AuthMiddleware(mock_auth)(SignUp("a@b.c", "x", "Al"), state, noop_dispatch).effects
        follow_up = await effect.run()

        assert isinstance(follow_up, AuthenticationFailed)
        assert follow_up.error.kind == ErrorKind.AUTHENTICATION
        assert follow_up.error.message == "socket closed"
        mock_auth.sign_up.assert_awaited_once_with("a@b.c", "x", "Al")

    @pytest.mark.asyncio
    async def test_sign_out_cancels_everything(self, signed_in, mock_auth) -> None:
        result = AuthMiddleware(mock_auth)(SignOut(), signed_in, noop_dispatch)

        assert set(result.cancel_keys) == set(EffectKey)
        (effect,) = result.effects
        assert await effect.run() is None
        mock_auth.sign_out.assert_awaited_once()

    def test_forwards_other_actions(self, state, mock_auth) -> None:
        result = AuthMiddleware(mock_auth)(LoadCategories(), state, noop_dispatch)

        assert result == MiddlewareResult.forward(LoadCategories())


# ============================================================================
# Categories
# ============================================================================


class TestCategoryMiddleware:
    @pytest.mark.asyncio
    async def test_load_categories(self, state, mock_catalog, math_category) -> None:
        (effect,) = CategoryMiddleware(mock_catalog)(LoadCategories(), state, noop_dispatch).effects

        follow_up = await effect.run()

        assert isinstance(follow_up, CategoriesLoaded)
        assert follow_up.categories[0] == math_category
        assert len(follow_up.categories) == 6

    @pytest.mark.asyncio
    async def test_load_failure_is_network_error(self, state, mock_catalog) -> None:
        mock_catalog.fetch_categories.side_effect = ConnectionError("offline")

        (effect,) = CategoryMiddleware(mock_catalog)(LoadCategories(), state, noop_dispatch).effects

        assert await effect.run() == CategoriesLoadFailed(NetworkError("offline"))


# ============================================================================
# Quiz
# ============================================================================


class TestQuizMiddleware:
    @pytest.mark.asyncio
    async def test_start_quiz_builds_quiz(self, signed_in, mock_questions, math_category, questions) -> None:
        middleware = QuizMiddleware(mock_questions, questions_per_quiz=5, seconds_per_question=30)

        result = middleware(StartQuiz(math_category), signed_in, noop_dispatch)
        follow_up = await result.effects[0].run()

        assert result.cancel_keys == (EffectKey.QUIZ,)
        assert isinstance(follow_up, QuizLoaded)
        assert follow_up.quiz.category == math_category
        assert follow_up.quiz.questions == tuple(questions)
        assert follow_up.quiz.time_limit == 90
        mock_questions.generate_questions.assert_awaited_once_with(math_category, 5)

    @pytest.mark.asyncio
    async def test_drops_invalid_questions(self, signed_in, mock_questions, math_category, questions) -> None:
        broken = Question("bad", "Broken?", ("a", "b"), 7, "")
        mock_questions.generate_questions.return_value = [*questions, broken]

        (effect,) = QuizMiddleware(mock_questions)(StartQuiz(math_category), signed_in, noop_dispatch).effects
        follow_up = await effect.run()

        assert broken not in follow_up.quiz.questions
        assert follow_up.quiz.question_count == 3

    @pytest.mark.asyncio
    async def test_no_questions_fails(self, signed_in, mock_questions, math_category) -> None:
        mock_questions.generate_questions.return_value = []

        (effect,) = QuizMiddleware(mock_questions)(StartQuiz(math_category), signed_in, noop_dispatch).effects
        follow_up = await effect.run()

        assert isinstance(follow_up, QuizLoadFailed)
        assert follow_up.error.error_code == ErrorCodes.NO_QUESTIONS

    def test_navigating_away_cancels_quiz_load(self, signed_in, mock_questions) -> None:
        result = QuizMiddleware(mock_questions)(NavigateTo(CategorySelectionScreen()), signed_in, noop_dispatch)

        assert result.cancel_keys == (EffectKey.QUIZ,)
        assert result.effects == ()

    def test_navigating_to_quiz_keeps_quiz_load(self, signed_in, mock_questions, math_category) -> None:
        result = QuizMiddleware(mock_questions)(NavigateTo(QuizScreen(math_category)), signed_in, noop_dispatch)

        assert result.cancel_keys == ()


# ============================================================================
# Subscription
# ============================================================================


class TestSubscriptionMiddleware:
    @pytest.mark.asyncio
    async def test_check_status(self, state, mock_subscriptions) -> None:
        mock_subscriptions.check_status.return_value = SubscriptionStatus.TRIAL

        (effect,) = SubscriptionMiddleware(mock_subscriptions)(CheckSubscriptionStatus(), state, noop_dispatch).effects

        assert await effect.run() == SubscriptionStatusUpdated(SubscriptionStatus.TRIAL)

    @pytest.mark.asyncio
    async def test_check_status_failure(self, state, mock_subscriptions) -> None:
        mock_subscriptions.check_status.side_effect = RuntimeError("store unavailable")

        (effect,) = SubscriptionMiddleware(mock_subscriptions)(CheckSubscriptionStatus(), state, noop_dispatch).effects
        follow_up = await effect.run()

        assert isinstance(follow_up, SubscriptionPurchaseFailed)
        assert follow_up.error.kind == ErrorKind.SUBSCRIPTION

    @pytest.mark.asyncio
    async def test_purchase(self, state, mock_subscriptions) -> None:
        (effect,) = SubscriptionMiddleware(mock_subscriptions)(PurchaseSubscription(), state, noop_dispatch).effects

        assert await effect.run() == SubscriptionPurchased()
        mock_subscriptions.purchase.assert_awaited_once()
