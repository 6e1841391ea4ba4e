"""
Middleware pipeline for the KwizKid store.

A middleware is called with the incoming action, the state *before* this
dispatch and the store's ``dispatch`` handle. It returns a MiddlewareResult:
the (possibly rewritten) action to hand to the next middleware, plus any
effects to schedule and effect cancellation keys to apply. Returning a result
without an action cancels the dispatch.

For convenience a middleware may also return a bare action (or None); the
store treats that as a result with no effects.

Middleware run strictly in registration order before the reducer. They never
mutate state; collaborator calls happen inside effects.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from kwizkid.core.constants import AnalyticsEvent, EffectKey, ErrorKind, QuizDefaults
from kwizkid.core.dataclasses import Quiz, QuizCategory
from kwizkid.core.exceptions import ContentError, ErrorCodes
from kwizkid.store.actions import (
    Action,
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
from kwizkid.store.effects import Dispatch, Effect
from kwizkid.store.state import AppState, QuizScreen

if TYPE_CHECKING:
    from kwizkid.services.child_safety import ChildSafetyService
    from kwizkid.services.protocols import (
        AnalyticsTrackerProtocol,
        AuthServiceProtocol,
        CategoryCatalogProtocol,
        QuestionServiceProtocol,
        SubscriptionServiceProtocol,
    )

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MiddlewareResult:
    """What a middleware hands back to the store."""

    action: Action | None
    effects: tuple[Effect, ...] = ()
    cancel_keys: tuple[str, ...] = ()

    @classmethod
    def forward(cls, action: Action) -> MiddlewareResult:
        """Pass ``action`` on unchanged with no effects."""
        return cls(action=action)

    @property
    def is_cancelled(self) -> bool:
        return self.action is None


class Middleware(Protocol):
    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult | Action | None: ...


# =============================================================================
# Generic middleware
# =============================================================================


def logging_middleware(action: Action, state: AppState, dispatch: Dispatch) -> Action:
    """Middleware that logs all actions."""
    logger.info("Action dispatched: %s | %r", action.type, action)
    return action


EffectBuilder = Callable[[Action, AppState], Effect | None]


def create_effect_middleware(handlers: dict[type[Action], EffectBuilder]) -> Middleware:
    """
    Create middleware that turns specific action classes into effects.

    Args:
        handlers: Dict mapping action classes to functions that build an
            Effect (or None for no effect) from the action and current state

    Returns:
        Middleware function

    """

    def middleware(action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        builder = handlers.get(type(action))
        if builder is None:
            return MiddlewareResult.forward(action)
        effect = builder(action, state)
        return MiddlewareResult(action=action, effects=(effect,) if effect is not None else ())

    return middleware


# =============================================================================
# Observation
# =============================================================================


class AnalyticsMiddleware:
    """Records product analytics for a handful of actions."""

    def __init__(self, tracker: AnalyticsTrackerProtocol) -> None:
        self.tracker = tracker

    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        match action:
            case AppLaunched():
                self.tracker.track(AnalyticsEvent.APP_LAUNCHED)
            case QuizCompleted(score=score):
                self.tracker.track(
                    AnalyticsEvent.QUIZ_COMPLETED,
                    {
                        "category_id": score.category.id,
                        "total_questions": score.total_questions,
                        "correct_answers": score.correct_answers,
                        "time_spent": score.time_spent,
                    },
                )
            case PurchaseSubscription():
                self.tracker.track(
                    AnalyticsEvent.SUBSCRIPTION_PURCHASE_STARTED,
                    {"current_status": state.subscription_status.value},
                )
            case _:
                pass
        return MiddlewareResult.forward(action)


class ContentSafetyMiddleware:
    """
    Blocks quizzes that do not suit the signed-in child.

    When the parental content filter is on, a ``StartQuiz`` for a category outside
    the child's age range, or whose text fails the age check, is rewritten into
    ``SetError(ContentError)`` before it reaches the reducer.
    """

    def __init__(self, safety: ChildSafetyService) -> None:
        self.safety = safety

    def _rejection_reason(self, category: QuizCategory, age: int) -> str | None:
        if not category.age_range.contains(age):
            return f"{category.name} is meant for ages {category.age_range.min}-{category.age_range.max}"
        text = f"{category.name} {category.description}"
        if not self.safety.is_content_appropriate_for_age(text, age):
            return "Content not appropriate for this age group"
        return None

    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        if not isinstance(action, StartQuiz) or state.user is None:
            return MiddlewareResult.forward(action)
        if not state.user.preferences.parental_controls.content_filter:
            return MiddlewareResult.forward(action)

        reason = self._rejection_reason(action.category, state.user.age)
        if reason is None:
            return MiddlewareResult.forward(action)

        logger.info("Quiz for category %s blocked for age %d: %s", action.category.id, state.user.age, reason)
        return MiddlewareResult(action=SetError(ContentError(reason, error_code=ErrorCodes.CONTENT_REJECTED)))


# =============================================================================
# Collaborator effects
# =============================================================================


class AuthMiddleware:
    """Sign in, sign up and sign out through the authentication collaborator."""

    def __init__(self, auth: AuthServiceProtocol) -> None:
        self.auth = auth

    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        match action:
            case SignIn(email=email, password=password):

                async def sign_in() -> Action:
                    return AuthenticationSucceeded(await self.auth.sign_in(email, password))

                effect = Effect("sign_in", sign_in, AuthenticationFailed, ErrorKind.AUTHENTICATION, EffectKey.AUTH)
                return MiddlewareResult(action, effects=(effect,), cancel_keys=(EffectKey.AUTH,))

            case SignUp(email=email, password=password, name=name):

                async def sign_up() -> Action:
                    return AuthenticationSucceeded(await self.auth.sign_up(email, password, name))

                effect = Effect("sign_up", sign_up, AuthenticationFailed, ErrorKind.AUTHENTICATION, EffectKey.AUTH)
                return MiddlewareResult(action, effects=(effect,), cancel_keys=(EffectKey.AUTH,))

            case SignOut():

                async def sign_out() -> None:
                    await self.auth.sign_out()

                effect = Effect("sign_out", sign_out, AuthenticationFailed, ErrorKind.AUTHENTICATION, EffectKey.AUTH)
                # Nothing started for the previous session should land after sign out
                return MiddlewareResult(action, effects=(effect,), cancel_keys=tuple(EffectKey))

            case _:
                return MiddlewareResult.forward(action)


class CategoryMiddleware:
    """Loads the category catalog."""

    def __init__(self, catalog: CategoryCatalogProtocol) -> None:
        self.catalog = catalog

    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        if not isinstance(action, LoadCategories):
            return MiddlewareResult.forward(action)

        async def load() -> Action:
            return CategoriesLoaded(tuple(await self.catalog.fetch_categories()))

        effect = Effect("load_categories", load, CategoriesLoadFailed, ErrorKind.NETWORK, EffectKey.CATEGORIES)
        return MiddlewareResult(action, effects=(effect,), cancel_keys=(EffectKey.CATEGORIES,))


class QuizMiddleware:
    """
    Builds quizzes through the question collaborator.

    A new ``StartQuiz`` replaces any quiz load still in flight, and navigating
    to any screen other than the quiz screen cancels it.
    """

    def __init__(
        self,
        questions: QuestionServiceProtocol,
        questions_per_quiz: int = QuizDefaults.QUESTIONS_PER_QUIZ,
        seconds_per_question: int = QuizDefaults.SECONDS_PER_QUESTION,
    ) -> None:
        self.questions = questions
        self.questions_per_quiz = questions_per_quiz
        self.seconds_per_question = seconds_per_question

    async def _build_quiz(self, category: QuizCategory) -> Quiz:
        questions = await self.questions.generate_questions(category, self.questions_per_quiz)
        valid = tuple(question for question in questions if question.is_valid())
        if len(valid) < len(questions):
            logger.warning("Dropped %d malformed questions for %s", len(questions) - len(valid), category.id)
        if not valid:
            msg = f"No questions available for {category.name}"
            raise ContentError(msg, error_code=ErrorCodes.NO_QUESTIONS)
        return Quiz(
            id=str(uuid.uuid4()),
            category=category,
            questions=valid,
            time_limit=len(valid) * self.seconds_per_question,
        )

    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        match action:
            case StartQuiz(category=category):

                async def load() -> Action:
                    return QuizLoaded(await self._build_quiz(category))

                effect = Effect(f"start_quiz:{category.id}", load, QuizLoadFailed, ErrorKind.CONTENT, EffectKey.QUIZ)
                return MiddlewareResult(action, effects=(effect,), cancel_keys=(EffectKey.QUIZ,))

            case NavigateTo(screen=screen) if not isinstance(screen, QuizScreen):
                return MiddlewareResult(action, cancel_keys=(EffectKey.QUIZ,))

            case _:
                return MiddlewareResult.forward(action)


class SubscriptionMiddleware:
    """Subscription status checks and purchases."""

    def __init__(self, subscriptions: SubscriptionServiceProtocol) -> None:
        self.subscriptions = subscriptions

    def __call__(self, action: Action, state: AppState, dispatch: Dispatch) -> MiddlewareResult:
        match action:
            case CheckSubscriptionStatus():

                async def check() -> Action:
                    return SubscriptionStatusUpdated(await self.subscriptions.check_status())

                effect = Effect(
                    "check_subscription", check, SubscriptionPurchaseFailed, ErrorKind.SUBSCRIPTION, EffectKey.SUBSCRIPTION
                )
                return MiddlewareResult(action, effects=(effect,))

            case PurchaseSubscription():

                async def purchase() -> Action:
                    await self.subscriptions.purchase()
                    return SubscriptionPurchased()

                effect = Effect(
                    "purchase_subscription", purchase, SubscriptionPurchaseFailed, ErrorKind.SUBSCRIPTION, EffectKey.SUBSCRIPTION
                )
                return MiddlewareResult(action, effects=(effect,))

            case _:
                return MiddlewareResult.forward(action)
