"""
Action set for the KwizKid store.

Every event the store recognizes is one frozen dataclass below. Actions are
pure data: they describe what happened, never how state changes. The closed
union ``AppAction`` lists every variant; the reducer matches it exhaustively
and ends in ``assert_never`` so a type checker rejects a variant the reducer
does not handle.

Usage:
    store.dispatch(Actions.select_category(category))
    store.dispatch(SignIn(email="kid@example.com", password="secret"))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import ClassVar

from kwizkid.core.constants import CurrentTab, SubscriptionStatus
from kwizkid.core.dataclasses import ParentalControls, Quiz, QuizCategory, QuizScore, User, UserPreferences
from kwizkid.core.exceptions import AppError
from kwizkid.store.state import Screen


class ActionType(StrEnum):
    """All possible action types."""

    # App lifecycle
    APP_LAUNCHED = auto()
    APP_WILL_ENTER_FOREGROUND = auto()
    APP_DID_ENTER_BACKGROUND = auto()

    # Authentication
    SIGN_IN = auto()
    SIGN_UP = auto()
    SIGN_OUT = auto()
    AUTHENTICATION_SUCCEEDED = auto()
    AUTHENTICATION_FAILED = auto()

    # Categories
    LOAD_CATEGORIES = auto()
    CATEGORIES_LOADED = auto()
    CATEGORIES_LOAD_FAILED = auto()

    # Quiz
    SELECT_CATEGORY = auto()
    START_QUIZ = auto()
    QUIZ_LOADED = auto()
    QUIZ_LOAD_FAILED = auto()
    ANSWER_QUESTION = auto()
    SUBMIT_QUIZ = auto()
    QUIZ_COMPLETED = auto()

    # Navigation
    NAVIGATE_TO = auto()
    GO_BACK = auto()
    SELECT_TAB = auto()

    # Subscription
    CHECK_SUBSCRIPTION_STATUS = auto()
    SUBSCRIPTION_STATUS_UPDATED = auto()
    PURCHASE_SUBSCRIPTION = auto()
    SUBSCRIPTION_PURCHASED = auto()
    SUBSCRIPTION_PURCHASE_FAILED = auto()

    # UI state
    SET_LOADING = auto()
    SET_ERROR = auto()
    CLEAR_ERROR = auto()

    # Settings
    UPDATE_USER_PREFERENCES = auto()
    UPDATE_PARENTAL_CONTROLS = auto()


@dataclass(frozen=True)
class Action:
    """Base class for all actions."""

    type: ClassVar[ActionType]


# === App lifecycle ===


@dataclass(frozen=True)
class AppLaunched(Action):
    type: ClassVar[ActionType] = ActionType.APP_LAUNCHED


@dataclass(frozen=True)
class AppWillEnterForeground(Action):
    type: ClassVar[ActionType] = ActionType.APP_WILL_ENTER_FOREGROUND


@dataclass(frozen=True)
class AppDidEnterBackground(Action):
    type: ClassVar[ActionType] = ActionType.APP_DID_ENTER_BACKGROUND


# === Authentication ===


@dataclass(frozen=True)
class SignIn(Action):
    type: ClassVar[ActionType] = ActionType.SIGN_IN
    email: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class SignUp(Action):
    type: ClassVar[ActionType] = ActionType.SIGN_UP
    email: str
    password: str = field(repr=False)
    name: str = ""


@dataclass(frozen=True)
class SignOut(Action):
    type: ClassVar[ActionType] = ActionType.SIGN_OUT


@dataclass(frozen=True)
class AuthenticationSucceeded(Action):
    type: ClassVar[ActionType] = ActionType.AUTHENTICATION_SUCCEEDED
    user: User


@dataclass(frozen=True)
class AuthenticationFailed(Action):
    type: ClassVar[ActionType] = ActionType.AUTHENTICATION_FAILED
    error: AppError


# === Categories ===


@dataclass(frozen=True)
class LoadCategories(Action):
    type: ClassVar[ActionType] = ActionType.LOAD_CATEGORIES


@dataclass(frozen=True)
class CategoriesLoaded(Action):
    type: ClassVar[ActionType] = ActionType.CATEGORIES_LOADED
    categories: tuple[QuizCategory, ...]


@dataclass(frozen=True)
class CategoriesLoadFailed(Action):
    type: ClassVar[ActionType] = ActionType.CATEGORIES_LOAD_FAILED
    error: AppError


# === Quiz ===


@dataclass(frozen=True)
class SelectCategory(Action):
    type: ClassVar[ActionType] = ActionType.SELECT_CATEGORY
    category: QuizCategory


@dataclass(frozen=True)
class StartQuiz(Action):
    type: ClassVar[ActionType] = ActionType.START_QUIZ
    category: QuizCategory


@dataclass(frozen=True)
class QuizLoaded(Action):
    type: ClassVar[ActionType] = ActionType.QUIZ_LOADED
    quiz: Quiz


@dataclass(frozen=True)
class QuizLoadFailed(Action):
    type: ClassVar[ActionType] = ActionType.QUIZ_LOAD_FAILED
    error: AppError


@dataclass(frozen=True)
class AnswerQuestion(Action):
    type: ClassVar[ActionType] = ActionType.ANSWER_QUESTION
    answer_index: int


@dataclass(frozen=True)
class SubmitQuiz(Action):
    type: ClassVar[ActionType] = ActionType.SUBMIT_QUIZ


@dataclass(frozen=True)
class QuizCompleted(Action):
    type: ClassVar[ActionType] = ActionType.QUIZ_COMPLETED
    score: QuizScore


# === Navigation ===


@dataclass(frozen=True)
class NavigateTo(Action):
    type: ClassVar[ActionType] = ActionType.NAVIGATE_TO
    screen: Screen


@dataclass(frozen=True)
class GoBack(Action):
    type: ClassVar[ActionType] = ActionType.GO_BACK


@dataclass(frozen=True)
class SelectTab(Action):
    type: ClassVar[ActionType] = ActionType.SELECT_TAB
    tab: CurrentTab


# === Subscription ===


@dataclass(frozen=True)
class CheckSubscriptionStatus(Action):
    type: ClassVar[ActionType] = ActionType.CHECK_SUBSCRIPTION_STATUS


@dataclass(frozen=True)
class SubscriptionStatusUpdated(Action):
    type: ClassVar[ActionType] = ActionType.SUBSCRIPTION_STATUS_UPDATED
    status: SubscriptionStatus


@dataclass(frozen=True)
class PurchaseSubscription(Action):
    type: ClassVar[ActionType] = ActionType.PURCHASE_SUBSCRIPTION


@dataclass(frozen=True)
class SubscriptionPurchased(Action):
    type: ClassVar[ActionType] = ActionType.SUBSCRIPTION_PURCHASED


@dataclass(frozen=True)
class SubscriptionPurchaseFailed(Action):
    type: ClassVar[ActionType] = ActionType.SUBSCRIPTION_PURCHASE_FAILED
    error: AppError


# === UI state ===


@dataclass(frozen=True)
class SetLoading(Action):
    type: ClassVar[ActionType] = ActionType.SET_LOADING
    is_loading: bool


@dataclass(frozen=True)
class SetError(Action):
    type: ClassVar[ActionType] = ActionType.SET_ERROR
    error: AppError | None


@dataclass(frozen=True)
class ClearError(Action):
    type: ClassVar[ActionType] = ActionType.CLEAR_ERROR


# === Settings ===


@dataclass(frozen=True)
class UpdateUserPreferences(Action):
    type: ClassVar[ActionType] = ActionType.UPDATE_USER_PREFERENCES
    preferences: UserPreferences


@dataclass(frozen=True)
class UpdateParentalControls(Action):
    type: ClassVar[ActionType] = ActionType.UPDATE_PARENTAL_CONTROLS
    controls: ParentalControls


AppAction = (
    AppLaunched
    | AppWillEnterForeground
    | AppDidEnterBackground
    | SignIn
    | SignUp
    | SignOut
    | AuthenticationSucceeded
    | AuthenticationFailed
    | LoadCategories
    | CategoriesLoaded
    | CategoriesLoadFailed
    | SelectCategory
    | StartQuiz
    | QuizLoaded
    | QuizLoadFailed
    | AnswerQuestion
    | SubmitQuiz
    | QuizCompleted
    | NavigateTo
    | GoBack
    | SelectTab
    | CheckSubscriptionStatus
    | SubscriptionStatusUpdated
    | PurchaseSubscription
    | SubscriptionPurchased
    | SubscriptionPurchaseFailed
    | SetLoading
    | SetError
    | ClearError
    | UpdateUserPreferences
    | UpdateParentalControls
)


class Actions:
    """
    Action creators - factory methods for the actions screens dispatch most.

    Usage:
        store.dispatch(Actions.load_categories())
    """

    @staticmethod
    def app_launched() -> AppLaunched:
        return AppLaunched()

    @staticmethod
    def sign_in(email: str, password: str) -> SignIn:
        """Create action requesting sign in with email and password."""
        return SignIn(email=email, password=password)

    @staticmethod
    def sign_up(email: str, password: str, name: str) -> SignUp:
        """Create action requesting a new account."""
        return SignUp(email=email, password=password, name=name)

    @staticmethod
    def sign_out() -> SignOut:
        return SignOut()

    @staticmethod
    def load_categories() -> LoadCategories:
        return LoadCategories()

    @staticmethod
    def categories_loaded(categories: list[QuizCategory] | tuple[QuizCategory, ...]) -> CategoriesLoaded:
        """Create action carrying the loaded catalog (stored as a tuple)."""
        return CategoriesLoaded(categories=tuple(categories))

    @staticmethod
    def select_category(category: QuizCategory) -> SelectCategory:
        return SelectCategory(category=category)

    @staticmethod
    def start_quiz(category: QuizCategory) -> StartQuiz:
        return StartQuiz(category=category)

    @staticmethod
    def answer_question(answer_index: int) -> AnswerQuestion:
        """Question progress is screen-local, so only the chosen option is carried."""
        return AnswerQuestion(answer_index=answer_index)

    @staticmethod
    def quiz_completed(score: QuizScore) -> QuizCompleted:
        return QuizCompleted(score=score)

    @staticmethod
    def navigate_to(screen: Screen) -> NavigateTo:
        return NavigateTo(screen=screen)

    @staticmethod
    def select_tab(tab: CurrentTab) -> SelectTab:
        return SelectTab(tab=tab)

    @staticmethod
    def set_error(error: AppError | None) -> SetError:
        return SetError(error=error)

    @staticmethod
    def clear_error() -> ClearError:
        return ClearError()
