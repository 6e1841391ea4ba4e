"""
Constants for the KwizKid application.

Centralized definitions for string enums and numeric defaults used
throughout the state core and its collaborators.
"""

from enum import StrEnum


class Difficulty(StrEnum):
    """Question and category difficulty."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @property
    def display_name(self) -> str:
        return self.value


class CurrentTab(StrEnum):
    """Tabs of the main tab bar."""

    HOME = "home"
    PROGRESS = "progress"
    PROFILE = "profile"
    SETTINGS = "settings"


class SubscriptionStatus(StrEnum):
    """Subscription tiers."""

    FREE = "free"
    PREMIUM = "premium"
    TRIAL = "trial"


class ErrorKind(StrEnum):
    """Closed set of application error categories."""

    NETWORK = "network"
    AUTHENTICATION = "authentication"
    SUBSCRIPTION = "subscription"
    CONTENT = "content"

    @property
    def label(self) -> str:
        return f"{self.value.capitalize()} Error"


class AIProviderType(StrEnum):
    """Content generation backends."""

    OPENAI = "openai"
    CLAUDE = "claude"
    AWS_BEDROCK = "aws_bedrock"
    MOCK = "mock"

    @property
    def display_name(self) -> str:
        return {
            AIProviderType.OPENAI: "OpenAI GPT",
            AIProviderType.CLAUDE: "Anthropic Claude",
            AIProviderType.AWS_BEDROCK: "AWS Bedrock",
            AIProviderType.MOCK: "Mock (Development)",
        }[self]


class AnalyticsEvent(StrEnum):
    """Events recorded by the analytics middleware."""

    APP_LAUNCHED = "app_launched"
    QUIZ_COMPLETED = "quiz_completed"
    SUBSCRIPTION_PURCHASE_STARTED = "subscription_purchase_started"


class EffectKey(StrEnum):
    """Cancellation keys for pending effects."""

    AUTH = "auth"
    CATEGORIES = "categories"
    QUIZ = "quiz"
    SUBSCRIPTION = "subscription"


class QuizDefaults:
    """Quiz sizing defaults."""

    QUESTIONS_PER_QUIZ = 5
    SECONDS_PER_QUESTION = 30
    OPTIONS_PER_QUESTION = 4


class StatsDefaults:
    """Limits for the statistics aggregate."""

    MAX_WEEKLY_ENTRIES = 12
    DAYS_PER_WEEK = 7


class ParentalDefaults:
    """Default parental control values (minutes)."""

    TIME_LIMIT = 30
    DAILY_TIME_LIMIT = 60
    SESSION_LENGTH = 15
    PROGRESS_TRACKING_MIN_AGE = 6
