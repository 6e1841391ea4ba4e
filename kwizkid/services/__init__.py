# Services package for KwizKid
#
# Use explicit imports to avoid importing the AI SDKs until they are needed:
#   from kwizkid.services.content_service import QuizContentService
#   from kwizkid.services.protocols import AuthServiceProtocol

__all__ = [
    # Protocols (import from protocols.py)
    "AIProviderProtocol",
    # Concrete services (import from submodules)
    "AIQuestionGenerator",
    "AnalyticsTrackerProtocol",
    "AuthServiceProtocol",
    "CategoryCatalogProtocol",
    "ChildSafetyService",
    "InMemoryAnalyticsTracker",
    "InMemoryQuestionBank",
    "LocalSubscriptionService",
    "MockAuthService",
    "QuestionBatchGenerator",
    "QuestionServiceProtocol",
    "QuizContentService",
    "SubscriptionServiceProtocol",
    # Functions
    "create_provider",
]

_LOCATIONS = {
    "AIQuestionGenerator": "kwizkid.services.content_service",
    "QuizContentService": "kwizkid.services.content_service",
    "ChildSafetyService": "kwizkid.services.child_safety",
    "InMemoryAnalyticsTracker": "kwizkid.services.analytics",
    "InMemoryQuestionBank": "kwizkid.services.question_bank",
    "LocalSubscriptionService": "kwizkid.services.subscription_service",
    "MockAuthService": "kwizkid.services.auth_service",
    "QuestionBatchGenerator": "kwizkid.services.batch_generator",
    "create_provider": "kwizkid.services.ai_providers",
}


def __getattr__(name: str):
    """Lazy import to avoid loading provider SDKs at package import."""
    if name in _LOCATIONS:
        import importlib

        return getattr(importlib.import_module(_LOCATIONS[name]), name)
    if name.endswith("Protocol"):
        from kwizkid.services import protocols

        if hasattr(protocols, name):
            return getattr(protocols, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
