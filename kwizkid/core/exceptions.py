#!/usr/bin/env python3
"""
Custom Exception Classes for KwizKid
Provides structured error handling with specific exception types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from kwizkid.core.constants import ErrorKind


class KwizKidError(Exception):
    """Base exception for all KwizKid errors."""

    def __init__(self, message: str, error_code: str | None = None, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class AppError(KwizKidError):
    """
    User-facing failure carried by the ``*Failed`` actions.

    The taxonomy is closed: every AppError is one of the four ErrorKind values.
    """

    kind: ErrorKind = ErrorKind.CONTENT

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code=error_code, context=context)
        if kind is not None:
            self.kind = kind

    @property
    def description(self) -> str:
        """Human-readable text written to ``AppState.error_message``."""
        return f"{self.kind.label}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AppError):
            return NotImplemented
        return self.kind == other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"

    @classmethod
    def from_exception(cls, exc: BaseException, kind: ErrorKind) -> AppError:
        """Wrap an arbitrary exception, keeping AppErrors as they are."""
        if isinstance(exc, AppError):
            return exc
        message = str(exc) or "Unknown error"
        return _ERROR_CLASSES[kind](message, context={"exception_type": type(exc).__name__})


class NetworkError(AppError):
    """Raised when a remote collaborator cannot be reached."""

    kind = ErrorKind.NETWORK


class AuthenticationError(AppError):
    """Raised when sign in, sign up or sign out fails."""

    kind = ErrorKind.AUTHENTICATION


class SubscriptionError(AppError):
    """Raised when a subscription check or purchase fails."""

    kind = ErrorKind.SUBSCRIPTION


class ContentError(AppError):
    """Raised when quiz content cannot be produced or is unsuitable."""

    kind = ErrorKind.CONTENT


_ERROR_CLASSES: dict[ErrorKind, type[AppError]] = {
    ErrorKind.NETWORK: NetworkError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
    ErrorKind.SUBSCRIPTION: SubscriptionError,
    ErrorKind.CONTENT: ContentError,
}


class ErrorCodes(StrEnum):
    """Standardized error codes."""

    # Authentication
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SIGN_OUT_FAILED = "SIGN_OUT_FAILED"

    # Subscription
    PURCHASE_FAILED = "PURCHASE_FAILED"
    STATUS_UNAVAILABLE = "STATUS_UNAVAILABLE"

    # Content
    NO_QUESTIONS = "NO_QUESTIONS"
    CONTENT_REJECTED = "CONTENT_REJECTED"
    INVALID_AI_RESPONSE = "INVALID_AI_RESPONSE"
    PROVIDER_NOT_CONFIGURED = "PROVIDER_NOT_CONFIGURED"

    # Network
    PROVIDER_UNREACHABLE = "PROVIDER_UNREACHABLE"
    TIMEOUT = "TIMEOUT"
