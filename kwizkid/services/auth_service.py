#!/usr/bin/env python3
"""Local authentication collaborator."""

from __future__ import annotations

import asyncio
import logging
import uuid

from kwizkid.core.dataclasses import User, UserPreferences
from kwizkid.core.exceptions import AuthenticationError, ErrorCodes

logger = logging.getLogger(__name__)

MOCK_USER_AGE = 8


class MockAuthService:
    """
    Development authentication service.

    Accepts any non-blank credentials and returns a fresh mock child profile.
    The signed-in user is remembered for ``get_current_user``.
    """

    def __init__(self, default_age: int = MOCK_USER_AGE, latency: float = 0.0) -> None:
        self.default_age = default_age
        self.latency = latency
        self._current_user: User | None = None

    @staticmethod
    def _validate(email: str, password: str) -> None:
        if not email.strip() or not password.strip():
            msg = "Email and password are required"
            raise AuthenticationError(msg, error_code=ErrorCodes.INVALID_CREDENTIALS)

    def _new_user(self, name: str) -> User:
        return User(
            id=f"mock_user_{uuid.uuid4()}",
            name=name,
            age=self.default_age,
            preferences=UserPreferences(),
        )

    async def _simulate_latency(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    async def sign_in(self, email: str, password: str) -> User:
        self._validate(email, password)
        await self._simulate_latency()
        self._current_user = self._new_user("Test User")
        logger.info("Signed in %s as %s", email, self._current_user.id)
        return self._current_user

    async def sign_up(self, email: str, password: str, name: str) -> User:
        self._validate(email, password)
        await self._simulate_latency()
        self._current_user = self._new_user(name.strip() or "Test User")
        logger.info("Created account for %s as %s", email, self._current_user.id)
        return self._current_user

    async def sign_out(self) -> None:
        await self._simulate_latency()
        if self._current_user is not None:
            logger.info("Signed out %s", self._current_user.id)
        self._current_user = None

    async def get_current_user(self) -> User | None:
        return self._current_user
