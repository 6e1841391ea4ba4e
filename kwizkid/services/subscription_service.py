#!/usr/bin/env python3
"""
Local subscription collaborator.

Stands in for the app store billing SDK. The status lives in memory: it starts
at FREE, a successful purchase upgrades to PREMIUM and ``restore_purchases``
re-applies the last purchased tier.
"""

from __future__ import annotations

import logging

from kwizkid.core.constants import SubscriptionStatus
from kwizkid.core.exceptions import AppError, ErrorCodes, SubscriptionError

logger = logging.getLogger(__name__)

PREMIUM_PACKAGES: tuple[str, ...] = ("kwizkid_premium_monthly", "kwizkid_premium_yearly")


class LocalSubscriptionService:
    """In-memory subscription state with optional simulated store failures."""

    def __init__(
        self,
        initial_status: SubscriptionStatus = SubscriptionStatus.FREE,
        packages: tuple[str, ...] = PREMIUM_PACKAGES,
        purchases_enabled: bool = True,
    ) -> None:
        self._status = initial_status
        self._purchased: SubscriptionStatus | None = None
        self._packages = packages
        self.purchases_enabled = purchases_enabled

    async def check_status(self) -> SubscriptionStatus:
        return self._status

    async def purchase(self) -> None:
        if not self.purchases_enabled:
            msg = "Purchases are not available right now"
            raise SubscriptionError(msg, error_code=ErrorCodes.PURCHASE_FAILED)
        self._status = SubscriptionStatus.PREMIUM
        self._purchased = SubscriptionStatus.PREMIUM
        logger.info("Subscription upgraded to %s", self._status)

    async def restore_purchases(self) -> SubscriptionStatus:
        """Re-apply the last purchased tier, if any. Returns the resulting status."""
        if self._purchased is not None:
            self._status = self._purchased
            logger.info("Restored subscription %s", self._status)
        return self._status

    async def has_premium_access(self) -> bool:
        try:
            status = await self.check_status()
        except AppError as e:
            logger.warning("Could not check subscription status: %s", e.description)
            return False
        return status in (SubscriptionStatus.PREMIUM, SubscriptionStatus.TRIAL)

    async def available_packages(self) -> list[str]:
        return list(self._packages)
