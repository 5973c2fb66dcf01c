# src/app/services/identity_service.py
"""
User records keyed by identity-provider id, and the Pro upgrade path.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from src.app.domain.errors import UnauthenticatedError, UserNotFoundError
from src.app.domain.models import User
from src.app.infra.db.base import UserRepository

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class IdentityService:
    """
    Responsibilities:
    - Create a user record the first time an identity is seen
    - Resolve callers to their stored record
    - Flip the Pro flag when a payment arrives
    """

    def __init__(
        self,
        repository: UserRepository,
        clock: Callable[[], datetime] = _now_utc,
    ):
        self._repo = repository
        self._clock = clock

    def ensure_user(self, user_id: str, email: str, name: str) -> User:
        """
        Return the user for this identity, creating it with is_pro=False if needed.
        Repeated calls return the existing record unchanged.
        """
        if not user_id:
            raise UnauthenticatedError()
        user = self._repo.insert_if_absent(user_id=user_id, email=email, name=name)
        logger.info("User ensured: user_id=%s", user_id)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self._repo.get_by_id(user_id)

    def require_user(self, user_id: Optional[str]) -> User:
        """
        Raises:
            UnauthenticatedError: No caller identity
            UserNotFoundError: Identity was never synced
        """
        if not user_id:
            raise UnauthenticatedError()
        user = self._repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def upgrade_to_pro(
        self,
        email: str,
        customer_id: str,
        order_id: str,
        amount: int = 0,
    ) -> Optional[User]:
        """
        Mark the user with this email as Pro.

        Returns:
            The upgraded user, or None when no user has this email yet
        """
        user = self._repo.get_by_email(email)
        if user is None:
            logger.warning("Upgrade skipped, no user for email=%s order=%s", email, order_id)
            return None

        upgraded = self._repo.mark_pro(
            user_id=user.user_id,
            customer_id=customer_id,
            order_id=order_id,
            pro_since=self._clock(),
        )
        logger.info(
            "User upgraded to pro: user_id=%s, order=%s, amount=%d",
            user.user_id,
            order_id,
            amount,
        )
        return upgraded
