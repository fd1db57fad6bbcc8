"""
Balance Ledger

Holds each user's remaining token balance on the user document
(`users.tokens_remaining`).

CRITICAL: Debits use a single MongoDB conditional update
(`tokens_remaining >= amount` in the filter, `$inc` in the update), so
negative balances and lost updates are impossible under any concurrency.
"""

import logging
from datetime import datetime, timezone

from pymongo import ReturnDocument

from .config import ERROR_MESSAGES
from .errors import InternalError
from .models import DebitResult

logger = logging.getLogger(__name__)

# Conditional update attempts per debit; a retry only follows a concurrent credit
DEBIT_ATTEMPTS = 2


class BalanceLedger:
    """Reads and debits user token balances."""

    def __init__(self, db):
        self.db = db

    async def get_balance(self, user_id: str) -> int:
        """Current token balance for a user."""
        user = await self.db.users.find_one(
            {"id": user_id},
            {"_id": 0, "tokens_remaining": 1}
        )
        if user is None:
            raise InternalError(ERROR_MESSAGES["BALANCE_NOT_FOUND"])
        return user.get("tokens_remaining", 0)

    async def check_and_debit(self, user_id: str, amount: int) -> DebitResult:
        """
        Atomically debit `amount` tokens if the balance covers it.

        The balance check and the decrement happen in one request to the
        store. When the filter does not match, nothing was changed and the
        balance is read back to report it. If that read shows the balance
        now covers the amount (credited in between), the debit is retried
        once. The balance in a rejection is a snapshot taken after the
        failed update and may already be stale when the caller sees it.

        Returns:
            DebitResult with allowed=True and the post-debit balance,
            or allowed=False with the untouched balance
        """
        if not isinstance(amount, int) or amount <= 0:
            raise ValueError(f"Debit amount must be a positive integer, got {amount!r}")

        current = 0
        for attempt in range(DEBIT_ATTEMPTS):
            updated = await self._debit_if_covered(user_id, amount)

            if updated is not None:
                new_balance = updated.get("tokens_remaining", 0)
                logger.info(f"Debited {amount} tokens from user {user_id} (remaining={new_balance})")
                return DebitResult(
                    allowed=True,
                    tokens_deducted=amount,
                    tokens_required=amount,
                    remaining_balance=new_balance
                )

            current = await self.get_balance(user_id)
            if current < amount:
                break

            logger.warning(
                f"Balance for user {user_id} changed during debit "
                f"(attempt {attempt + 1}/{DEBIT_ATTEMPTS}), retrying..."
            )

        logger.info(
            f"Debit rejected for user {user_id}: balance {current}, required {amount}"
        )
        return DebitResult(
            allowed=False,
            tokens_required=amount,
            remaining_balance=current
        )

    async def _debit_if_covered(self, user_id: str, amount: int):
        """Conditional decrement. Returns the updated balance doc, or None if not covered."""
        return await self.db.users.find_one_and_update(
            {"id": user_id, "tokens_remaining": {"$gte": amount}},
            {
                "$inc": {"tokens_remaining": -amount},
                "$set": {"updated_at": datetime.now(timezone.utc).isoformat()}
            },
            projection={"_id": 0, "tokens_remaining": 1},
            return_document=ReturnDocument.AFTER
        )
