"""
History Service - Read-side views over a user's generations
"""

import logging
from typing import Any

from .ledger import BalanceLedger
from .models import GenerationStats, HistoryPage, Pagination
from .plan_resolver import resolve_subscription_tier
from .store import GenerationStore, page_count, parse_pagination

logger = logging.getLogger(__name__)


class HistoryService:
    """Paginated history and usage statistics."""

    def __init__(self, db):
        self.db = db
        self.ledger = BalanceLedger(db)
        self.store = GenerationStore(db)

    async def history(self, user_id: str, page: Any = None, page_size: Any = None) -> HistoryPage:
        """
        One page of the user's generations, newest first.

        Raw page values are normalized, so query strings can be passed through.
        """
        page, page_size = parse_pagination(page, page_size)
        generations, total = await self.store.list_by_owner(user_id, page, page_size)

        return HistoryPage(
            generations=generations,
            pagination=Pagination(
                page=page,
                limit=page_size,
                total=total,
                pages=page_count(total, page_size)
            )
        )

    async def stats(self, user_id: str) -> GenerationStats:
        total_generations = await self.store.count_by_owner(user_id)
        total_tokens_used = await self.store.sum_tokens_by_owner(user_id)
        by_type = await self.store.count_by_owner_grouped_by_content_type(user_id)
        tokens_remaining = await self.ledger.get_balance(user_id)
        tier = await resolve_subscription_tier(self.db, user_id)

        logger.debug(f"Stats for user {user_id}: {total_generations} generations, {total_tokens_used} tokens")

        return GenerationStats(
            total_generations=total_generations,
            total_tokens_used=total_tokens_used,
            tokens_remaining=tokens_remaining,
            subscription_tier=tier,
            generations_by_type=by_type
        )
