"""
Plan Resolver - Reads the user's subscription tier

Tiers are informational only: they are reported in usage statistics and
do not change how generation is metered.
"""

import logging

from .config import DEFAULT_SUBSCRIPTION_TIER

logger = logging.getLogger(__name__)


async def resolve_subscription_tier(db, user_id: str) -> str:
    """
    Resolve the user's subscription tier.

    Args:
        db: MongoDB database instance
        user_id: User ID to look up

    Returns:
        Tier name, DEFAULT_SUBSCRIPTION_TIER if none is recorded
    """
    user = await db.users.find_one(
        {"id": user_id},
        {"_id": 0, "subscription_tier": 1}
    )

    if not user:
        logger.warning(f"User not found for tier resolution: {user_id}")
        return DEFAULT_SUBSCRIPTION_TIER

    tier = (user.get("subscription_tier") or "").strip().lower()
    return tier or DEFAULT_SUBSCRIPTION_TIER
