"""
Generation Record Store

Append-mostly store of generation records in the `generations` collection.
Records are never updated in place; they are created after a successful
debit and removed only by their owner.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from .config import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from .models import ContentType, GenerationRecord

logger = logging.getLogger(__name__)


def _parse_positive_int(value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def parse_pagination(page: Any = None, page_size: Any = None) -> Tuple[int, int]:
    """
    Normalize raw page/limit values.

    Missing, non-numeric and non-positive values fall back to the defaults;
    page size is capped at MAX_PAGE_SIZE.
    """
    page = _parse_positive_int(page, DEFAULT_PAGE)
    page_size = min(_parse_positive_int(page_size, DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
    return page, page_size


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size)


class GenerationStore:
    """Persistence for generation records."""

    def __init__(self, db):
        self.db = db

    async def create(self, record: Dict[str, Any]) -> GenerationRecord:
        """Assign id and timestamp, then persist."""
        now = datetime.now(timezone.utc)

        doc = {
            "id": str(uuid.uuid4()),
            "user_id": record["user_id"],
            "content_type": ContentType(record["content_type"]).value,
            "prompt": record["prompt"],
            "output": record["output"],
            "tokens_used": record["tokens_used"],
            "model": record["model"],
            "created_at": now.isoformat()
        }

        # insert_one adds _id to the dict it is given
        await self.db.generations.insert_one(dict(doc))
        logger.debug(f"Stored generation {doc['id']} for user {doc['user_id']}")

        return GenerationRecord(**doc)

    async def find_by_id(self, generation_id: str) -> Optional[GenerationRecord]:
        doc = await self.db.generations.find_one({"id": generation_id}, {"_id": 0})
        return GenerationRecord(**doc) if doc else None

    async def list_by_owner(
        self,
        owner_id: str,
        page: int = DEFAULT_PAGE,
        page_size: int = DEFAULT_PAGE_SIZE
    ) -> Tuple[List[GenerationRecord], int]:
        """
        One page of a user's records, newest first. Ties on created_at are
        broken by _id so consecutive pages never overlap or skip records.

        Returns:
            Tuple of (records, total record count for the owner)
        """
        skip = (page - 1) * page_size

        cursor = self.db.generations.find(
            {"user_id": owner_id},
            {"_id": 0}
        ).sort([("created_at", -1), ("_id", -1)]).skip(skip).limit(page_size)

        docs = await cursor.to_list(length=page_size)
        total = await self.count_by_owner(owner_id)

        return [GenerationRecord(**doc) for doc in docs], total

    async def count_by_owner(self, owner_id: str) -> int:
        return await self.db.generations.count_documents({"user_id": owner_id})

    async def sum_tokens_by_owner(self, owner_id: str) -> int:
        """Total tokens charged across a user's records (0 if none)."""
        pipeline = [
            {"$match": {"user_id": owner_id}},
            {"$group": {"_id": None, "total": {"$sum": "$tokens_used"}}}
        ]
        result = await self.db.generations.aggregate(pipeline).to_list(1)
        return result[0]["total"] if result else 0

    async def count_by_owner_grouped_by_content_type(self, owner_id: str) -> Dict[str, int]:
        pipeline = [
            {"$match": {"user_id": owner_id}},
            {"$group": {"_id": "$content_type", "count": {"$sum": 1}}}
        ]
        groups = await self.db.generations.aggregate(pipeline).to_list(None)
        return {g["_id"]: g["count"] for g in groups}

    async def delete(self, generation_id: str) -> bool:
        """Remove a record. Ownership must already be verified by the caller."""
        result = await self.db.generations.delete_one({"id": generation_id})
        return result.deleted_count > 0
