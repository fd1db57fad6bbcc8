"""
AI Content Database Bootstrap

Creates the collections and indexes the generation pipeline relies on:
- users.id must be unique, since balance debits match on it
- generations are read by owner newest-first and grouped by content type

Safe to re-run: existing collections and indexes are skipped and nothing
is ever dropped. The same index pass runs at API startup.

Usage:
    python -m ai_content.db_init
    python -m ai_content.db_init --dry-run
    ENVIRONMENT=production CONTENT_INIT_CONFIRM=YES python -m ai_content.db_init
"""

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import CollectionInvalid, OperationFailure

from utils.environment import ENVIRONMENT, is_production

logger = logging.getLogger(__name__)

INIT_VERSION = "v1.0.0"
META_COLLECTION = "content_meta"

REQUIRED_COLLECTIONS = ["users", "generations", META_COLLECTION]

# (collection, keys, options)
REQUIRED_INDEXES: List[Tuple[str, List[Tuple[str, int]], Dict]] = [
    ("users", [("id", 1)], {"unique": True, "name": "idx_user_id_unique"}),
    ("generations", [("id", 1)], {"unique": True, "name": "idx_generation_id_unique"}),
    ("generations", [("user_id", 1), ("created_at", -1)], {"name": "idx_user_created"}),
    ("generations", [("user_id", 1), ("content_type", 1)], {"name": "idx_user_content_type"}),
]


def check_environment() -> Tuple[bool, str]:
    """
    Production runs need CONTENT_INIT_CONFIRM=YES.

    Returns:
        Tuple of (allowed, message)
    """
    if not is_production():
        return True, f"Environment: {ENVIRONMENT}"

    confirm = os.environ.get("CONTENT_INIT_CONFIRM", "")
    if confirm == "YES":
        return True, "Environment: production (confirmed)"

    return False, (
        "Refusing to bootstrap a production database.\n"
        "Set CONTENT_INIT_CONFIRM=YES to proceed "
        f"(current value: '{confirm}')"
    )


async def create_collection_if_not_exists(db, name: str, dry_run: bool = False) -> str:
    if name in await db.list_collection_names():
        return f"  [SKIP] collection {name}"
    if dry_run:
        return f"  [DRY-RUN] would create collection {name}"

    try:
        await db.create_collection(name)
    except CollectionInvalid:
        # Created concurrently by another process
        return f"  [SKIP] collection {name}"
    return f"  [CREATE] collection {name}"


async def create_index_if_not_exists(
    db,
    collection_name: str,
    keys: List[Tuple[str, int]],
    options: dict,
    dry_run: bool = False
) -> str:
    index_name = options.get("name", str(keys))
    label = f"{collection_name}.{index_name}"

    if index_name in await db[collection_name].index_information():
        return f"  [SKIP] index {label}"
    if dry_run:
        return f"  [DRY-RUN] would create index {label}"

    try:
        await db[collection_name].create_index(keys, **options)
    except OperationFailure as e:
        if "already exists" not in str(e).lower():
            raise
        return f"  [SKIP] index {label}"
    return f"  [CREATE] index {label}"


async def ensure_indexes(db, dry_run: bool = False) -> List[str]:
    """Create every required index. Called on each API startup."""
    results = []
    for collection_name, keys, options in REQUIRED_INDEXES:
        result = await create_index_if_not_exists(db, collection_name, keys, options, dry_run)
        logger.info(result)
        results.append(result)
    return results


async def update_version_stamp(db, dry_run: bool = False) -> str:
    if dry_run:
        return f"  [DRY-RUN] would stamp {INIT_VERSION}"

    await db[META_COLLECTION].update_one(
        {"_id": "content_init"},
        {"$set": {"version": INIT_VERSION, "applied_at": datetime.now(timezone.utc).isoformat()}},
        upsert=True
    )
    return f"  [UPDATE] stamped {INIT_VERSION}"


async def run_init(dry_run: bool = False):
    allowed, env_message = check_environment()
    logger.info(env_message)
    if not allowed:
        sys.exit(1)

    mongo_url = os.environ.get("MONGO_URL")
    db_name = os.environ.get("DB_NAME")
    if not mongo_url or not db_name:
        logger.error("MONGO_URL and DB_NAME must be set")
        sys.exit(1)

    client = AsyncIOMotorClient(mongo_url)
    db = client[db_name]
    logger.info(f"Bootstrapping {db_name} (dry_run={dry_run})")

    try:
        await client.admin.command("ping")

        for name in REQUIRED_COLLECTIONS:
            logger.info(await create_collection_if_not_exists(db, name, dry_run))

        await ensure_indexes(db, dry_run)
        logger.info(await update_version_stamp(db, dry_run))
    except Exception as e:
        logger.error(f"Content DB bootstrap failed: {e}")
        sys.exit(1)
    finally:
        client.close()

    logger.info("Content DB bootstrap completed")


def main():
    from dotenv import load_dotenv

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    load_dotenv()

    parser = argparse.ArgumentParser(description="Create AI Content collections and indexes")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be created without changing the database"
    )
    args = parser.parse_args()

    asyncio.run(run_init(dry_run=args.dry_run))


if __name__ == "__main__":
    main()
