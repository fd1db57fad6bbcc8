"""
MongoDB connection for the content API

MONGO_URL and DB_NAME are required; the module refuses to import without them.
"""
from motor.motor_asyncio import AsyncIOMotorClient
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv(Path(__file__).parent / '.env')

REQUIRED_ENV_VARS = {
    "MONGO_URL": "MongoDB connection string, e.g. mongodb://localhost:27017",
    "DB_NAME": "Database name, e.g. content_studio",
}


def validate_required_env_vars():
    """Raise ValueError naming every missing connection variable."""
    missing = [f"  - {var}: {hint}" for var, hint in REQUIRED_ENV_VARS.items() if not os.environ.get(var)]
    if missing:
        raise ValueError(
            "Missing required environment variables:\n" + "\n".join(missing)
            + "\nSet them in backend/.env or the process environment."
        )


validate_required_env_vars()

client = AsyncIOMotorClient(
    os.environ['MONGO_URL'],
    maxPoolSize=int(os.environ.get('MONGO_MAX_POOL_SIZE', 50)),
    minPoolSize=int(os.environ.get('MONGO_MIN_POOL_SIZE', 5)),
    connectTimeoutMS=5000,
    serverSelectionTimeoutMS=5000,
    retryWrites=True
)
db = client[os.environ['DB_NAME']]


def get_db():
    """FastAPI dependency returning the application database."""
    return db


async def check_db_connection():
    """
    Ping the server and list collections.

    Returns:
        Tuple[bool, Optional[str]]: (ok, error_message)
    """
    try:
        await client.admin.command('ping')
        await db.list_collection_names()
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False, f"Database connection failed: {e}"

    logger.info(f"Database connected: {db.name}")
    return True, None
