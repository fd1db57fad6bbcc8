"""
AI Content Studio - API server

Run with: uvicorn server:app --host 0.0.0.0 --port 8001
"""
from fastapi import FastAPI, APIRouter
from starlette.middleware.cors import CORSMiddleware
import os
import logging

from database import client, db, check_db_connection
from ai_content.routes import generation_router, register_exception_handlers
from ai_content.db_init import ensure_indexes
from utils.environment import ENVIRONMENT

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="AI Content Studio - Metered Content Generation")

api_router = APIRouter(prefix="/api")


@api_router.get("/health")
async def health():
    db_ok, error = await check_db_connection()
    return {"status": "ok" if db_ok else "degraded", "database": db_ok, "error": error}


# Content generation: metered against the user's token balance
api_router.include_router(generation_router)

app.include_router(api_router)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=[origin.strip() for origin in os.environ.get(
        'CORS_ORIGINS', '*').split(',')],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    logger.info(f"Starting AI Content Studio (environment={ENVIRONMENT})")

    # Fail fast if the database is unavailable
    db_ok, error = await check_db_connection()
    if not db_ok:
        raise RuntimeError(error)

    await ensure_indexes(db)


@app.on_event("shutdown")
async def shutdown_db_client():
    client.close()
