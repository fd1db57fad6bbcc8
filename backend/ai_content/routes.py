"""
AI Content API Routes

Endpoints:
- POST /api/generate/{content_type} - Generate content (blog-post, product-description, ad-copy, social-media)
- GET /api/generate/history - Paginated generation history
- GET /api/generate/stats - Usage statistics
- GET /api/generate/content-types - Supported content types
- GET /api/generate/{id} - Single generation
- DELETE /api/generate/{id} - Delete a generation (no token refund)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import get_db
from utils.auth import get_current_user
from ai_content.config import CHARS_PER_TOKEN, DEFAULT_MODEL, MIN_TOKENS_TO_GENERATE, SYSTEM_PROMPTS
from ai_content.errors import (
    BalanceBelowMinimumError,
    ContentServiceError,
    InternalError,
    ValidationError,
    describe_validation_errors,
    http_error_response,
)
from ai_content.generation_service import GenerationService
from ai_content.generator import ContentGenerator, get_content_generator
from ai_content.history_service import HistoryService
from ai_content.ledger import BalanceLedger
from ai_content.models import ContentType, GenerationRequest

logger = logging.getLogger(__name__)

generation_router = APIRouter(prefix="/generate", tags=["Content Generation"])


# ==================== DEPENDENCIES ====================

def get_generation_service(
    db=Depends(get_db),
    generator: ContentGenerator = Depends(get_content_generator)
) -> GenerationService:
    return GenerationService(db, generator)


def get_history_service(db=Depends(get_db)) -> HistoryService:
    return HistoryService(db)


def require_token_balance(minimum_balance: int = MIN_TOKENS_TO_GENERATE):
    """
    Reject users whose balance is below `minimum_balance` before any
    generation work is done. The real cost is only known after generation
    and is checked atomically when it is debited.
    """
    async def check_balance(user: dict = Depends(get_current_user), db=Depends(get_db)) -> dict:
        balance = await BalanceLedger(db).get_balance(user["id"])
        if balance < minimum_balance:
            raise BalanceBelowMinimumError(tokens_remaining=balance, minimum_balance=minimum_balance)
        return user

    return check_balance


def register_exception_handlers(app):
    """Render every error, including framework ones, as a `success: false` envelope."""

    @app.exception_handler(ContentServiceError)
    async def content_service_error_handler(request: Request, exc: ContentServiceError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        error = ValidationError(describe_validation_errors(exc.errors()))
        return JSONResponse(status_code=422, content=error.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=http_error_response(exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        error = InternalError()
        return JSONResponse(status_code=error.status_code, content=error.to_response())


# ==================== READ ENDPOINTS ====================

@generation_router.get("/history")
async def get_history(
    page: Optional[str] = Query(None, description="Page number, starts at 1"),
    limit: Optional[str] = Query(None, description="Generations per page"),
    user: dict = Depends(get_current_user),
    history_service: HistoryService = Depends(get_history_service)
):
    """
    Get the current user's generation history, newest first.

    Invalid or non-positive page/limit values fall back to page 1, 10 per page.
    """
    result = await history_service.history(user["id"], page, limit)
    return {"success": True, "data": result.to_api()}


@generation_router.get("/stats")
async def get_stats(
    user: dict = Depends(get_current_user),
    history_service: HistoryService = Depends(get_history_service)
):
    """Get generation counts, tokens used, remaining balance and tier."""
    stats = await history_service.stats(user["id"])
    return {"success": True, "data": stats.to_api()}


@generation_router.get("/content-types")
async def get_content_types():
    """
    List supported content types and their system instructions.

    Useful for frontend to explain what each generator does and how
    generations are metered.
    """
    return {
        "success": True,
        "data": {
            "contentTypes": [
                {"id": ct.value, "systemPrompt": SYSTEM_PROMPTS[ct.value]}
                for ct in ContentType
            ],
            "defaultModel": DEFAULT_MODEL,
            "charsPerToken": CHARS_PER_TOKEN
        }
    }


@generation_router.get("/{generation_id}")
async def get_generation(
    generation_id: str,
    user: dict = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service)
):
    """Get a single generation owned by the current user."""
    generation = await service.get_generation(user["id"], generation_id)
    return {"success": True, "data": generation.to_api()}


# ==================== WRITE ENDPOINTS ====================

@generation_router.post("/{content_type}", status_code=201)
async def generate_content(
    content_type: ContentType,
    body: Optional[GenerationRequest] = None,
    user: dict = Depends(require_token_balance()),
    service: GenerationService = Depends(get_generation_service)
):
    """
    Generate content of the given type and bill it to the current user.

    Flow:
    1. Validate prompt
    2. Generate content
    3. Atomically debit the estimated token cost
    4. Store the generation

    Returns 403 BALANCE_BELOW_MINIMUM before generating when the balance is
    under the configured floor, and 403 INSUFFICIENT_TOKENS with
    tokensRemaining/tokensRequired when it does not cover the actual cost.
    """
    body = body or GenerationRequest()
    result = await service.generate(
        user_id=user["id"],
        content_type=content_type,
        prompt=body.prompt,
        model=body.model
    )
    return {"success": True, "data": result.to_api()}


@generation_router.delete("/{generation_id}")
async def delete_generation(
    generation_id: str,
    user: dict = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service)
):
    """Delete a generation owned by the current user. Tokens are not refunded."""
    await service.delete_generation(user["id"], generation_id)
    return {"success": True, "message": "Generation deleted successfully"}
