"""
AI Content Data Models

Pydantic models for generation operations.
Documents are stored in MongoDB with snake_case fields; API payloads are
rendered in camelCase through the alias generator.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContentType(str, Enum):
    """Closed set of generation tasks"""
    BLOG_POST = "blog-post"
    PRODUCT_DESCRIPTION = "product-description"
    AD_COPY = "ad-copy"
    SOCIAL_MEDIA = "social-media"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ==================== REQUEST MODELS ====================

class GenerationRequest(BaseModel):
    """Body of a generation request. Content type comes from the route."""
    prompt: Optional[str] = Field(None, description="What to write about")
    model: Optional[str] = Field(None, description="Model identifier, defaults to the configured model")


# ==================== RECORD MODELS ====================

class GenerationRecord(CamelModel):
    """Persisted result of one successful generation"""
    id: str
    user_id: str
    content_type: ContentType
    prompt: str
    output: str
    tokens_used: int
    model: str
    created_at: str  # ISO datetime string


class GeneratedContent(BaseModel):
    """What the content generator hands back"""
    text: str
    tokens_used: int
    model: str


# ==================== LEDGER MODELS ====================

class DebitResult(BaseModel):
    """Result of a check-and-debit against a user's balance"""
    allowed: bool
    tokens_deducted: int = 0
    tokens_required: int = 0
    remaining_balance: int = 0


# ==================== RESPONSE MODELS ====================

class GenerationResult(CamelModel):
    generation: GenerationRecord
    tokens_remaining: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class HistoryPage(CamelModel):
    generations: List[GenerationRecord]
    pagination: Pagination


class GenerationStats(CamelModel):
    total_generations: int
    total_tokens_used: int
    tokens_remaining: int
    subscription_tier: str
    generations_by_type: Dict[str, int]
