"""
Generation Service - Metered content generation

Single entry point for generating content against a user's token balance.
All generation MUST go through this service so that billing and record
keeping stay consistent.

Order of operations:
    1. Validate the request
    2. Generate (no tokens are touched if this fails)
    3. Atomically debit the generation cost
    4. Persist the generation record

Usage:
    from ai_content.generation_service import GenerationService

    service = GenerationService(db, generator)
    result = await service.generate(
        user_id=user["id"],
        content_type="ad-copy",
        prompt="Write a tagline for a coffee shop"
    )
    print(result.generation.output, result.tokens_remaining)
"""

import logging
from typing import Optional, Union

from .config import ERROR_MESSAGES
from .errors import (
    ForbiddenError,
    GenerationBackendError,
    InsufficientBalanceError,
    InternalError,
    MissingPromptError,
    NotFoundError,
    ValidationError,
)
from .generator import ContentGenerator
from .ledger import BalanceLedger
from .models import ContentType, GenerationRecord, GenerationResult
from .store import GenerationStore

logger = logging.getLogger(__name__)


class GenerationService:
    """
    Orchestrates generation, billing and persistence.

    Generation and billing are committed together: a record is only written
    after its cost was debited, and nothing is debited unless generation
    succeeded.
    """

    def __init__(self, db, generator: ContentGenerator):
        self.db = db
        self.generator = generator
        self.ledger = BalanceLedger(db)
        self.store = GenerationStore(db)

    async def generate(
        self,
        user_id: str,
        content_type: Union[ContentType, str],
        prompt: Optional[str],
        model: Optional[str] = None
    ) -> GenerationResult:
        """
        Generate content and bill it to the user.

        Raises:
            MissingPromptError: prompt absent or blank
            ValidationError: unknown content type
            GenerationBackendError: backend failed (RateLimitedError when throttled)
            InsufficientBalanceError: balance below the generation cost
            InternalError: record could not be stored after the debit
        """
        if not prompt or not prompt.strip():
            raise MissingPromptError()

        try:
            content_type = ContentType(content_type)
        except ValueError:
            raise ValidationError(f"{ERROR_MESSAGES['INVALID_CONTENT_TYPE']}: {content_type}") from None

        try:
            content = await self.generator.generate(content_type, prompt, model)
        except GenerationBackendError:
            raise
        except Exception as e:
            logger.error(f"{content_type.value} generation error for user {user_id}: {e}")
            raise GenerationBackendError(f"AI generation failed: {e}") from e

        debit = await self.ledger.check_and_debit(user_id, content.tokens_used)
        if not debit.allowed:
            raise InsufficientBalanceError(
                tokens_remaining=debit.remaining_balance,
                tokens_required=debit.tokens_required
            )

        try:
            generation = await self.store.create({
                "user_id": user_id,
                "content_type": content_type,
                "prompt": prompt,
                "output": content.text,
                "tokens_used": content.tokens_used,
                "model": content.model
            })
        except Exception as e:
            # Tokens are already debited at this point and are not refunded
            logger.error(
                f"Generation record not stored after debiting {content.tokens_used} tokens "
                f"from user {user_id}: {e}"
            )
            raise InternalError("Generation could not be saved") from e

        logger.info(
            f"Generated {content_type.value} {generation.id} for user {user_id} "
            f"({content.tokens_used} tokens, model={content.model})"
        )

        return GenerationResult(
            generation=generation,
            tokens_remaining=debit.remaining_balance
        )

    async def get_generation(self, user_id: str, generation_id: str) -> GenerationRecord:
        """Fetch a record the user owns."""
        return await self._get_owned(user_id, generation_id, ERROR_MESSAGES["FORBIDDEN"])

    async def delete_generation(self, user_id: str, generation_id: str) -> bool:
        """Delete a record the user owns. Tokens are not refunded."""
        generation = await self._get_owned(
            user_id, generation_id, ERROR_MESSAGES["FORBIDDEN_DELETE"]
        )
        await self.store.delete(generation.id)
        logger.info(f"Deleted generation {generation.id} for user {user_id}")
        return True

    async def _get_owned(self, user_id: str, generation_id: str, forbidden_message: str) -> GenerationRecord:
        generation = await self.store.find_by_id(generation_id)
        if generation is None:
            raise NotFoundError()

        if generation.user_id != user_id:
            logger.warning(
                f"User {user_id} denied access to generation {generation_id} "
                f"owned by {generation.user_id}"
            )
            raise ForbiddenError(forbidden_message)

        return generation
