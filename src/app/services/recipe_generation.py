# src/app/services/recipe_generation.py
"""
Recipe generation pipeline.
Validates the request, asks the model gateway for a recipe, parses it (or
keeps a draft), stores an attached image, tags the owner and persists.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from starlette.concurrency import run_in_threadpool

from src.app.domain.errors import UpstreamExhaustedError, ValidationError
from src.app.domain.models import CompletionResult, GenerationOutcome, GenerationRequest, OutcomeKind
from src.app.infra.db.base import RecipeRepository
from src.services.attribution import attribute_owner
from src.services.images import ImageIngestor
from src.services.persist_models import StoredRecipe
from src.services.prompt import SYSTEM_PROMPT, build_user_message
from src.services.recipe_parser import parse_recipe

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Recipe generated and saved successfully!"


def validate_request(request: GenerationRequest) -> str:
    """Return the stripped prompt or raise ValidationError."""
    prompt = (request.prompt or "").strip()
    if not prompt:
        raise ValidationError("Recipe prompt is required")
    return prompt


class CompletionGateway(Protocol):
    async def complete(self, system_prompt: str, user_message: str) -> CompletionResult:
        ...


class RecipeGenerationService:
    """
    Responsibilities:
    - Reject blank prompts
    - Turn model output into a well-formed record or a draft
    - Attach image and owner without ever failing on them
    - Persist exactly one row per successful call
    """

    def __init__(
        self,
        gateway: CompletionGateway,
        repository: RecipeRepository,
        images: Optional[ImageIngestor] = None,
    ):
        self._gateway = gateway
        self._repo = repository
        self._images = images

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        """
        Run validation, the gateway call and parsing.

        Raises:
            ValidationError: If the prompt is blank
            ConfigurationError: If the gateway is not configured
        """
        prompt = validate_request(request)
        logger.info("Generating recipe for prompt: %s", prompt)

        try:
            completion = await self._gateway.complete(
                SYSTEM_PROMPT,
                build_user_message(prompt, request.cuisine),
            )
        except UpstreamExhaustedError as exc:
            return GenerationOutcome(
                kind=OutcomeKind.EXHAUSTED,
                attempts=exc.attempts,
                error_message=exc.last_error,
            )

        parsed = parse_recipe(completion.text, prompt, request.cuisine)
        return GenerationOutcome(
            kind=OutcomeKind.DEGRADED if parsed.degraded else OutcomeKind.SUCCESS,
            record=parsed.record,
            raw_text=completion.text,
            attempts=completion.attempts,
        )

    async def create_recipe(self, request: GenerationRequest) -> StoredRecipe:
        """
        Generate and persist one recipe.

        Raises:
            ValidationError: If the prompt is blank
            ConfigurationError: If the gateway is not configured
            UpstreamExhaustedError: If the model produced no text after all attempts
            PersistenceError: If the store rejected the insert
        """
        outcome = await self.generate(request)
        if outcome.is_exhausted or outcome.record is None:
            raise UpstreamExhaustedError(attempts=outcome.attempts, last_error=outcome.error_message)

        record = outcome.record
        if request.image_data and self._images is not None:
            image_url = await run_in_threadpool(self._images.ingest, request.image_data)
            if image_url:
                record.image_url = image_url

        attribute_owner(record, request.authorization)

        stored = await run_in_threadpool(self._repo.insert, record)
        logger.info(
            "Recipe created successfully: id=%s, outcome=%s, attempts=%d",
            stored.id,
            outcome.kind.value,
            outcome.attempts,
        )
        return stored
