# src/app/routers/generate.py
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaValidationError

from src.app.deps import GenerationServiceFactory, get_generation_service_factory
from src.app.domain.errors import RecipeServiceError, ValidationError
from src.app.domain.models import GenerationRequest
from src.app.schemas.recipes import (
    GenerateRecipeErrorResponse,
    GenerateRecipeRequest,
    GenerateRecipeResponse,
)
from src.app.services.recipe_generation import SUCCESS_MESSAGE, validate_request

logger = logging.getLogger(__name__)
router = APIRouter(tags=["generate"])

GENERATE_RECIPE_PATH = "/generate-recipe"

# Served by the route itself, including preflights; the app-wide CORS middleware skips this path.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _error_response(message: str) -> JSONResponse:
    payload = GenerateRecipeErrorResponse(error=message)
    return JSONResponse(payload.model_dump(), status_code=500, headers=CORS_HEADERS)


async def _read_request(request: Request) -> GenerateRecipeRequest:
    try:
        body: Any = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    try:
        return GenerateRecipeRequest.model_validate(body)
    except SchemaValidationError as exc:
        raise ValidationError(f"Invalid request body: {exc.error_count()} invalid field(s)") from exc


@router.options(GENERATE_RECIPE_PATH, include_in_schema=False)
async def generate_recipe_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post(
    GENERATE_RECIPE_PATH,
    response_model=GenerateRecipeResponse,
    responses={500: {"model": GenerateRecipeErrorResponse}},
)
async def generate_recipe(
    request: Request,
    service_factory: GenerationServiceFactory = Depends(get_generation_service_factory),
) -> JSONResponse:
    """
    Generate a recipe with the AI gateway and save it.

    Unparsable model output is still saved, as a draft. Every failure is
    reported as HTTP 500 with `{success: false, error}`.
    """
    try:
        body = await _read_request(request)
        generation_request = GenerationRequest.from_payload(
            body.model_dump(),
            authorization=request.headers.get("authorization"),
        )
        validate_request(generation_request)
        service = service_factory()
        recipe = await service.create_recipe(generation_request)
    except RecipeServiceError as exc:
        logger.error("Error in generate-recipe: %s", exc)
        return _error_response(str(exc))
    except Exception as exc:
        logger.exception("Unexpected error in generate-recipe")
        return _error_response(str(exc) or "Unknown error occurred")

    payload = GenerateRecipeResponse(recipe=recipe, message=SUCCESS_MESSAGE)
    return JSONResponse(payload.model_dump(mode="json"), headers=CORS_HEADERS)
