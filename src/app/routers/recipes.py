# src/app/routers/recipes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from starlette.concurrency import run_in_threadpool

from src.app.deps import CurrentUser, get_catalog_service, get_current_user, get_optional_user
from src.app.domain.errors import (
    PersistenceError,
    RecipeNotFoundError,
    RecipePermissionError,
    RecipeServiceError,
    ValidationError,
)
from src.app.domain.models import Difficulty, PrepTimeRange, RecipeQuery, ServingsRange
from src.app.schemas.recipes import RecipeCreate, RecipeListResponse, RecipeUpdate
from src.app.services.recipe_catalog import RecipeCatalogService
from src.services.persist_models import RecipeRecord, StoredRecipe

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _to_http_error(exc: RecipeServiceError) -> HTTPException:
    if isinstance(exc, RecipeNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, RecipePermissionError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, PersistenceError):
        return HTTPException(status_code=500, detail=str(exc))
    return HTTPException(status_code=503, detail=str(exc))


@router.get("/", response_model=RecipeListResponse)
async def list_recipes(
    q: Optional[str] = Query(default=None, max_length=200),
    cuisine: Optional[str] = None,
    difficulty: Optional[Difficulty] = None,
    prep_time: Optional[PrepTimeRange] = None,
    servings: Optional[ServingsRange] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=100),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    catalog: RecipeCatalogService = Depends(get_catalog_service),
) -> RecipeListResponse:
    query = RecipeQuery(
        search=q,
        cuisine=cuisine,
        difficulty=difficulty,
        prep_time=prep_time,
        servings=servings,
        page=page,
        limit=limit,
    )
    viewer_id = user.id if user else None
    result = await run_in_threadpool(catalog.list_recipes, query, viewer_id)
    return RecipeListResponse(
        recipes=result.recipes,
        totalCount=result.total_count,
        hasMore=result.has_more,
    )


@router.get("/{recipe_id}", response_model=StoredRecipe)
async def get_recipe(
    recipe_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    catalog: RecipeCatalogService = Depends(get_catalog_service),
) -> StoredRecipe:
    try:
        return await run_in_threadpool(catalog.get_recipe, recipe_id, user.id if user else None)
    except RecipeServiceError as exc:
        raise _to_http_error(exc)


@router.post("/", response_model=StoredRecipe, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    payload: RecipeCreate,
    user: CurrentUser = Depends(get_current_user),
    catalog: RecipeCatalogService = Depends(get_catalog_service),
) -> StoredRecipe:
    record = RecipeRecord(**payload.model_dump(mode="json"))
    try:
        return await run_in_threadpool(catalog.create_recipe, record, user.id)
    except RecipeServiceError as exc:
        raise _to_http_error(exc)


@router.patch("/{recipe_id}", response_model=StoredRecipe)
async def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    user: CurrentUser = Depends(get_current_user),
    catalog: RecipeCatalogService = Depends(get_catalog_service),
) -> StoredRecipe:
    changes = payload.model_dump(mode="json", exclude_unset=True)
    try:
        return await run_in_threadpool(catalog.update_recipe, recipe_id, changes, user.id)
    except RecipeServiceError as exc:
        raise _to_http_error(exc)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    catalog: RecipeCatalogService = Depends(get_catalog_service),
) -> Response:
    try:
        await run_in_threadpool(catalog.delete_recipe, recipe_id, user.id)
    except RecipeServiceError as exc:
        raise _to_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
