# src/app/services/recipe_catalog.py
"""
Recipe catalog service.
Owner/public visibility rules for browsing and editing recipes.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from src.app.domain.errors import RecipeNotFoundError, RecipePermissionError, ValidationError
from src.app.domain.models import RecipePage, RecipeQuery
from src.app.infra.db.base import RecipeRepository
from src.services.persist_models import RecipeRecord, StoredRecipe

logger = logging.getLogger(__name__)

# Columns callers may never change through an update.
_PROTECTED_FIELDS = {"id", "user_id", "created_at", "updated_at"}


class RecipeCatalogService:
    """
    Visibility:
    - Recipes without an owner are public and read-only
    - Owned recipes are visible to and editable by their owner only
    """

    def __init__(self, repository: RecipeRepository):
        self._repo = repository

    def list_recipes(self, query: RecipeQuery, viewer_id: Optional[str] = None) -> RecipePage:
        return self._repo.list(query, viewer_id)

    def get_recipe(self, recipe_id: str, viewer_id: Optional[str] = None) -> StoredRecipe:
        recipe = self._repo.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        if recipe.user_id and recipe.user_id != viewer_id:
            raise RecipePermissionError(recipe_id, "Not authorized to view this recipe")
        return recipe

    def create_recipe(self, record: RecipeRecord, owner_id: str) -> StoredRecipe:
        record.user_id = owner_id
        return self._repo.insert(record)

    def _get_owned(self, recipe_id: str, owner_id: str) -> StoredRecipe:
        recipe = self._repo.get(recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)
        if recipe.user_id != owner_id:
            raise RecipePermissionError(recipe_id, "Only the owner can modify this recipe")
        return recipe

    def update_recipe(self, recipe_id: str, changes: dict[str, Any], owner_id: str) -> StoredRecipe:
        self._get_owned(recipe_id, owner_id)
        allowed = {key: value for key, value in changes.items() if key not in _PROTECTED_FIELDS}
        if not allowed:
            raise ValidationError("No updatable fields provided")
        updated = self._repo.update(recipe_id, allowed)
        logger.info("Recipe updated: id=%s, fields=%s", recipe_id, sorted(allowed))
        return updated

    def delete_recipe(self, recipe_id: str, owner_id: str) -> None:
        self._get_owned(recipe_id, owner_id)
        self._repo.delete(recipe_id)
