# src/app/infra/db/base.py
"""
Abstract base class for the recipe repository.
This interface allows easy swapping between different storage backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.app.domain.models import RecipePage, RecipeQuery
from src.services.persist_models import RecipeRecord, StoredRecipe


class RecipeRepository(ABC):
    """
    Abstract interface for recipe persistence.

    Implementations:
    - SupabaseRecipeRepository: Postgres `recipes` table via Supabase
    """

    @abstractmethod
    def insert(self, record: RecipeRecord) -> StoredRecipe:
        """
        Insert a new recipe row.

        Returns:
            The stored recipe, including id and timestamps assigned by the store

        Raises:
            PersistenceError: If the store rejects the insert
        """
        pass

    @abstractmethod
    def get(self, recipe_id: str) -> Optional[StoredRecipe]:
        pass

    @abstractmethod
    def list(self, query: RecipeQuery, viewer_id: Optional[str] = None) -> RecipePage:
        """
        List recipes visible to the viewer: public rows (no owner) plus
        the viewer's own rows, newest first.
        """
        pass

    @abstractmethod
    def update(self, recipe_id: str, changes: dict[str, Any]) -> StoredRecipe:
        """
        Raises:
            RecipeNotFoundError: If no row matched
            PersistenceError: If the store rejects the update
        """
        pass

    @abstractmethod
    def delete(self, recipe_id: str) -> None:
        pass
