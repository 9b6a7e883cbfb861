from __future__ import annotations

import logging
import re
from typing import Any, Optional

from supabase import Client

from src.app.domain.errors import PersistenceError, RecipeNotFoundError
from src.app.domain.models import RecipePage, RecipeQuery
from src.app.infra.db.base import RecipeRepository
from src.services.persist_models import RecipeRecord, StoredRecipe

logger = logging.getLogger(__name__)

# Characters that would break a PostgREST or=(...) expression.
_FILTER_UNSAFE = re.compile(r"[,()%*]")


def _error_message(error: Exception) -> str:
    message = getattr(error, "message", None)
    return str(message) if message else str(error)


def _search_term(value: str) -> str:
    return _FILTER_UNSAFE.sub(" ", value).strip()


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client):
        self._client = client

    def insert(self, record: RecipeRecord) -> StoredRecipe:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .insert([record.to_row()])
                .execute()
            )
        except Exception as error:
            logger.error("Database insert error: %s", error)
            raise PersistenceError(_error_message(error)) from error

        if not result.data:
            raise PersistenceError("insert returned no rows")

        stored = StoredRecipe.model_validate(result.data[0])
        logger.info("Recipe created: id=%s, owner=%s", stored.id, stored.user_id)
        return stored

    def get(self, recipe_id: str) -> Optional[StoredRecipe]:
        result = (
            self._client.table(self.TABLE_NAME)
            .select("*")
            .eq("id", recipe_id)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return StoredRecipe.model_validate(rows[0]) if rows else None

    def list(self, query: RecipeQuery, viewer_id: Optional[str] = None) -> RecipePage:
        request = self._client.table(self.TABLE_NAME).select("*", count="exact")

        if viewer_id:
            request = request.or_(f"user_id.is.null,user_id.eq.{viewer_id}")
        else:
            request = request.is_("user_id", "null")

        term = _search_term(query.search or "")
        if term:
            request = request.or_(f"title.ilike.%{term}%,cuisine.ilike.%{term}%")
        if query.cuisine:
            request = request.eq("cuisine", query.cuisine)
        if query.difficulty:
            request = request.eq("difficulty", query.difficulty.value)
        if query.prep_time:
            for operator, minutes in query.prep_time.constraints:
                request = getattr(request, operator)("prep_time", minutes)
        if query.servings:
            for operator, count in query.servings.constraints:
                request = getattr(request, operator)("servings", count)

        start = query.offset
        result = (
            request.order("created_at", desc=True)
            .range(start, start + query.limit - 1)
            .execute()
        )
        rows = result.data or []
        return RecipePage(
            recipes=[StoredRecipe.model_validate(row) for row in rows],
            total_count=result.count if result.count is not None else len(rows),
            page=query.page,
            limit=query.limit,
        )

    def update(self, recipe_id: str, changes: dict[str, Any]) -> StoredRecipe:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .update(changes)
                .eq("id", recipe_id)
                .execute()
            )
        except Exception as error:
            logger.error("Database update error: %s", error)
            raise PersistenceError(_error_message(error)) from error

        if not result.data:
            raise RecipeNotFoundError(recipe_id)
        return StoredRecipe.model_validate(result.data[0])

    def delete(self, recipe_id: str) -> None:
        try:
            self._client.table(self.TABLE_NAME).delete().eq("id", recipe_id).execute()
        except Exception as error:
            logger.error("Database delete error: %s", error)
            raise PersistenceError(_error_message(error)) from error
        logger.info("Recipe deleted: id=%s", recipe_id)
