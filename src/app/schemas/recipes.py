from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from src.app.domain.models import Difficulty
from src.services.persist_models import StoredRecipe


class GenerateRecipeRequest(BaseModel):
    prompt: Optional[str] = None
    cuisine: Optional[str] = None
    image_data: Optional[str] = None


class GenerateRecipeResponse(BaseModel):
    success: Literal[True] = True
    recipe: StoredRecipe
    message: str


class GenerateRecipeErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


def _lower_difficulty(value: object) -> object:
    return value.strip().lower() if isinstance(value, str) else value


class RecipeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    cuisine: Optional[str] = None
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[Difficulty] = None
    ingredients: list[str] = Field(..., min_length=1)
    instructions: list[str] = Field(..., min_length=1)
    image_url: Optional[str] = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value: object) -> object:
        return _lower_difficulty(value)


class RecipeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    cuisine: Optional[str] = None
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[Difficulty] = None
    ingredients: Optional[list[str]] = Field(default=None, min_length=1)
    instructions: Optional[list[str]] = Field(default=None, min_length=1)
    image_url: Optional[str] = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value: object) -> object:
        return _lower_difficulty(value)


class RecipeListResponse(BaseModel):
    recipes: list[StoredRecipe] = Field(default_factory=list)
    totalCount: int = 0
    hasMore: bool = False
