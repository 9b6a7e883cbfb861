# src/services/persist_models.py
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.app.domain.models import UNKNOWN_DIFFICULTY


class RecipeRecord(BaseModel):
    """A row of the `recipes` table as written by this service."""

    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    cuisine: Optional[str] = None
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[str] = None
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def is_draft(self) -> bool:
        return self.difficulty == UNKNOWN_DIFFICULTY and not self.ingredients

    def attach_owner(self, owner_id: str) -> bool:
        """Set the owner once; an existing owner is never replaced."""
        if self.user_id:
            return False
        self.user_id = owner_id
        return True

    def to_row(self) -> dict:
        return self.model_dump(mode="json")


class StoredRecipe(RecipeRecord):
    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value
