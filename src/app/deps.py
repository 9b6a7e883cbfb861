# src/app/deps.py (once-initialized Supabase handle exposed as dependencies)

from __future__ import annotations

import threading
from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from supabase import Client, create_client

from src.app.config import settings
from src.app.domain.errors import ConfigurationError
from src.app.infra.db.base import RecipeRepository
from src.app.infra.db.supabase_recipes_repo import SupabaseRecipeRepository
from src.app.infra.storage.base import BlobStore
from src.app.infra.storage.r2_provider import R2BlobStore
from src.app.infra.storage.supabase_provider import SupabaseBlobStore
from src.app.services.recipe_catalog import RecipeCatalogService
from src.app.services.recipe_generation import RecipeGenerationService
from src.services.images import ImageIngestor
from src.services.llm_client import ModelGatewayClient


class SupabaseHandle:
    """Process-wide Supabase client, created on first use."""

    def __init__(self) -> None:
        self._client: Client | None = None
        self._lock = threading.Lock()

    def get(self) -> Client:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
                        raise ConfigurationError("Supabase configuration missing")
                    self._client = create_client(
                        str(settings.SUPABASE_URL),
                        settings.SUPABASE_SERVICE_ROLE_KEY,
                    )
        return self._client

    def reset(self) -> None:
        with self._lock:
            self._client = None


supabase_handle = SupabaseHandle()


def get_supabase() -> Client:
    return supabase_handle.get()


def get_supabase_or_503() -> Client:
    try:
        return get_supabase()
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def get_blob_store() -> BlobStore:
    if settings.STORAGE_PROVIDER == "r2":
        return R2BlobStore()
    return SupabaseBlobStore(get_supabase(), bucket_name=settings.STORAGE_BUCKET)


def build_generation_service() -> RecipeGenerationService:
    """Raises ConfigurationError when storage is not configured."""
    return RecipeGenerationService(
        gateway=ModelGatewayClient.from_settings(settings),
        repository=SupabaseRecipeRepository(get_supabase()),
        images=ImageIngestor(get_blob_store()),
    )


GenerationServiceFactory = Callable[[], RecipeGenerationService]


def get_generation_service_factory() -> GenerationServiceFactory:
    # Built inside the route so configuration errors reach the uniform error payload.
    return build_generation_service


def get_recipe_repository(supa: Client = Depends(get_supabase_or_503)) -> RecipeRepository:
    return SupabaseRecipeRepository(supa)


def get_catalog_service(
    repository: RecipeRepository = Depends(get_recipe_repository),
) -> RecipeCatalogService:
    return RecipeCatalogService(repository)


auth_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


def _verify_token(token: str, supa: Client) -> CurrentUser:
    try:
        # valida token no GoTrue (Admin API do supabase-py)
        res = supa.auth.get_user(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid/expired token")

    user = res.user if res else None
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token")

    name = None
    meta = getattr(user, "user_metadata", None) or {}
    if isinstance(meta, dict):
        name = meta.get("name")

    return CurrentUser(id=str(user.id), email=user.email, name=name)


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase_or_503),
) -> CurrentUser:
    """
    Recebe Authorization: Bearer <access_token> do Supabase,
    valida no GoTrue e retorna dados mínimos do usuário.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    return _verify_token(cred.credentials, supa)


async def get_optional_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase_or_503),
) -> CurrentUser | None:
    """Anonymous visitors get None; a present but invalid token is still a 401."""
    if cred is None or cred.scheme.lower() != "bearer":
        return None
    return _verify_token(cred.credentials, supa)
