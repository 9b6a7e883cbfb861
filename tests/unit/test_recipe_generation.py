from __future__ import annotations

import asyncio
import base64
import json
from typing import Any, Optional

import httpx
import pytest

from src.app.domain.errors import (
    ConfigurationError,
    ImageUploadError,
    PersistenceError,
    UpstreamExhaustedError,
    ValidationError,
)
from src.app.domain.models import CompletionResult, GenerationRequest, OutcomeKind, RecipePage, RecipeQuery
from src.app.infra.db.base import RecipeRepository
from src.app.infra.storage.base import BlobStore
from src.app.services.recipe_generation import RecipeGenerationService
from src.services.images import ImageIngestor
from src.services.llm_client import ModelGatewayClient
from src.services.persist_models import RecipeRecord, StoredRecipe

VALID_JSON = json.dumps(
    {
        "title": "Spicy Chicken Pasta",
        "description": "Pasta with heat.",
        "cuisine": "Italian",
        "prep_time": 15,
        "cook_time": 20,
        "servings": 4,
        "difficulty": "Medium",
        "ingredients": ["penne", "chicken", "chili"],
        "instructions": ["Boil pasta.", "Cook chicken.", "Combine."],
    }
)


def _token(claims: dict) -> str:
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).decode().rstrip("=")
    return f"header.{payload}.signature"


class GatewayStub:
    def __init__(self, text: Optional[str] = VALID_JSON, attempts: int = 1, error: Optional[Exception] = None) -> None:
        self.text = text
        self.attempts = attempts
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def complete(self, system_prompt: str, user_message: str) -> CompletionResult:
        self.calls.append((system_prompt, user_message))
        if self.error is not None:
            raise self.error
        return CompletionResult(text=self.text, attempts=self.attempts)


class RecipeRepositoryStub(RecipeRepository):
    def __init__(self, fail_with: Optional[str] = None) -> None:
        self.fail_with = fail_with
        self.inserted: list[RecipeRecord] = []

    def insert(self, record: RecipeRecord) -> StoredRecipe:
        if self.fail_with:
            raise PersistenceError(self.fail_with)
        self.inserted.append(record)
        return StoredRecipe(
            id=f"id-{len(self.inserted)}",
            created_at="2024-01-15T10:00:00+00:00",
            updated_at="2024-01-15T10:00:00+00:00",
            **record.model_dump(),
        )

    def get(self, recipe_id: str) -> Optional[StoredRecipe]:
        return None

    def list(self, query: RecipeQuery, viewer_id: Optional[str] = None) -> RecipePage:
        return RecipePage(recipes=[], total_count=0, page=query.page, limit=query.limit)

    def update(self, recipe_id: str, changes: dict[str, Any]) -> StoredRecipe:
        raise NotImplementedError

    def delete(self, recipe_id: str) -> None:
        raise NotImplementedError


class BlobStoreStub(BlobStore):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.paths: list[str] = []

    def upload(self, object_path: str, data: bytes, content_type: str) -> None:
        if self.fail:
            raise ImageUploadError(object_path, "denied")
        self.paths.append(object_path)

    def public_url(self, object_path: str) -> str:
        return f"https://cdn.test/{object_path}"


def _service(gateway=None, repo=None, store=None) -> RecipeGenerationService:
    return RecipeGenerationService(
        gateway=gateway or GatewayStub(),
        repository=repo or RecipeRepositoryStub(),
        images=ImageIngestor(store or BlobStoreStub()),
    )


class TestGenerate:
    def test_blank_prompt_is_rejected_before_gateway(self) -> None:
        gateway = GatewayStub()

        with pytest.raises(ValidationError):
            asyncio.run(_service(gateway=gateway).generate(GenerationRequest(prompt="   ")))

        assert gateway.calls == []

    def test_success_outcome(self) -> None:
        outcome = asyncio.run(_service().generate(GenerationRequest(prompt="pasta")))

        assert outcome.kind == OutcomeKind.SUCCESS
        assert outcome.record.ingredients
        assert outcome.record.instructions
        assert outcome.record.difficulty == "medium"

    def test_user_message_includes_cuisine(self) -> None:
        gateway = GatewayStub()

        asyncio.run(_service(gateway=gateway).generate(GenerationRequest(prompt=" tacos ", cuisine="Mexican")))

        assert gateway.calls[0][1] == "Create a recipe for: tacos (Mexican cuisine style)"

    def test_degraded_outcome(self) -> None:
        gateway = GatewayStub(text="Sorry, I can't help")

        outcome = asyncio.run(_service(gateway=gateway).generate(GenerationRequest(prompt="pasta")))

        assert outcome.kind == OutcomeKind.DEGRADED
        assert outcome.raw_text == "Sorry, I can't help"
        assert outcome.record.is_draft

    def test_exhausted_outcome(self) -> None:
        gateway = GatewayStub(error=UpstreamExhaustedError(attempts=3, last_error="HTTP 502"))

        outcome = asyncio.run(_service(gateway=gateway).generate(GenerationRequest(prompt="pasta")))

        assert outcome.kind == OutcomeKind.EXHAUSTED
        assert outcome.record is None
        assert outcome.attempts == 3
        assert outcome.error_message == "HTTP 502"


class TestCreateRecipe:
    def test_persists_well_formed_record(self) -> None:
        repo = RecipeRepositoryStub()

        stored = asyncio.run(_service(repo=repo).create_recipe(GenerationRequest(prompt="pasta")))

        assert stored.id == "id-1"
        assert stored.created_at is not None
        assert stored.title == "Spicy Chicken Pasta"
        assert len(repo.inserted) == 1

    def test_exhausted_gateway_persists_nothing(self) -> None:
        repo = RecipeRepositoryStub()
        gateway = GatewayStub(error=UpstreamExhaustedError(attempts=3))

        with pytest.raises(UpstreamExhaustedError):
            asyncio.run(_service(gateway=gateway, repo=repo).create_recipe(GenerationRequest(prompt="pasta")))

        assert repo.inserted == []

    def test_missing_api_key_propagates(self) -> None:
        gateway = GatewayStub(error=ConfigurationError("AI API key not configured"))

        with pytest.raises(ConfigurationError):
            asyncio.run(_service(gateway=gateway).create_recipe(GenerationRequest(prompt="pasta")))

    def test_unparsable_output_is_saved_as_draft(self) -> None:
        repo = RecipeRepositoryStub()
        gateway = GatewayStub(text="Sorry, I can't help")

        stored = asyncio.run(
            _service(gateway=gateway, repo=repo).create_recipe(GenerationRequest(prompt="pasta", cuisine="Italian"))
        )

        assert stored.difficulty == "Unknown"
        assert stored.ingredients == []
        assert len(stored.instructions) == 1
        assert stored.cuisine == "Italian"

    def test_image_is_uploaded_and_linked(self) -> None:
        store = BlobStoreStub()
        image = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()

        stored = asyncio.run(
            _service(store=store).create_recipe(GenerationRequest(prompt="pasta", image_data=image))
        )

        assert len(store.paths) == 1
        assert store.paths[0].endswith(".png")
        assert stored.image_url == f"https://cdn.test/{store.paths[0]}"

    def test_image_upload_failure_does_not_abort(self) -> None:
        image = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()

        stored = asyncio.run(
            _service(store=BlobStoreStub(fail=True)).create_recipe(GenerationRequest(prompt="pasta", image_data=image))
        )

        assert stored.image_url is None

    def test_owner_from_bearer_token(self) -> None:
        request = GenerationRequest(prompt="pasta", authorization=f"Bearer {_token({'sub': 'u123'})}")

        stored = asyncio.run(_service().create_recipe(request))

        assert stored.user_id == "u123"

    def test_malformed_token_leaves_recipe_public(self) -> None:
        request = GenerationRequest(prompt="pasta", authorization="Bearer garbage")

        stored = asyncio.run(_service().create_recipe(request))

        assert stored.user_id is None

    def test_insert_rejection_surfaces_store_message(self) -> None:
        repo = RecipeRepositoryStub(fail_with='violates check constraint "recipes_difficulty_check"')

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(_service(repo=repo).create_recipe(GenerationRequest(prompt="pasta")))

        assert "recipes_difficulty_check" in str(exc_info.value)


class TestRetryScenario:
    def test_timeout_then_valid_json(self) -> None:
        calls: list[httpx.Request] = []
        delays: list[float] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(200, json={"choices": [{"message": {"content": VALID_JSON}}]})

        async def sleep(delay: float) -> None:
            delays.append(delay)

        gateway = ModelGatewayClient(
            api_key="test-key",
            api_url="https://gateway.test/v1/chat/completions",
            transport=httpx.MockTransport(handler),
            sleep=sleep,
        )
        repo = RecipeRepositoryStub()
        service = _service(gateway=gateway, repo=repo)

        stored = asyncio.run(
            service.create_recipe(GenerationRequest(prompt="spicy chicken pasta", cuisine="Italian"))
        )

        assert len(calls) == 2
        assert 0.5 <= sum(delays) < 1.5
        assert stored.ingredients and stored.instructions
        assert stored.difficulty == "medium"
        body = json.loads(calls[1].content)
        assert body["messages"][1]["content"] == "Create a recipe for: spicy chicken pasta (Italian cuisine style)"
