from __future__ import annotations

import json

from src.services.recipe_parser import (
    DRAFT_DESCRIPTION,
    build_fallback_draft,
    load_json_object,
    normalize_difficulty,
    parse_recipe,
)

VALID_RECIPE = {
    "title": "Spicy Chicken Pasta",
    "description": "Weeknight pasta with a chili kick.",
    "cuisine": "Italian",
    "prep_time": 15,
    "cook_time": 20,
    "servings": 4,
    "difficulty": "medium",
    "ingredients": ["300g penne", "2 chicken breasts", "1 tsp chili flakes"],
    "instructions": ["Boil the pasta.", "Sear the chicken.", "Toss everything together."],
}


class TestLoadJsonObject:
    def test_whole_text(self) -> None:
        assert load_json_object(json.dumps(VALID_RECIPE)) == VALID_RECIPE

    def test_embedded_object(self) -> None:
        text = "Here is your recipe:\n```json\n" + json.dumps(VALID_RECIPE) + "\n```\nEnjoy!"
        assert load_json_object(text) == VALID_RECIPE

    def test_greedy_match_spans_first_to_last_brace(self) -> None:
        text = 'prefix {"title": "A", "nested": {"x": 1}} suffix'
        assert load_json_object(text) == {"title": "A", "nested": {"x": 1}}

    def test_no_object(self) -> None:
        assert load_json_object("Sorry, I can't help") is None

    def test_array_is_not_an_object(self) -> None:
        assert load_json_object('["a", "b"]') is None


class TestNormalizeDifficulty:
    def test_known_values_are_lower_cased(self) -> None:
        assert normalize_difficulty("Easy") == "easy"
        assert normalize_difficulty(" HARD ") == "hard"

    def test_unknown_values_use_default(self) -> None:
        assert normalize_difficulty("expert") == "medium"
        assert normalize_difficulty(None) == "medium"
        assert normalize_difficulty(3) == "medium"


class TestParseRecipe:
    def test_round_trip_of_documented_schema(self) -> None:
        result = parse_recipe(json.dumps(VALID_RECIPE), "spicy chicken pasta", "Italian")

        assert result.degraded is False
        row = result.record.model_dump(exclude={"image_url", "user_id"})
        assert row == VALID_RECIPE

    def test_difficulty_is_normalized(self) -> None:
        data = dict(VALID_RECIPE, difficulty="Hard")
        result = parse_recipe(json.dumps(data), "pasta")
        assert result.record.difficulty == "hard"

    def test_numeric_strings_are_coerced(self) -> None:
        data = dict(VALID_RECIPE, prep_time="10 minutes", cook_time=12.0, servings="6")
        record = parse_recipe(json.dumps(data), "pasta").record

        assert record.prep_time == 10
        assert record.cook_time == 12
        assert record.servings == 6

    def test_invalid_numbers_are_dropped(self) -> None:
        data = dict(VALID_RECIPE, prep_time=-5, servings=0, cook_time="soon")
        record = parse_recipe(json.dumps(data), "pasta").record

        assert record.prep_time is None
        assert record.servings is None
        assert record.cook_time is None

    def test_non_finite_numbers_are_dropped(self) -> None:
        text = (
            '{"title": "Soup", "ingredients": ["water"], "instructions": ["boil"],'
            ' "prep_time": NaN, "cook_time": Infinity, "servings": -Infinity}'
        )
        result = parse_recipe(text, "soup")

        assert result.degraded is False
        assert result.record.prep_time is None
        assert result.record.cook_time is None
        assert result.record.servings is None

    def test_overlong_numeric_strings_are_dropped(self) -> None:
        data = dict(VALID_RECIPE, prep_time="9" * 400, servings="9" * 400)
        record = parse_recipe(json.dumps(data), "pasta").record

        assert record.prep_time is None
        assert record.servings is None

    def test_hour_durations_are_converted_to_minutes(self) -> None:
        data = dict(VALID_RECIPE, prep_time="1 hour", cook_time="1 hour 30 minutes")
        record = parse_recipe(json.dumps(data), "stew").record

        assert record.prep_time == 60
        assert record.cook_time == 90

    def test_duration_ranges_keep_the_lower_bound(self) -> None:
        data = dict(VALID_RECIPE, prep_time="1-2 hours", cook_time="10 to 15 min", servings="4-6")
        record = parse_recipe(json.dumps(data), "stew").record

        assert record.prep_time == 60
        assert record.cook_time == 10
        assert record.servings == 4

    def test_durations_with_unrelated_words_are_dropped(self) -> None:
        data = dict(VALID_RECIPE, prep_time="overnight plus 20 minutes")
        assert parse_recipe(json.dumps(data), "bread").record.prep_time is None

    def test_structured_ingredients_are_flattened(self) -> None:
        data = dict(VALID_RECIPE, ingredients=[{"quantity": "2 cups", "name": "flour"}, "  ", "salt"])
        record = parse_recipe(json.dumps(data), "bread").record

        assert record.ingredients == ["2 cups flour", "salt"]

    def test_missing_cuisine_uses_requested_cuisine(self) -> None:
        data = {key: value for key, value in VALID_RECIPE.items() if key != "cuisine"}
        record = parse_recipe(json.dumps(data), "pasta", "Italian").record
        assert record.cuisine == "Italian"

    def test_unparsable_text_yields_draft(self) -> None:
        result = parse_recipe("Sorry, I can't help", "spicy chicken pasta", "Italian")

        assert result.degraded is True
        record = result.record
        assert record.difficulty == "Unknown"
        assert record.ingredients == []
        assert record.instructions == ["Sorry, I can't help"]
        assert record.title == "spicy chicken pasta (AI draft)"
        assert record.description == DRAFT_DESCRIPTION
        assert record.cuisine == "Italian"
        assert record.prep_time is None and record.cook_time is None and record.servings is None

    def test_object_without_ingredients_yields_draft(self) -> None:
        data = dict(VALID_RECIPE, ingredients=[])
        result = parse_recipe(json.dumps(data), "pasta")

        assert result.degraded is True
        assert len(result.record.instructions) == 1


class TestBuildFallbackDraft:
    def test_long_prompt_is_truncated(self) -> None:
        prompt = "x" * 80
        draft = build_fallback_draft("raw", prompt)
        assert draft.title == "x" * 60 + "... (AI draft)"

    def test_prompt_of_exactly_sixty_chars_has_no_ellipsis(self) -> None:
        prompt = "y" * 60
        assert build_fallback_draft("raw", prompt).title == prompt + " (AI draft)"

    def test_raw_output_is_capped(self) -> None:
        draft = build_fallback_draft("z" * 5000, "soup")
        assert draft.instructions == ["z" * 2000]

    def test_no_cuisine(self) -> None:
        assert build_fallback_draft("raw", "soup", "").cuisine is None

    def test_blank_cuisine_is_dropped(self) -> None:
        assert build_fallback_draft("raw", "soup", "   ").cuisine is None
        assert build_fallback_draft("raw", "soup", " Thai ").cuisine == "Thai"
