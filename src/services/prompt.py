from __future__ import annotations

from typing import Any, Dict, Optional

SYSTEM_PROMPT = (
    "You are a professional chef and recipe creator. Generate a complete, detailed recipe "
    "based on the user's request. Return ONLY a valid JSON object with exactly the following "
    "keys: title (string), description (string), cuisine (string), prep_time (number), "
    "cook_time (number), servings (number), difficulty (string), ingredients (array of "
    "strings), instructions (array of strings). Do NOT include any extra commentary or markdown."
)


def build_user_message(prompt: str, cuisine: Optional[str] = None) -> str:
    message = f"Create a recipe for: {prompt}"
    if cuisine and cuisine.strip():
        message += f" ({cuisine.strip()} cuisine style)"
    return message


def build_chat_payload(
    model: str,
    system_prompt: str,
    user_message: str,
    temperature: float = 0.7,
    max_tokens: int = 1500,
) -> Dict[str, Any]:
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
