import argparse
import asyncio
import json
import os
import pathlib
import sys

from dotenv import load_dotenv, find_dotenv

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.services.llm_client import DEFAULT_API_URL, ModelGatewayClient
from src.services.prompt import SYSTEM_PROMPT, build_user_message
from src.services.recipe_parser import parse_recipe


async def run(prompt: str, cuisine: str | None, model: str) -> None:
    client = ModelGatewayClient(
        api_key=os.getenv("AI_API_KEY"),
        api_url=os.getenv("AI_API_URL") or DEFAULT_API_URL,
        model_name=model,
    )
    completion = await client.complete(SYSTEM_PROMPT, build_user_message(prompt, cuisine))
    parsed = parse_recipe(completion.text, prompt, cuisine)

    print("attempts:", completion.attempts)
    print("draft:", parsed.degraded)
    print(json.dumps(parsed.record.to_row(), indent=2, ensure_ascii=False))


def main() -> None:
    env_path = find_dotenv()
    if env_path:
        load_dotenv(dotenv_path=env_path)

    parser = argparse.ArgumentParser(description="Generate one recipe without saving it")
    parser.add_argument("prompt", nargs="?", default="spicy chicken pasta")
    parser.add_argument("--cuisine", default=None)
    parser.add_argument("--model", default=os.getenv("AI_MODEL", "gpt-3.5-turbo"))
    args = parser.parse_args()

    asyncio.run(run(args.prompt, args.cuisine, args.model))


if __name__ == "__main__":
    main()
