# src/app/main.py
from __future__ import annotations

import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.types import Receive, Scope, Send

from src.app.config import settings
from src.app.routers.generate import GENERATE_RECIPE_PATH
from src.app.routers.generate import router as generate_router
from src.app.routers.recipes import router as recipes_router

# Logging simples no stdout (bom para dev e containers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


class CatalogCORSMiddleware(CORSMiddleware):
    """CORS for the catalog routes; /generate-recipe answers its own preflights."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"] == GENERATE_RECIPE_PATH:
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


app = FastAPI(title="Recipe Catalog API", version="0.1.0")

app.add_middleware(
    CatalogCORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate_router)
app.include_router(recipes_router)


@app.get("/health")
def health():
    return {"ok": True}
