"""
Best-effort recipe attribution from an unverified bearer token.

The token signature is NOT verified. The resolved id only tags who
generated a recipe and must never be used for authorization; verified
sessions go through `src.app.deps.get_current_user`.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Optional

from src.services.persist_models import RecipeRecord

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "
SUBJECT_CLAIMS = ("sub", "user_id", "uid")


def _b64url_decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded)


def decode_unverified_claims(token: str) -> Optional[dict[str, Any]]:
    parts = token.split(".")
    if len(parts) != 3:
        return None
    try:
        claims = json.loads(_b64url_decode(parts[1]))
    except (binascii.Error, ValueError) as exc:
        logger.warning("Failed to decode JWT payload for user attribution: %s", exc)
        return None
    return claims if isinstance(claims, dict) else None


def resolve_owner_id(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None

    token = authorization[len(BEARER_PREFIX):].strip()
    claims = decode_unverified_claims(token) if token else None
    if not claims:
        return None

    for claim in SUBJECT_CLAIMS:
        value = claims.get(claim)
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def attribute_owner(record: RecipeRecord, authorization: Optional[str]) -> bool:
    owner_id = resolve_owner_id(authorization)
    if not owner_id:
        return False
    attached = record.attach_owner(owner_id)
    if attached:
        logger.info("Attaching user_id to recipe: %s", owner_id)
    return attached
