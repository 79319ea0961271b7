from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

logger = logging.getLogger("shop-publisher")
GRAPH_BASE = "https://graph.facebook.com"

ACCESS_TOKEN_ENV = "META_ACCESS_TOKEN"
IG_BUSINESS_ID_ENV = "META_IG_BUSINESS_ID"
API_VERSION_ENV = "META_API_VERSION"
DEFAULT_API_VERSION = "v24.0"


def _failure(error: Any, status_code: int | None = None, body: Any = None) -> dict[str, Any]:
    return {"ok": False, "status_code": status_code, "json": body, "error": error}


def _post(path: str, data: dict[str, Any], call: str) -> dict[str, Any]:
    token = os.getenv(ACCESS_TOKEN_ENV, "").strip()
    api_version = os.getenv(API_VERSION_ENV, DEFAULT_API_VERSION).strip() or DEFAULT_API_VERSION
    if not token:
        logger.warning("graph_call_fail call=%s status_code=%s response=%s", call, None, {"error": "token_missing"})
        return _failure("token_missing", body={"error": f"{ACCESS_TOKEN_ENV} missing"})

    url = f"{GRAPH_BASE}/{api_version}/{path.lstrip('/')}"
    headers = {"Authorization": f"Bearer {token}"}
    try:
        response = httpx.post(url, data=data, headers=headers, timeout=20.0)
        try:
            body: Any = response.json()
        except ValueError:
            body = {"raw": response.text[:500]}
        if response.is_success:
            logger.info("graph_call_success call=%s status_code=%s response=%s", call, response.status_code, body)
            return {"ok": True, "status_code": response.status_code, "json": body, "error": None}
        logger.warning("graph_call_fail call=%s status_code=%s response=%s", call, response.status_code, body)
        error = body.get("error", body) if isinstance(body, dict) else body
        return _failure(error, response.status_code, body)
    except httpx.HTTPError as exc:
        logger.warning("graph_call_fail call=%s status_code=%s response=%s", call, None, {"error": str(exc)})
        return _failure(str(exc))


def _business_path(suffix: str) -> str | None:
    ig_business_id = os.getenv(IG_BUSINESS_ID_ENV, "").strip()
    if not ig_business_id:
        return None
    return f"{ig_business_id}/{suffix}"


def create_media_container(image_url: str, caption: str) -> dict[str, Any]:
    """Stage an image post; ``json["id"]`` is the container id on success."""
    path = _business_path("media")
    if path is None:
        return _failure("ig_business_id_missing", body={"error": f"{IG_BUSINESS_ID_ENV} missing"})
    return _post(path, {"image_url": image_url, "caption": caption}, call="create_media")


def publish_media(creation_id: str) -> dict[str, Any]:
    """Make a staged container live; ``json["id"]`` is the published media id."""
    path = _business_path("media_publish")
    if path is None:
        return _failure("ig_business_id_missing", body={"error": f"{IG_BUSINESS_ID_ENV} missing"})
    return _post(path, {"creation_id": creation_id}, call="publish_media")


def tag_media(media_id: str, catalog_product_id: str, x: float = 0.5, y: float = 0.5) -> dict[str, Any]:
    updated_tags = [{"product_id": catalog_product_id, "x": x, "y": y}]
    return _post(f"{media_id}/product_tags", {"updated_tags": json.dumps(updated_tags)}, call="tag_media")


__all__ = ["create_media_container", "publish_media", "tag_media"]
