from __future__ import annotations

import os
import secrets
from pathlib import Path
from typing import Any
from urllib.parse import quote_plus

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from shop_publisher import db
from shop_publisher.publisher import ProductNotFound, PublishError, publish_product
from shop_publisher.schemas import ProductCreate

security = HTTPBasic(auto_error=False)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def _get_admin_credentials() -> tuple[str, str] | None:
    user = os.getenv("ADMIN_USER")
    password = os.getenv("ADMIN_PASS")
    if not user or not password:
        return None
    return user, password


def require_admin(credentials: HTTPBasicCredentials | None = Depends(security)) -> None:
    stored = _get_admin_credentials()
    if not stored:
        return
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Basic"})
    user, password = stored
    if not (
        secrets.compare_digest(credentials.username, user)
        and secrets.compare_digest(credentials.password, password)
    ):
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Basic"})


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _redirect(flash: str, flash_type: str) -> RedirectResponse:
    return RedirectResponse(url=f"/admin?flash={quote_plus(flash)}&flash_type={flash_type}", status_code=303)


def _base_context(request: Request) -> dict[str, Any]:
    return {
        "request": request,
        "meta_missing": not os.getenv("META_ACCESS_TOKEN") or not os.getenv("META_IG_BUSINESS_ID"),
        "flash": request.query_params.get("flash"),
        "flash_type": request.query_params.get("flash_type", "info"),
    }


@router.get("")
def admin_index(request: Request):
    products = db.list_products(limit=500)
    return templates.TemplateResponse(
        request,
        "admin_products.html",
        {**_base_context(request), "products": products},
    )


@router.post("/products")
def admin_create_product(
    name: str = Form(...),
    price: str = Form(...),
    image_url: str = Form(...),
    description: str = Form(""),
    catalog_product_id: str = Form(""),
):
    try:
        payload = ProductCreate(
            name=name,
            price=price,
            image_url=image_url,
            description=description or None,
            catalog_product_id=catalog_product_id.strip() or None,
        )
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        return _redirect(f"Invalid product: {fields}", "warning")
    data = payload.model_dump()
    data["image_url"] = str(payload.image_url)
    product = db.create_product(data)
    return _redirect(f"Product {product.id} created", "success")


@router.post("/products/{product_id}/publish")
def admin_publish_product(product_id: int):
    try:
        outcome = publish_product(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    except PublishError as exc:
        return _redirect(f"Publish failed at {exc.stage}: {exc.error}", "danger")
    if outcome.tag_error:
        return _redirect(f"Published as {outcome.instagram_post_id}, tagging failed", "warning")
    return _redirect(f"Published as {outcome.instagram_post_id}", "success")


__all__ = ["router"]
