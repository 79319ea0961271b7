from __future__ import annotations

import os
import secrets

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shop_publisher import db
from shop_publisher.publisher import ProductNotFound, PublishError, publish_product
from shop_publisher.schemas import ProductCreate, ProductOut, PublishHistoryOut, PublishResponse

API_TOKEN_ENV = "ADMIN_API_TOKEN"

bearer = HTTPBearer(auto_error=False)


def require_api_token(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> None:
    expected = os.getenv(API_TOKEN_ENV)
    if not expected:
        return
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(status_code=401, detail="Unauthorized", headers={"WWW-Authenticate": "Bearer"})


router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(require_api_token)])


@router.post("", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate) -> ProductOut:
    data = payload.model_dump()
    data["image_url"] = str(payload.image_url)
    product = db.create_product(data)
    return ProductOut.model_validate(product)


@router.get("", response_model=list[ProductOut])
def list_products(
    published: bool | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[ProductOut]:
    return [ProductOut.model_validate(p) for p in db.list_products(published, limit, offset)]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int) -> ProductOut:
    product = db.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.model_validate(product)


@router.get("/{product_id}/history", response_model=list[PublishHistoryOut])
def product_history(product_id: int) -> list[PublishHistoryOut]:
    if db.get_product(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return [PublishHistoryOut.model_validate(row) for row in db.list_publish_history(product_id)]


@router.post("/{product_id}/publish", response_model=PublishResponse)
def publish(product_id: int) -> PublishResponse:
    try:
        outcome = publish_product(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="Product not found")
    except PublishError as exc:
        raise HTTPException(status_code=502, detail={"stage": exc.stage, "error": exc.error})
    return PublishResponse(**outcome.to_dict())


__all__ = ["router", "require_api_token"]
