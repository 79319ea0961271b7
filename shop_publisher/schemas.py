from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, HttpUrl, field_validator

# Matches the Numeric(10, 2) price column.
MAX_PRICE = 10**8


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they are always stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: float = Field(gt=0, lt=MAX_PRICE)
    image_url: HttpUrl
    catalog_product_id: str | None = Field(default=None, max_length=64)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    @field_validator("price")
    @classmethod
    def price_in_cents(cls, value: float) -> float:
        if round(value, 2) != value:
            raise ValueError("price must have at most 2 decimal places")
        return value


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    price: float
    image_url: str
    catalog_product_id: str | None
    published: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime


class PublishHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    published_at: UtcDatetime
    instagram_post_id: str | None
    tag_status: str
    tag_error: str | None


class PublishResponse(BaseModel):
    product_id: int
    history_id: int
    instagram_post_id: str
    published_at: UtcDatetime
    tag_status: str
    tag_error: str | None = None
