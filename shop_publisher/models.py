from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

TAG_SKIPPED = "skipped"
TAG_TAGGED = "tagged"
TAG_FAILED = "failed"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False))
    image_url: Mapped[str] = mapped_column(String(1024))
    catalog_product_id: Mapped[str | None] = mapped_column(String(64))
    published: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    history: Mapped[list["PublishHistory"]] = relationship(
        back_populates="product",
        order_by="PublishHistory.published_at.desc()",
        cascade="all, delete-orphan",
    )


class PublishHistory(Base):
    __tablename__ = "publish_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    instagram_post_id: Mapped[str | None] = mapped_column(String(64))
    tag_status: Mapped[str] = mapped_column(String(16), default=TAG_SKIPPED)
    tag_error: Mapped[str | None] = mapped_column(Text)

    product: Mapped[Product] = relationship(back_populates="history")
