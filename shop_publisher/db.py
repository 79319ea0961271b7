from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shop_publisher.models import Base, Product, PublishHistory, utc_now

logger = logging.getLogger("shop-publisher")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("db_write_fail")
        raise
    finally:
        session.close()


def init_db() -> None:
    Base.metadata.create_all(engine)
    logger.info("db_write_success event=init_db")


def ping() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("db_ping_fail")
        return False
    return True


def create_product(data: dict[str, Any]) -> Product:
    with get_session() as session:
        product = Product(
            name=data["name"].strip(),
            description=(data.get("description") or "").strip() or None,
            price=data["price"],
            image_url=data["image_url"],
            catalog_product_id=data.get("catalog_product_id") or None,
        )
        session.add(product)
        session.flush()
    logger.info("db_write_success event=create_product product_id=%s", product.id)
    return product


def list_products(published: bool | None = None, limit: int = 100, offset: int = 0) -> list[Product]:
    query = select(Product).order_by(Product.id.asc()).limit(limit).offset(offset)
    if published is not None:
        query = query.where(Product.published.is_(published))
    with get_session() as session:
        return list(session.execute(query).scalars().all())


def get_product(product_id: int) -> Product | None:
    with get_session() as session:
        return session.get(Product, product_id)


def record_publish(product_id: int, instagram_post_id: str | None) -> PublishHistory:
    """Flag the product as published and append a history row in one transaction."""
    with get_session() as session:
        product = session.get(Product, product_id)
        if product is None:
            raise LookupError(f"product {product_id} disappeared before publish was recorded")
        product.published = True
        entry = PublishHistory(
            product_id=product_id,
            instagram_post_id=instagram_post_id,
            published_at=utc_now(),
        )
        session.add(entry)
        session.flush()
    logger.info(
        "db_write_success event=record_publish product_id=%s history_id=%s post_id=%s",
        product_id,
        entry.id,
        instagram_post_id,
    )
    return entry


def update_tag_status(history_id: int, status: str, error: str | None = None) -> None:
    with get_session() as session:
        entry = session.get(PublishHistory, history_id)
        if entry is None:
            logger.warning("db_write_fail event=update_tag_status history_id=%s reason=not_found", history_id)
            return
        entry.tag_status = status
        entry.tag_error = error
    logger.info("db_write_success event=update_tag_status history_id=%s status=%s", history_id, status)


def list_publish_history(product_id: int) -> list[PublishHistory]:
    with get_session() as session:
        return list(
            session.execute(
                select(PublishHistory)
                .where(PublishHistory.product_id == product_id)
                .order_by(PublishHistory.published_at.desc(), PublishHistory.id.desc())
            )
            .scalars()
            .all()
        )
