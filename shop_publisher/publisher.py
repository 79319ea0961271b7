from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from shop_publisher import db, graph_client
from shop_publisher.models import TAG_FAILED, TAG_SKIPPED, TAG_TAGGED, Product

logger = logging.getLogger("shop-publisher")

STAGE_CREATE_MEDIA = "create_media"
STAGE_PUBLISH_MEDIA = "publish_media"


class ProductNotFound(LookupError):
    def __init__(self, product_id: int) -> None:
        super().__init__(f"product {product_id} not found")
        self.product_id = product_id


class PublishError(RuntimeError):
    """Raised when the post never went live, so nothing was recorded."""

    def __init__(self, stage: str, result: dict[str, Any]) -> None:
        super().__init__(f"{stage} failed: {result.get('error')}")
        self.stage = stage
        self.result = result

    @property
    def error(self) -> Any:
        return self.result.get("error")


@dataclass
class PublishOutcome:
    product_id: int
    history_id: int
    instagram_post_id: str
    published_at: datetime
    tag_status: str
    tag_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def build_caption(product: Product) -> str:
    parts = [product.name.strip()]
    if product.description:
        parts.append(product.description.strip())
    parts.append(f"Price: {product.price:.2f}")
    return "\n\n".join(parts)


def _result_id(result: dict[str, Any]) -> str | None:
    body = result.get("json")
    if isinstance(body, dict) and body.get("id"):
        return str(body["id"])
    return None


def publish_product(product_id: int) -> PublishOutcome:
    product = db.get_product(product_id)
    if product is None:
        raise ProductNotFound(product_id)

    caption = build_caption(product)
    container = graph_client.create_media_container(product.image_url, caption)
    creation_id = _result_id(container)
    if not container.get("ok") or creation_id is None:
        logger.warning("publish_fail stage=%s product_id=%s error=%s", STAGE_CREATE_MEDIA, product_id, container.get("error"))
        raise PublishError(STAGE_CREATE_MEDIA, container)

    published = graph_client.publish_media(creation_id)
    media_id = _result_id(published)
    if not published.get("ok") or media_id is None:
        logger.warning("publish_fail stage=%s product_id=%s creation_id=%s error=%s", STAGE_PUBLISH_MEDIA, product_id, creation_id, published.get("error"))
        raise PublishError(STAGE_PUBLISH_MEDIA, published)

    # The post is live from here on; tagging problems must not lose the record.
    entry = db.record_publish(product_id, media_id)
    tag_status, tag_error = TAG_SKIPPED, None
    if product.catalog_product_id:
        tagged = graph_client.tag_media(media_id, product.catalog_product_id)
        if tagged.get("ok"):
            tag_status = TAG_TAGGED
        else:
            tag_status, tag_error = TAG_FAILED, str(tagged.get("error") or tagged.get("json"))
            logger.warning("tag_fail product_id=%s media_id=%s error=%s", product_id, media_id, tag_error)
        db.update_tag_status(entry.id, tag_status, tag_error)

    logger.info("publish_success product_id=%s media_id=%s tag_status=%s", product_id, media_id, tag_status)
    return PublishOutcome(
        product_id=product_id,
        history_id=entry.id,
        instagram_post_id=media_id,
        published_at=entry.published_at,
        tag_status=tag_status,
        tag_error=tag_error,
    )
