from __future__ import annotations

import logging
import os
import time
from typing import Any

from fastapi import FastAPI, Request, Response

from shop_publisher import db
from shop_publisher.admin_routes import router as admin_router
from shop_publisher.graph_client import ACCESS_TOKEN_ENV, IG_BUSINESS_ID_ENV
from shop_publisher.product_routes import API_TOKEN_ENV
from shop_publisher.product_routes import router as product_router

logger = logging.getLogger("shop-publisher")
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(message)s",
)

app = FastAPI(title="Shop Publisher")


def graph_configured() -> bool:
    return bool(os.getenv(ACCESS_TOKEN_ENV, "").strip() and os.getenv(IG_BUSINESS_ID_ENV, "").strip())


@app.on_event("startup")
def startup() -> None:
    db.init_db()
    logger.info(
        "startup database=%s graph_configured=%s api_token_required=%s admin_auth=%s",
        db.engine.url.get_backend_name(),
        graph_configured(),
        bool(os.getenv(API_TOKEN_ENV)),
        bool(os.getenv("ADMIN_USER") and os.getenv("ADMIN_PASS")),
    )
    if not graph_configured():
        logger.warning("startup_graph_unconfigured missing=%s,%s publishing will fail", ACCESS_TOKEN_ENV, IG_BUSINESS_ID_ENV)


@app.middleware("http")
async def log_requests(request: Request, call_next) -> Response:
    start_time = time.perf_counter()
    response_status = 500
    try:
        response = await call_next(request)
        response_status = response.status_code
        return response
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "request method=%s path=%s status=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            response_status,
            duration_ms,
        )


@app.get("/")
def root() -> dict[str, str]:
    return {"status": "ok", "service": "shop-publisher"}


@app.get("/health")
def health() -> dict[str, Any]:
    return {"ok": db.ping(), "graph_configured": graph_configured()}


@app.head("/health")
def health_head() -> Response:
    return Response(status_code=200 if db.ping() else 503)


app.include_router(product_router)
app.include_router(admin_router)
