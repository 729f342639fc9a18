"""
mrbeans/routers/media.py — Image uploads and market quotes
Endpoints: POST /api/upload/{coffee|brand}, GET /api/images/{type},
GET /api/market-prices
"""

from fastapi import APIRouter, Depends, Request

from mrbeans.core.errors import create_success_response
from mrbeans.core.logging import log_data_change
from mrbeans.models import ImageKind, ImageUpload
from mrbeans.routers.common import ADMIN_UPLOAD
from mrbeans.services.images import ImageStore
from mrbeans.services.market_prices import MarketPriceService

router = APIRouter(tags=["media"])


def get_images(request: Request) -> ImageStore:
    return request.app.state.images


def get_market_prices(request: Request) -> MarketPriceService:
    return request.app.state.market_prices


# ──────────────────────────────────────────────────────────────────────────────
# Uploads (admin)
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/upload/{kind}", dependencies=ADMIN_UPLOAD)
async def upload_image(
    kind: ImageKind,
    body: ImageUpload,
    images: ImageStore = Depends(get_images),
) -> dict:
    saved = images.save(kind, body)
    log_data_change("image", "create", saved["filename"], kind.value)
    return create_success_response(saved, "Slika spremljena")


@router.get("/images/{folder}")
async def list_images(folder: str, images: ImageStore = Depends(get_images)) -> dict:
    """`brands` lists brand logos, anything else the coffee photos."""
    kind = ImageKind.BRAND if folder in ("brand", "brands") else ImageKind.COFFEE
    return create_success_response({"images": images.list(kind)})


# ──────────────────────────────────────────────────────────────────────────────
# Market prices
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/market-prices")
def market_prices(service: MarketPriceService = Depends(get_market_prices)) -> dict:
    # Sync def: runs in the threadpool
    return create_success_response(service.get_prices())
