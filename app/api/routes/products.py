from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from app.dependencies import get_catalog_reader
from app.exceptions import StoreUnavailable
from app.schemas.product import ProductResponse
from app.services.catalog_reader import CatalogReader
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

CACHE_CONTROL = "public, max-age=300, must-revalidate"


@router.get("", response_model=List[ProductResponse])
async def list_products(
    response: Response,
    reader: CatalogReader = Depends(get_catalog_reader)
):
    """List all products, served from Redis when possible.

    `price` is a decimal string with two places (`"19.90"`), not a JSON
    number, so clients never see float rounding.
    """
    try:
        products = await reader.fetch_all()
    except StoreUnavailable as e:
        logger.error("Product listing failed: %s", e)
        raise HTTPException(status_code=500, detail="Failed to retrieve products")

    response.headers["Cache-Control"] = CACHE_CONTROL
    return products
