"""Price list and tire search routes."""

import asyncio
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from agent_api.api.deps import get_price_list
from agent_api.core.logging import log_error, logger
from agent_api.models.product import ProductSearchRequest
from agent_api.models.tire import TireQuery, TireSpec
from agent_api.services.price_list import PriceListError, PriceListStore
from agent_api.services.tire_search import clamp_limit, search_tires
from agent_api.services.tire_spec import parse_tire_spec

router = APIRouter()

PriceList = Annotated[PriceListStore, Depends(get_price_list)]


@router.get("/health")
async def health(price_list: PriceList):
    return {
        "status": "healthy",
        "totalRecords": len(price_list),
        "loadedAt": price_list.loaded_at.isoformat() if price_list.loaded_at else None,
        "timestamp": datetime.now().isoformat(),
    }


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@router.post("/product/search")
async def search_products(req: ProductSearchRequest, price_list: PriceList):
    """Search products by code or name (case-insensitive substring)."""
    if not req.query.strip():
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "El parametro 'query' es obligatorio."},
        )
    results = price_list.search(req.query, limit=req.limit)
    return {
        "success": True,
        "query": req.query,
        "total": len(results),
        "results": [p.model_dump() for p in results],
    }


@router.get("/product/code/{code}")
async def product_by_code(code: str, price_list: PriceList):
    product = price_list.get_by_code(code)
    if product is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": f"Producto no encontrado: {code}"},
        )
    return {"success": True, "producto": product.model_dump()}


@router.post("/price-list/reload")
async def reload_price_list(price_list: PriceList):
    """Re-read the spreadsheet and replace the whole price list."""
    try:
        count = await asyncio.to_thread(price_list.reload)
    except PriceListError as e:
        log_error("Price list reload failed", e, path=price_list.path)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True, "totalRecords": count}


# ---------------------------------------------------------------------------
# Tires
# ---------------------------------------------------------------------------


@router.post("/tires/search")
async def tire_search(query: TireQuery, price_list: PriceList):
    """Find tires by size, cheapest first."""
    result = search_tires(price_list.products, query)
    logger.info(
        f"Tire search width={query.width} aspect={query.aspect_ratio} "
        f"diameter={query.diameter} results={result.total}"
    )
    return {
        "success": True,
        "query": {
            "width": query.width,
            "aspect_ratio": query.aspect_ratio,
            "diameter": query.diameter,
            "exact_match": query.exact_match,
            "limit": clamp_limit(query.limit),
            "vehicle_type": result.vehicle_type.value,
        },
        "total": result.total,
        "results": [
            {**m.product.model_dump(), "tire_spec": m.tire_spec.model_dump(mode="json")}
            for m in result.matches
        ],
    }


@router.get("/tires/parse", response_model=TireSpec)
async def tire_parse(name: Annotated[str, Query(min_length=1, max_length=500)]):
    """Parse the tire size out of a product name."""
    return parse_tire_spec(name)
