"""
Pricing API - FastAPI router around the pricing engine.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from ..data.catalog import CatalogRepository
from ..engine import PricingEngine, PricingInputError, PricingLine, PricingRequest, Product
from ..engine.models import NoPricing, VolumeTier
from ..services import audit
from .redaction import ADMIN_ROLE, CUSTOMER_ROLE, can_view_margin, redact_for_role
from .schemas import (
    BulkPricingRequestBody,
    CatalogReloadResponse,
    PriceListResponse,
    PricingRequestBody,
    PricingResultResponse,
    ProductVolumeTiersResponse,
    VolumeTierResponse,
)
from .state import get_catalog, get_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


def _require_product(catalog: CatalogRepository, product_id: str) -> Product:
    product = catalog.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")
    return product


def _check_event_type(event_type: str):
    if event_type not in audit.EVENT_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown event type '{event_type}'")


def _line_for(catalog: CatalogRepository, request: PricingRequest) -> PricingLine:
    return PricingLine(
        product=_require_product(catalog, request.product_id),
        customer=catalog.get_customer_context(request.customer_id),
        quantity=request.quantity,
        price_date=request.price_date,
    )


# Endpoints

@router.post("/calculate", response_model=PricingResultResponse)
async def calculate_price(
    body: PricingRequestBody,
    x_user_role: Optional[str] = Header(default=CUSTOMER_ROLE),
    x_user_id: Optional[str] = Header(default=None),
    engine: PricingEngine = Depends(get_engine),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Calculate the price of one product for a customer."""
    _check_event_type(body.event_type)
    request = body.to_request()
    line = _line_for(catalog, request)

    try:
        result = engine.calculate_price(line.product, line.customer, line.quantity, line.price_date)
    except PricingInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    audit.record(audit.build_audit_entry(
        result, request.quantity, body.event_type,
        customer_id=request.customer_id, requested_by=x_user_id,
    ))
    return redact_for_role(result, x_user_role, request.include_breakdown).to_dict()


@router.post("/calculate/bulk", response_model=list[PricingResultResponse])
async def calculate_prices(
    body: BulkPricingRequestBody,
    x_user_role: Optional[str] = Header(default=CUSTOMER_ROLE),
    x_user_id: Optional[str] = Header(default=None),
    engine: PricingEngine = Depends(get_engine),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Calculate prices for several products; results follow request order."""
    for item in body.items:
        _check_event_type(item.event_type)
    requests = [item.to_request() for item in body.items]
    lines = [_line_for(catalog, request) for request in requests]

    try:
        results = engine.calculate_bulk(lines)
    except PricingInputError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = []
    for item, request, result in zip(body.items, requests, results):
        audit.record(audit.build_audit_entry(
            result, request.quantity, item.event_type,
            customer_id=request.customer_id, requested_by=x_user_id,
        ))
        response.append(redact_for_role(result, x_user_role, request.include_breakdown).to_dict())
    return response


def _tier_response(tier: VolumeTier) -> VolumeTierResponse:
    pricing = tier.pricing
    return VolumeTierResponse(
        id=tier.id,
        minQuantity=tier.min_quantity,
        maxQuantity=tier.max_quantity,
        pricingMethod=pricing.kind,
        value=None if isinstance(pricing, NoPricing) else float(pricing.value),
        rangeDescription=tier.range_description(),
    )


@router.get("/products/{product_id}/volume-tiers", response_model=ProductVolumeTiersResponse)
async def get_volume_tiers(product_id: str, catalog: CatalogRepository = Depends(get_catalog)):
    """Volume tiers configured for a product."""
    product = _require_product(catalog, product_id)
    return ProductVolumeTiersResponse(
        productId=product.id,
        productName=product.name,
        basePrice=float(product.base_price),
        tiers=[_tier_response(tier) for tier in product.volume_tiers],
    )


@router.get("/customers/{customer_id}/price-lists", response_model=list[PriceListResponse])
async def get_customer_price_lists(
    customer_id: str,
    x_user_role: Optional[str] = Header(default=CUSTOMER_ROLE),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Price lists assigned to a customer. Staff only."""
    if not can_view_margin(x_user_role):
        raise HTTPException(status_code=403, detail="Price lists are visible to staff only")

    return [
        PriceListResponse(
            id=pl.id,
            name=pl.name,
            description=pl.description,
            priority=pl.priority,
            isActive=pl.is_active,
            validFrom=pl.valid_from,
            validUntil=pl.valid_until,
            isCurrentlyValid=pl.is_currently_valid(),
            itemCount=len(pl.items),
        )
        for pl in catalog.get_customer_price_lists(customer_id)
    ]


@router.post("/catalog/reload", response_model=CatalogReloadResponse)
async def reload_catalog(
    x_user_role: Optional[str] = Header(default=CUSTOMER_ROLE),
    catalog: CatalogRepository = Depends(get_catalog),
):
    """Re-read the catalog CSV files. Admin only."""
    if x_user_role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Catalog reload requires the Admin role")

    try:
        catalog.reload_data()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("Catalog reloaded from %s", catalog.data_dir)
    return CatalogReloadResponse(
        products=len(catalog.products),
        priceLists=len(catalog.price_lists),
        priceListItems=len(catalog.price_list_items),
        volumeTiers=len(catalog.volume_tiers),
        assignments=len(catalog.assignments),
    )
