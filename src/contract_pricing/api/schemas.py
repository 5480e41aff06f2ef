"""
Pydantic models for the pricing API. Field names follow the client's camelCase.
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..engine import PricingRequest


class PricingRequestBody(BaseModel):
    """Request for a single price calculation."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    customer_id: Optional[str] = Field(default=None, alias="customerId")
    quantity: int = 1
    price_date: Optional[date] = Field(default=None, alias="priceDate")
    include_breakdown: bool = Field(default=False, alias="includeBreakdown")
    event_type: str = Field(default="CatalogPrice", alias="eventType")

    def to_request(self) -> PricingRequest:
        return PricingRequest(
            product_id=self.product_id,
            customer_id=self.customer_id,
            quantity=self.quantity,
            price_date=self.price_date,
            include_breakdown=self.include_breakdown,
        )


class BulkPricingRequestBody(BaseModel):
    """Request for bulk price calculation; results keep this order."""
    items: list[PricingRequestBody]


class RuleApplicationResponse(BaseModel):
    order: int
    ruleType: str
    ruleName: str
    priceBefore: float
    priceAfter: float
    adjustment: float
    explanation: str


class PricingResultResponse(BaseModel):
    productId: str
    basePrice: float
    finalPrice: float
    totalDiscount: float
    effectiveMarginPercent: Optional[float]
    marginProtected: bool
    appliedRules: list[RuleApplicationResponse]


class VolumeTierResponse(BaseModel):
    id: str
    minQuantity: int
    maxQuantity: Optional[int]
    pricingMethod: str
    value: Optional[float]
    rangeDescription: str


class ProductVolumeTiersResponse(BaseModel):
    productId: str
    productName: str
    basePrice: float
    tiers: list[VolumeTierResponse]


class PriceListResponse(BaseModel):
    id: str
    name: str
    description: Optional[str]
    priority: int
    isActive: bool
    validFrom: Optional[date]
    validUntil: Optional[date]
    isCurrentlyValid: bool
    itemCount: int


class CatalogReloadResponse(BaseModel):
    products: int
    priceLists: int
    priceListItems: int
    volumeTiers: int
    assignments: int
