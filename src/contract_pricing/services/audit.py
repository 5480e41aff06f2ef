"""
Audit Service - Builds the per-calculation audit record.

Persisting the record is the audit store's job; here it is assembled and
written to the audit logger as JSON.
"""
import json
import logging
import uuid
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Optional

from ..config.logging_config import AUDIT_LOGGER
from ..engine.models import PricingResult, PricingRuleApplication

logger = logging.getLogger(AUDIT_LOGGER)

EVENT_TYPES = ('QuotePrice', 'OrderPrice', 'CartPrice', 'CatalogPrice')


@dataclass
class PricingAuditEntry:
    """One pricing calculation as stored by the audit service."""
    product_id: str
    quantity: int
    base_price: float
    final_price: float
    total_discount: float
    effective_margin_percent: Optional[float]
    margin_protected: bool
    applied_rules_json: str
    event_type: str
    customer_id: Optional[str] = None
    quote_id: Optional[str] = None
    order_id: Optional[str] = None
    requested_by: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    calculated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def get_applied_rules(self) -> list[PricingRuleApplication]:
        """Parse the stored rule trail back into rule applications."""
        return PricingRuleApplication.list_from_json(self.applied_rules_json)

    def to_json(self) -> str:
        return json.dumps(asdict(self))


def build_audit_entry(
    result: PricingResult,
    quantity: int,
    event_type: str = 'CatalogPrice',
    customer_id: Optional[str] = None,
    requested_by: Optional[str] = None,
    quote_id: Optional[str] = None,
    order_id: Optional[str] = None,
) -> PricingAuditEntry:
    """
    Assemble the audit record from an unredacted result.

    The true margin is always recorded; redaction happens only on the way
    to the client.
    """
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown audit event type '{event_type}'")

    data = result.to_dict()
    return PricingAuditEntry(
        product_id=result.product_id,
        quantity=quantity,
        base_price=data['basePrice'],
        final_price=data['finalPrice'],
        total_discount=data['totalDiscount'],
        effective_margin_percent=data['effectiveMarginPercent'],
        margin_protected=result.margin_protected,
        applied_rules_json=result.applied_rules_json(),
        event_type=event_type,
        customer_id=customer_id,
        quote_id=quote_id,
        order_id=order_id,
        requested_by=requested_by,
    )


def record(entry: PricingAuditEntry) -> None:
    logger.info(entry.to_json())
