"""
Role-based shaping of pricing results before they reach a client.
"""
from ..engine.models import PricingResult

CUSTOMER_ROLE = "Customer"
ADMIN_ROLE = "Admin"
STAFF_ROLES = ("SalesRep", "SalesManager", ADMIN_ROLE)


def can_view_margin(role: str) -> bool:
    return role in STAFF_ROLES


def redact_for_role(result: PricingResult, role: str, include_breakdown: bool = True) -> PricingResult:
    """
    Hide margin from anyone who is not staff; an unknown role is treated
    as a customer. The breakdown is dropped unless requested.
    """
    if not can_view_margin(role):
        result = result.with_margin_hidden()
    if not include_breakdown:
        result = result.without_breakdown()
    return result
