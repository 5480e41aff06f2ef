"""Exceptions raised by the pricing engine."""


class PricingInputError(ValueError):
    """A caller passed input that violates the engine's preconditions."""
