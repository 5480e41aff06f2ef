"""
Contract Pricing Package

Pricing engine for B2B medical-supply ordering and quoting.
Resolves a customer price using Base → Contract → Volume → Margin waterfall
with an explainable trail of every adjustment.
"""

__version__ = "1.0.0"
