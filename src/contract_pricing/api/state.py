"""
Shared engine and catalog instances for the API.
"""
from functools import lru_cache

from ..config.settings import get_settings
from ..data.catalog import CatalogRepository
from ..engine import PricingEngine


@lru_cache(maxsize=1)
def get_engine() -> PricingEngine:
    return PricingEngine(get_settings())


@lru_cache(maxsize=1)
def get_catalog() -> CatalogRepository:
    return CatalogRepository(get_settings().data_dir)
