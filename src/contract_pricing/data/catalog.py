"""
Catalog Repository - Read-only catalog and customer assignments from CSV.

Stands in for the external catalog and assignment services. Files:
    products.csv, price_lists.csv, price_list_items.csv,
    volume_tiers.csv, customer_price_lists.csv
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.models import CustomerContext, PriceList, PriceListItem, Product, VolumeTier

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {
    'products.csv': ['product_id', 'name', 'sku', 'base_price', 'cost', 'minimum_margin_percent'],
    'price_lists.csv': ['price_list_id', 'name', 'description', 'priority', 'is_active',
                        'valid_from', 'valid_until'],
    'price_list_items.csv': ['item_id', 'price_list_id', 'product_id', 'fixed_price',
                             'percent_discount', 'fixed_discount', 'minimum_margin_percent'],
    'volume_tiers.csv': ['tier_id', 'product_id', 'min_quantity', 'max_quantity',
                         'unit_price', 'percent_discount'],
    'customer_price_lists.csv': ['customer_id', 'price_list_id'],
}


def _blank_to_none(value: str) -> Optional[str]:
    return value if value != '' else None


def _int_or_none(value: str) -> Optional[int]:
    return int(float(value)) if value != '' else None


class CatalogRepository:
    """
    Loads the catalog tables once and builds engine value objects on demand.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        if not self.data_dir.exists():
            raise FileNotFoundError(f"Catalog directory not found at {self.data_dir}")
        self.reload_data()

    def reload_data(self):
        """(Re)load all CSV tables from disk."""
        self.products = self._load_csv('products.csv')
        self.price_lists = self._load_csv('price_lists.csv')
        self.price_list_items = self._load_csv('price_list_items.csv')
        self.volume_tiers = self._load_csv('volume_tiers.csv')
        self.assignments = self._load_csv('customer_price_lists.csv')

        logger.info(
            "Loaded catalog from %s: %d products, %d price lists, %d assignments",
            self.data_dir, len(self.products), len(self.price_lists), len(self.assignments),
        )

    def _load_csv(self, filename: str) -> pd.DataFrame:
        columns = REQUIRED_COLUMNS[filename]
        path = self.data_dir / filename
        if not path.exists():
            logger.warning("Catalog file %s missing; treating as empty", path)
            return pd.DataFrame(columns=columns)

        df = pd.read_csv(path, dtype=str).fillna('')
        df.columns = [c.strip() for c in df.columns]
        for col in df.columns:
            df[col] = df[col].astype(str).str.strip()

        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise ValueError(f"{filename} is missing columns: {', '.join(missing)}")
        return df

    def get_product(self, product_id: str) -> Optional[Product]:
        """Build a Product (with its volume tiers), or None if unknown."""
        match = self.products[self.products['product_id'] == str(product_id).strip()]
        if match.empty:
            return None
        row = match.iloc[0]
        return Product(
            id=row['product_id'],
            name=row['name'],
            sku=row['sku'],
            base_price=row['base_price'],
            cost=_blank_to_none(row['cost']),
            minimum_margin_percent=_blank_to_none(row['minimum_margin_percent']),
            volume_tiers=self.get_volume_tiers(row['product_id']),
        )

    def get_volume_tiers(self, product_id: str) -> tuple[VolumeTier, ...]:
        """Volume tiers for a product, ordered by minimum quantity."""
        rows = self.volume_tiers[self.volume_tiers['product_id'] == str(product_id).strip()]
        tiers = [
            VolumeTier.from_fields(
                min_quantity=int(float(row['min_quantity'])),
                max_quantity=_int_or_none(row['max_quantity']),
                unit_price=_blank_to_none(row['unit_price']),
                percent_discount=_blank_to_none(row['percent_discount']),
                id=row['tier_id'],
            )
            for _, row in rows.iterrows()
        ]
        return tuple(sorted(tiers, key=lambda t: t.min_quantity))

    def get_price_list(self, price_list_id: str) -> Optional[PriceList]:
        match = self.price_lists[self.price_lists['price_list_id'] == str(price_list_id)]
        if match.empty:
            return None
        row = match.iloc[0]
        items = self.price_list_items[self.price_list_items['price_list_id'] == row['price_list_id']]
        return PriceList(
            id=row['price_list_id'],
            name=row['name'],
            description=_blank_to_none(row['description']),
            priority=int(float(row['priority'])) if row['priority'] else 100,
            is_active=row['is_active'].lower() in ('true', '1', 'yes'),
            valid_from=_blank_to_none(row['valid_from']),
            valid_until=_blank_to_none(row['valid_until']),
            items=tuple(
                PriceListItem.from_fields(
                    product_id=item['product_id'],
                    fixed_price=_blank_to_none(item['fixed_price']),
                    percent_discount=_blank_to_none(item['percent_discount']),
                    fixed_discount=_blank_to_none(item['fixed_discount']),
                    minimum_margin_percent=_blank_to_none(item['minimum_margin_percent']),
                    id=item['item_id'],
                )
                for _, item in items.iterrows()
            ),
        )

    def get_customer_price_lists(self, customer_id: str) -> tuple[PriceList, ...]:
        """Price lists assigned to a customer, in assignment order."""
        ids = self.assignments[
            self.assignments['customer_id'] == str(customer_id).strip()
        ]['price_list_id'].unique()

        price_lists = []
        for price_list_id in ids:
            price_list = self.get_price_list(price_list_id)
            if price_list is None:
                logger.warning("Customer %s is assigned unknown price list %s",
                               customer_id, price_list_id)
                continue
            price_lists.append(price_list)
        return tuple(price_lists)

    def get_customer_context(self, customer_id: Optional[str]) -> CustomerContext:
        if not customer_id:
            return CustomerContext()
        return CustomerContext(
            customer_id=str(customer_id),
            price_lists=self.get_customer_price_lists(customer_id),
        )
