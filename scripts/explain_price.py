import sys
from datetime import date
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from contract_pricing.config.settings import get_settings
from contract_pricing.data.catalog import CatalogRepository
from contract_pricing.engine import PricingEngine

def explain(product_id: str, customer_id: str = None, quantity: int = 1, price_date: str = None):
    settings = get_settings()
    catalog = CatalogRepository(settings.data_dir)
    engine = PricingEngine(settings)

    product = catalog.get_product(product_id)
    if product is None:
        print(f"Product {product_id} not found in {settings.data_dir}")
        return 1

    customer = catalog.get_customer_context(customer_id)
    print(f"Product: {product.name} ({product.sku}) base ${product.base_price}")
    print(f"Customer: {customer_id or '-'} with {len(customer.price_lists)} price lists")
    for pl in customer.price_lists:
        print(f"  - {pl.name} priority={pl.priority} valid={pl.is_currently_valid(price_date)}")

    result = engine.calculate_price(
        product, customer, quantity,
        date.fromisoformat(price_date) if price_date else None,
    )
    print("\nWaterfall:")
    print(result.get_trace_text())
    print(f"\nFinal price: ${result.final_price}  discount: ${result.total_discount}")
    status = result.margin_status(settings.margin_warning_threshold, settings.margin_healthy_threshold)
    print(f"Margin: {result.effective_margin_percent}% ({status.value})"
          f"{'  [margin protected]' if result.margin_protected else ''}")
    return 0

if __name__ == "__main__":
    args = sys.argv[1:]
    if not args:
        print("usage: explain_price.py PRODUCT_ID [CUSTOMER_ID] [QUANTITY] [YYYY-MM-DD]")
        sys.exit(2)
    sys.exit(explain(
        args[0],
        args[1] if len(args) > 1 else None,
        int(args[2]) if len(args) > 2 else 1,
        args[3] if len(args) > 3 else None,
    ))
