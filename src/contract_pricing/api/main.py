from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from contract_pricing import __version__
from contract_pricing.api.pricing_api import router as pricing_router
from contract_pricing.api.state import get_catalog
from contract_pricing.config.logging_config import setup_logging

setup_logging()

app = FastAPI(
    title="Contract Pricing API",
    description="Pricing waterfall for contract, volume and margin-protected prices",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pricing_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Contract Pricing API Active"}


@app.get("/system/status")
async def get_status():
    catalog = get_catalog()
    return {
        "engine_active": True,
        "catalog_dir": str(catalog.data_dir),
        "products": len(catalog.products),
        "price_lists": len(catalog.price_lists),
    }
