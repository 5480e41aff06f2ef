"""
Start the pricing API under uvicorn.

Host, port and reload come from PRICING_API_HOST, PRICING_API_PORT and
PRICING_API_RELOAD.
"""
import logging

import uvicorn

from ..config.logging_config import setup_logging
from ..config.settings import get_settings


def main() -> None:
    settings = get_settings()

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting Contract Pricing API on %s:%s", settings.api_host, settings.api_port)
    uvicorn.run(
        "contract_pricing.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    main()
