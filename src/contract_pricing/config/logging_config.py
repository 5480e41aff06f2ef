"""
Logging setup for the API process.
"""
import logging
import sys
from typing import Optional

from .settings import get_settings

AUDIT_LOGGER = "contract_pricing.audit"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once; later calls only adjust the level."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger("contract_pricing").setLevel(level)
    logging.getLogger(AUDIT_LOGGER).setLevel(logging.INFO)
