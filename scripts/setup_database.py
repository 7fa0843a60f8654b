"""
Script to prepare the kiosk customer database

Creates the indexes the customer core relies on (unique phone, recency,
transaction sums) and the anonymous placeholder customer.

Usage:
    python scripts/setup_database.py
    python scripts/setup_database.py --skip-placeholder
"""
import sys
import os

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import asyncio
import argparse
import logging
from dotenv import load_dotenv

from kiosk_compliance.config import get_settings
from kiosk_compliance.database import ensure_indexes, close_connection
from kiosk_compliance.database.customer_operations import upsert_placeholder_customer
from kiosk_compliance.utils.secure_logging import configure_secure_logging

logger = logging.getLogger("setup_database")

ANONYMOUS_PHONE = "anonymous"
ANONYMOUS_NAME = "anonymous"


async def setup_database(create_placeholder: bool = True):
    """
    Ensure indexes and the anonymous placeholder customer

    Args:
        create_placeholder: Whether to create the anonymous customer
    """
    settings = get_settings()

    try:
        await ensure_indexes()
        logger.info(f"Indexes verified on database {settings.database_name}")

        if create_placeholder:
            await upsert_placeholder_customer(
                settings.anonymous_customer_id,
                ANONYMOUS_PHONE,
                ANONYMOUS_NAME,
            )
            logger.info(f"Anonymous customer ready: {settings.anonymous_customer_id}")
    finally:
        await close_connection()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Prepare the kiosk customer database")
    parser.add_argument(
        "--skip-placeholder",
        action="store_true",
        help="Do not create the anonymous placeholder customer",
    )
    args = parser.parse_args()

    load_dotenv()
    settings = get_settings()
    configure_secure_logging(level=settings.log_level, format_type=settings.log_format)

    asyncio.run(setup_database(create_placeholder=not args.skip_placeholder))
