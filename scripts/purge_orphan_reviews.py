#!/usr/bin/env python3
"""Purge orphaned reviews script.

Product deletion removes the product first and its reviews second, in two
separate commits. If the second step fails, reviews are left pointing at a
product that no longer exists. This script finds and removes them.

Usage:
    python scripts/purge_orphan_reviews.py
    python scripts/purge_orphan_reviews.py --dry-run
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from catalog_api.catalog.service import CatalogService
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import async_session_factory, dispose_engine
from catalog_api.infrastructure.logging import configure_logging


async def purge(dry_run: bool) -> int:
    """Count or delete orphaned reviews.

    Args:
        dry_run: Only count, do not delete.

    Returns:
        Number of orphaned reviews.
    """
    async with async_session_factory() as session:
        service = CatalogService(session)
        return await service.purge_orphaned_reviews(dry_run=dry_run)


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Delete reviews whose product no longer exists",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the number of orphaned reviews without deleting them",
    )

    args = parser.parse_args()
    configure_logging(settings.log_level)

    print("=" * 60)
    print("Catalog Orphaned Review Purge")
    print("=" * 60)

    try:
        count = await purge(dry_run=args.dry_run)
    finally:
        await dispose_engine()

    if args.dry_run:
        print(f"  Found: {count} orphaned reviews (nothing deleted)")
    else:
        print(f"  Deleted: {count} orphaned reviews")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
