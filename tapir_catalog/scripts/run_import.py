#!/usr/bin/env python3
"""
Import a Cloudinary folder tree into the catalog database.

Runs the same import as POST /api/admin/cloudinary/import, without the API
server. Re-running is safe; already imported assets are skipped.

Usage:
    python -m tapir_catalog.scripts.run_import tapir/ --user-id <uuid> [--max 2000]
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from uuid import UUID

from tapir_catalog.api.db import PostgresCatalogStore, close_pool, init_pool, run_migrations
from tapir_catalog.api.main import configure_logging
from tapir_catalog.api.services.catalog import CatalogWriter
from tapir_catalog.api.services.cloudinary import CloudinaryClient, get_max_folders
from tapir_catalog.api.services.importer import CatalogImporter

logger = logging.getLogger("tapir_catalog.scripts.run_import")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument(
        "prefix",
        nargs="?",
        default=os.getenv("CATALOG_ROOT_FOLDER", "tapir/"),
        help="Root Cloudinary folder (default: CATALOG_ROOT_FOLDER or 'tapir/')",
    )
    parser.add_argument("--user-id", type=UUID, required=True, help="Owner of imported posts")
    parser.add_argument("--max", type=int, default=None, help="Item budget (1..10000, default 2000)")
    return parser.parse_args(argv)


async def run_import(prefix: str, user_id: UUID, max_items: int | None) -> dict:
    """Import a prefix and return the summary as a plain dict."""
    await init_pool()
    try:
        await run_migrations()
        async with CloudinaryClient() as client:
            importer = CatalogImporter(
                client,
                CatalogWriter(PostgresCatalogStore(), client),
                max_folders=get_max_folders(),
            )
            summary = await importer.import_prefix(prefix, user_id, max_items)
    finally:
        await close_pool()
    return summary.model_dump()


async def main(argv: list[str] | None = None) -> int:
    """Main import entry point."""
    configure_logging()
    args = parse_args(argv)

    try:
        summary = await run_import(args.prefix, args.user_id, args.max)
    except ValueError as e:
        # Missing DATABASE_URL / CLOUDINARY_* or a blank prefix
        logger.error("%s", e)
        return 1

    print(json.dumps(summary, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
