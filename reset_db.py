"""
Wipes the Stair Ledger database and recreates the schema.

    python reset_db.py            # development and testing databases
    python reset_db.py --force    # also allowed against production
"""

import argparse
import asyncio
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from stairledger.core.database import close_db, reset_schema


async def main(force: bool) -> None:
    try:
        tables = await reset_schema(allow_production=force)
    finally:
        await close_db()
    print(f"Recreated {len(tables)} tables: {', '.join(tables)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Drop and recreate all Stair Ledger tables")
    parser.add_argument("--force", action="store_true", help="allow a production database")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
    asyncio.run(main(args.force))
