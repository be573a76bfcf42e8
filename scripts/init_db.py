#!/usr/bin/env python3
"""
Script to initialize database tables.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --demo    # also add a sample menu
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select

from restobot.db.models import Category, Product
from restobot.db.sqlite import db


DEMO_MENU = {
    "Milliy taomlar": [
        ("Osh", "Toshkent oshi, mol go'shti bilan", 35000, None),
        ("Lag'mon", "Qo'lda cho'zilgan lag'mon", 30000, 27000),
        ("Manti", "5 dona, qo'y go'shti", 32000, None),
        ("Shashlik", "Mol go'shti, 1 six", 18000, None),
    ],
    "Fast food": [
        ("Burger", "Mol go'shti kotleti, pishloq", 28000, None),
        ("Lavash", "Tovuq go'shti bilan", 26000, 24000),
        ("Hot-dog", None, 15000, None),
    ],
    "Ichimliklar": [
        ("Choy", "Ko'k choy, choynak", 5000, None),
        ("Kompot", "Uy kompoti, 1 l", 12000, None),
    ],
}


async def seed_demo_menu() -> None:
    """Add the demo menu unless categories already exist."""
    async with db.session() as session:
        existing = await session.scalar(select(func.count(Category.id)))
        if existing:
            print(f"⏭️  {existing} categories already present, skipping demo menu")
            return

        for sort_order, (category_name, products) in enumerate(DEMO_MENU.items()):
            category = Category(name=category_name, sort_order=sort_order)
            session.add(category)
            await session.flush()
            for name, description, price, discount_price in products:
                session.add(
                    Product(
                        name=name,
                        description=description,
                        category_id=category.id,
                        price=price,
                        discount_price=discount_price,
                    )
                )
    print("✅ Demo menu added")


async def main(demo: bool) -> None:
    """Initialize the database."""
    print("Initializing database...")
    print("-" * 50)

    print(f"Creating tables at {db.url}...")
    await db.init()
    print("✅ Tables created")

    if demo:
        await seed_demo_menu()

    print("-" * 50)
    print("✅ Database initialized successfully!")

    await db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the bot database")
    parser.add_argument("--demo", action="store_true", help="Add a sample menu")
    args = parser.parse_args()
    asyncio.run(main(args.demo))
