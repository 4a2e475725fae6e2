"""
Seed script to populate the database with sample data for development.
Generates synthetic sellers, listings and order items, then runs one
ranking pass so every ACTIVE listing has a score.

Usage:
    psql "$DATABASE_URL" -f data/schema.sql
    python data/seed_data.py --products 50
"""
import argparse
import asyncio
import sys
import random
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import asyncpg

# Add backend directory to path to import storerank modules
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from storerank.core.config import get_database_url
from storerank.core.database_pool import close_database_pools, initialize_database_pool
from storerank.services.ranking import recompute_all_scores
from storerank.storage import get_catalog_store

CATEGORIES = {
    "electronics": ["Wireless Headphones", "Smart Watch", "USB-C Cable", "Mechanical Keyboard"],
    "fashion": ["Cotton T-Shirt", "Denim Jeans", "Running Shoes", "Winter Coat"],
    "home": ["Coffee Maker", "Air Fryer", "Table Lamp", "Wall Clock"],
    "sports": ["Yoga Mat", "Dumbbell Set", "Tennis Racket", "Water Bottle"],
}

# ACTIVE dominates so the ranking pass has something to do
STATUSES = ["ACTIVE", "DRAFT", "SUSPENDED"]
STATUS_WEIGHTS = [0.85, 0.1, 0.05]


def generate_sellers(num_sellers):
    sellers = []
    for i in range(num_sellers):
        rating_count = random.choice([0, 0, 3, 12, 48, 150])
        rating_avg = round(random.uniform(2.5, 5.0), 2) if rating_count else 0.0
        sellers.append((f"seller_{uuid.uuid4().hex[:10]}", f"Seller {i + 1}", rating_avg, rating_count))
    return sellers


def generate_products(seller_ids, num_products):
    now = datetime.now(timezone.utc)
    products = []
    for _ in range(num_products):
        category = random.choice(list(CATEGORIES))
        title = random.choice(CATEGORIES[category])
        rating_count = random.choice([0, 0, 1, 5, 20, 80])
        rating_avg = round(random.uniform(1.0, 5.0), 2) if rating_count else 0.0
        products.append((
            f"prod_{uuid.uuid4().hex[:12]}",
            random.choice(seller_ids),
            title,
            random.choices(STATUSES, weights=STATUS_WEIGHTS)[0],
            # Spread over more than a year so some listings get no recency credit
            now - timedelta(days=random.randint(0, 420)),
            rating_avg,
            rating_count,
            random.choice([0, 2, 5, 9, 10, 40]),
        ))
    return products


def generate_order_items(product_ids, num_items):
    # Skewed toward a few popular listings
    popular = product_ids[: max(1, len(product_ids) // 5)]
    items = []
    for _ in range(num_items):
        product_id = random.choice(popular) if random.random() < 0.6 else random.choice(product_ids)
        items.append((f"oi_{uuid.uuid4().hex[:12]}", f"ord_{uuid.uuid4().hex[:8]}", product_id, random.randint(1, 3)))
    return items


async def seed(num_sellers, num_products, num_order_items):
    conn = await asyncpg.connect(get_database_url())
    try:
        sellers = generate_sellers(num_sellers)
        products = generate_products([s[0] for s in sellers], num_products)
        items = generate_order_items([p[0] for p in products], num_order_items)

        async with conn.transaction():
            await conn.executemany(
                "INSERT INTO sellers (id, name, rating_avg, rating_count) VALUES ($1, $2, $3, $4)",
                sellers,
            )
            await conn.executemany(
                """
                INSERT INTO products (id, seller_id, title, status, created_at, rating_avg, rating_count, quantity)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                """,
                products,
            )
            await conn.executemany(
                "INSERT INTO order_items (id, order_id, product_id, quantity) VALUES ($1, $2, $3, $4)",
                items,
            )
        print(f"[OK] Inserted {len(sellers)} sellers, {len(products)} products, {len(items)} order items")
    finally:
        await conn.close()

    if not await initialize_database_pool():
        print("[ERROR] Could not open the database pool; scores not computed")
        return
    try:
        updated = await recompute_all_scores(get_catalog_store())
        print(f"[OK] Scored {updated} active listings")
    finally:
        await close_database_pools()


def main():
    parser = argparse.ArgumentParser(description="Seed the ranking database with synthetic data")
    parser.add_argument("--sellers", type=int, default=8)
    parser.add_argument("--products", type=int, default=40)
    parser.add_argument("--order-items", type=int, default=200)
    args = parser.parse_args()

    asyncio.run(seed(args.sellers, args.products, args.order_items))


if __name__ == "__main__":
    main()
