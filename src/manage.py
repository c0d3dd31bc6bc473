"""Storefront management CLI.

Usage:
    python src/manage.py setup-db                  # Create all tables
    python src/manage.py drop-db                   # Drop all tables
    python src/manage.py seed-products data.json   # Load products from a JSON array
"""

import argparse
import json
import sys
from pathlib import Path


def setup_database():
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Creating storefront database schema...")
    setup_db(storefront)
    print("Done.")


def drop_database():
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Dropping storefront database schema...")
    drop_db(storefront)
    print("Done.")


def seed_products(path: Path) -> list[str]:
    """Create products from a JSON array of {name, price, stock, description?, category?, isActive?}."""
    from storefront.domain import storefront
    from storefront.inventory.product import Product

    records = json.loads(path.read_text(encoding="utf-8"))

    storefront.init()
    created = []
    with storefront.domain_context():
        repo = storefront.repository_for(Product)
        for record in records:
            product = Product.create(
                name=record["name"],
                price=record["price"],
                stock=record.get("stock", 0),
                description=record.get("description"),
                category=record.get("category"),
                is_active=record.get("isActive", record.get("is_active", True)),
            )
            repo.add(product)
            created.append(str(product.id))
            print(f"  {product.name}: {product.id}")

    print(f"Seeded {len(created)} products.")
    return created


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed-products", help="Load products from a JSON file")
    seed_parser.add_argument("path", type=Path)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-products":
        seed_products(args.path)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
