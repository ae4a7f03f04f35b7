"""Storefront database management CLI.

Usage:
    python src/manage.py setup-db              # Create all tables
    python src/manage.py drop-db               # Drop all tables
    python src/manage.py seed                  # Create tables and load sample data
    python src/manage.py seed --products 100   # ... with more products
    python src/manage.py reindex               # Rebuild the product search index
    python src/manage.py retry-notifications   # Resend failed admin notifications
"""

import argparse
import random
import sys

import bootstrap
from shared import config
from shared.db import drop_db, setup_db

SEED_PASSWORD = "password"


def setup_databases(domain):
    print("Creating database schema...")
    setup_db(domain)
    print("Done.")


def drop_databases(domain):
    print("Dropping database schema...")
    drop_db(domain)
    print("Done.")


def _ensure_user(name: str, email: str, is_admin: bool = False) -> tuple[str, bool]:
    """Return ``(user_id, created)``. Existing accounts are left untouched."""
    from identity.account import find_user_by_email, register

    existing = find_user_by_email(email)
    if existing is not None:
        return existing.id, False
    return register(name, email, SEED_PASSWORD, is_admin=is_admin)["user"]["id"], True


def seed(domain, products: int = 50, users: int = 5, orders: int = 20, seed_value: int | None = None) -> dict:
    """Load an admin, some customers, products and orders through the normal use cases.

    Safe to run again: existing accounts are skipped, and products and orders
    are only loaded into an empty catalog.
    """
    from catalog.product.management import CreateProduct
    from catalog.product.product import Product
    from ordering.order.placement import PlaceOrder
    from shared.exceptions import InsufficientStockError

    rng = random.Random(seed_value)
    setup_db(domain)
    counts = {"users": 0, "products": 0, "orders": 0}

    with domain.domain_context():
        _, created = _ensure_user("Administrator", config.ADMIN_EMAIL, is_admin=True)
        counts["users"] += int(created)
        customer_ids = []
        for i in range(1, users + 1):
            user_id, created = _ensure_user(f"Customer {i}", f"customer{i}@example.com")
            customer_ids.append(user_id)
            counts["users"] += int(created)
        print(f"  {counts['users']} accounts created ({config.ADMIN_EMAIL} / {SEED_PASSWORD} is the admin).")

        if domain.repository_for(Product).all_active():
            print("  Catalog already has products, skipping products and orders.")
            return counts

        adjectives = ["Classic", "Compact", "Deluxe", "Eco", "Premium", "Smart", "Ultra", "Vintage"]
        nouns = ["Backpack", "Headphones", "Keyboard", "Lamp", "Mug", "Notebook", "Speaker", "Watch"]
        product_ids = []
        for _ in range(products):
            command = CreateProduct(
                name=f"{rng.choice(adjectives)} {rng.choice(nouns)} {rng.randint(100, 999)}",
                description="Sample product",
                price=round(rng.uniform(5, 500), 2),
                stock=rng.choice([0, rng.randint(1, 10), rng.randint(10, 200)]),
            )
            product_ids.append(domain.process(command, asynchronous=False)["id"])
        counts["products"] = len(product_ids)
        print(f"  {counts['products']} products created.")

        for _ in range(orders if product_ids and customer_ids else 0):
            chosen = rng.sample(product_ids, k=min(len(product_ids), rng.randint(1, 4)))
            command = PlaceOrder(
                user_id=rng.choice(customer_ids),
                products=[{"product_id": pid, "quantity": rng.randint(1, 3)} for pid in chosen],
            )
            try:
                domain.process(command, asynchronous=False)
            except InsufficientStockError:
                continue
            counts["orders"] += 1
        print(f"  {counts['orders']} orders placed.")

    print("Done.")
    return counts


def reindex(domain):
    from catalog.projections.product_search import reindex as rebuild_index

    with domain.domain_context():
        count = rebuild_index()
    print(f"Indexed {count} products.")


def retry_notifications(domain):
    from notifications.notification.retry import retry_failed_notifications

    with domain.domain_context():
        count = retry_failed_notifications()
    print(f"Retried {count} notifications.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed", help="Create tables and load sample data")
    seed_parser.add_argument("--products", type=int, default=50)
    seed_parser.add_argument("--users", type=int, default=5)
    seed_parser.add_argument("--orders", type=int, default=20)
    seed_parser.add_argument("--seed", type=int, help="Random seed for reproducible data")

    subparsers.add_parser("reindex", help="Rebuild the product search index")
    subparsers.add_parser("retry-notifications", help="Resend failed admin notifications")

    args = parser.parse_args()
    domain = bootstrap.init()

    if args.command == "setup-db":
        setup_databases(domain)
    elif args.command == "drop-db":
        drop_databases(domain)
    elif args.command == "seed":
        seed(domain, args.products, args.users, args.orders, args.seed)
    elif args.command == "reindex":
        reindex(domain)
    elif args.command == "retry-notifications":
        retry_notifications(domain)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
