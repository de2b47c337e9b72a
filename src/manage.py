"""Storefront Reviews database management CLI.

Creates or drops the SQL schema backing the Reviews domain. Only has an
effect when the active environment configures a SQL provider
(PROTEAN_ENV=production points the default database at sqlite).

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create the Reviews schema."""
    from reviews.domain import reviews
    from reviews.utils.db import setup_db

    print("Initializing reviews domain...")
    reviews.init()
    print("Creating reviews database schema...")
    setup_db(reviews)
    print("Done.")


def drop_database():
    """Drop the Reviews schema."""
    from reviews.domain import reviews
    from reviews.utils.db import drop_db

    print("Initializing reviews domain...")
    reviews.init()
    print("Dropping reviews database schema...")
    drop_db(reviews)
    print("Done.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Storefront Reviews database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    return 0


if __name__ == "__main__":
    sys.exit(main())
