"""Reconcile stale product rating aggregates.

A rating recomputation that fails after a review mutation is queued as a
PendingRecomputation. This script drains that queue by re-deriving each
product's aggregate from its approved reviews. Run it from cron, or point it
at specific products to force a rebuild.

The script works against the persistent database, so PROTEAN_ENV defaults to
"production" here (the sqlite overlay in reviews/domain.toml). Under any other
environment it would reconcile a fresh in-memory store and always report 0.

Usage:
    # Drain the pending queue (up to REVIEWS_RECONCILE_BATCH_SIZE products)
    python scripts/reconcile_ratings.py

    # Rebuild specific products, whether pending or not
    python scripts/reconcile_ratings.py --product prod-001 --product prod-002

    # Keep sweeping until the queue is empty
    python scripts/reconcile_ratings.py --drain

    # Only show what is pending
    python scripts/reconcile_ratings.py --list
"""

import argparse
import os
import sys

# Add src/ to path so we can import domain modules
sys.path.insert(0, "src")

DEFAULT_ENV = "production"


def select_environment() -> str:
    """Point the domain at the persistent database unless PROTEAN_ENV says otherwise."""
    return os.environ.setdefault("PROTEAN_ENV", DEFAULT_ENV)


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Recompute product rating aggregates queued for reconciliation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                             # One sweep over the pending queue
  %(prog)s --drain                     # Sweep until nothing is pending
  %(prog)s --product prod-001          # Rebuild one product
        """,
    )
    parser.add_argument(
        "--product",
        dest="products",
        action="append",
        default=None,
        help="Product id to rebuild (repeatable). Defaults to the pending queue.",
    )
    parser.add_argument("--drain", action="store_true", help="Repeat sweeps until the pending queue is empty")
    parser.add_argument("--list", action="store_true", help="List pending products and exit")
    parser.add_argument("--batch-size", type=int, default=None, help="Products per sweep (default: from environment)")
    args = parser.parse_args(argv)
    select_environment()

    from reviews.domain import reviews
    from reviews.rating.recomputation import RatingRecomputer
    from reviews.utils.db import setup_db
    from reviews.utils.logging import add_context

    reviews.init()
    setup_db(reviews)
    add_context(job="reconcile_ratings")

    recomputer = RatingRecomputer(reviews)
    if args.batch_size is not None:
        recomputer.settings.reconcile_batch_size = args.batch_size

    with reviews.domain_context():
        if args.list:
            pending = recomputer.pending_products()
            print(f"{len(pending)} product(s) pending reconciliation")
            for product_id in pending:
                print(f"  {product_id}")
            return 0

        if args.products:
            result = recomputer.reconcile(product_ids=args.products)
            _report(result)
            return 1 if result["failed"] else 0

        totals = {"reconciled": 0, "failed": 0}
        while True:
            result = recomputer.reconcile()
            totals["reconciled"] += result["reconciled"]
            totals["failed"] += result["failed"]
            # Failed products stay queued; stop rather than spin on them
            if not args.drain or result["reconciled"] == 0 or result["failed"]:
                break

        _report(totals)
        return 1 if totals["failed"] else 0


def _report(result):
    print(f"\n{'='*60}")
    print("  Rating reconciliation")
    print(f"{'='*60}")
    print(f"  Reconciled: {result['reconciled']:,}")
    print(f"  Failed:     {result['failed']:,}")
    print(f"{'='*60}\n")


if __name__ == "__main__":
    sys.exit(main())
