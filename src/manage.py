"""Storefront settlement database management CLI.

Creates and drops the ordering schema using the setup_db/drop_db utilities,
and runs the invoice reconciliation sweep.

Usage:
    python src/manage.py setup-db           # Create all tables
    python src/manage.py drop-db            # Drop all tables
    python src/manage.py issue-invoices     # Retry pending/failed invoices
"""

import argparse
import sys


def setup_database():
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    setup_db(ordering)
    print("Done.")


def drop_database():
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    drop_db(ordering)
    print("Done.")


def issue_invoices():
    from ordering.domain import ordering
    from ordering.order.issuance import issue_outstanding_invoices

    ordering.init()
    with ordering.domain_context():
        results = issue_outstanding_invoices()

    failed = [order_id for order_id, result in results.items() if not result.success]
    print(f"Attempted {len(results)} invoice(s), {len(failed)} failed.")
    for order_id in failed:
        print(f"  {order_id}: {results[order_id].failure_reason}")
    return 1 if failed else 0


def main():
    parser = argparse.ArgumentParser(description="Storefront settlement management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("issue-invoices", help="Issue invoices for priced orders still pending or failed")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "issue-invoices":
        sys.exit(issue_invoices())
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
