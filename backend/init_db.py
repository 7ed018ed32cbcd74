#!/usr/bin/env python3
"""
Create the ledger tables, optionally dropping existing ones first.

    python init_db.py            # create missing tables
    python init_db.py --reset    # drop everything and start from empty balances
"""
import argparse

from database import engine, Base, DATABASE_PATH
import models  # noqa: F401  registers the ledger tables on Base


def main():
    parser = argparse.ArgumentParser(description="Create ledger database tables")
    parser.add_argument("--reset", action="store_true", help="Drop all tables before creating them")
    args = parser.parse_args()

    if args.reset:
        print(f"Dropping all tables in {DATABASE_PATH}...")
        Base.metadata.drop_all(bind=engine)

    print("Creating ledger tables...")
    Base.metadata.create_all(bind=engine)
    print(f"✓ Created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    main()
