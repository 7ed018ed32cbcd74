#!/usr/bin/env python3
"""
Audit stored group balances against the expense and settlement history.

For each group, every member's balance is rebuilt from stored payers,
allocations and settlement records and compared with the stored balance map.
Exits non-zero if any group drifts or does not sum to zero.
"""

import argparse
import sys

from database import SessionLocal
import models
from utils.balances import get_balance_cents, recompute_balances
from utils.currency import format_currency


def audit_group(db, group: models.Group) -> bool:
    stored = get_balance_cents(db, group.id)
    rebuilt = recompute_balances(db, group.id)
    ok = True

    print(f"Group {group.id} ({group.name}, {group.currency}):")
    for member_id in sorted(set(stored) | set(rebuilt)):
        stored_cents = stored.get(member_id, 0)
        rebuilt_cents = rebuilt.get(member_id, 0)
        marker = ""
        if stored_cents != rebuilt_cents:
            marker = f"  <-- drift, history gives {format_currency(rebuilt_cents, group.currency)}"
            ok = False
        print(f"  {member_id}: {format_currency(stored_cents, group.currency)}{marker}")

    total = sum(stored.values())
    if total != 0:
        print(f"  ✗ Balances sum to {format_currency(total, group.currency)}, expected 0")
        ok = False
    else:
        print("  ✓ Balances sum to zero")
    return ok


def main():
    parser = argparse.ArgumentParser(description="Audit group balances against history")
    parser.add_argument("--group-id", type=int, help="Only audit this group")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        query = db.query(models.Group)
        if args.group_id is not None:
            query = query.filter(models.Group.id == args.group_id)
        groups = query.order_by(models.Group.id).all()

        if not groups:
            print("No groups found")
            return 0

        results = [audit_group(db, group) for group in groups]
    finally:
        db.close()

    if all(results):
        print("\n✅ All balances match history")
        return 0
    print("\n❌ Balance drift detected")
    return 1


if __name__ == "__main__":
    sys.exit(main())
