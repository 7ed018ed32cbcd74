"""Group balance ledger: reads, atomic delta batches and conflict retries.

Every balance-affecting operation runs inside ``run_ledger_transaction``. The
group row carries an optimistic version; a batch always touches that row, so a
concurrent writer on the same group makes the losing transaction fail at flush
with ``StaleDataError``. The loser is rolled back and rerun from a fresh read.
"""

import logging
import os
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

import models
from utils.errors import ConflictError, LedgerIntegrityError
from utils.money import from_cents
from utils.validation import get_group_or_404, get_group_members


logger = logging.getLogger(__name__)

LEDGER_MAX_RETRIES = int(os.getenv("LEDGER_MAX_RETRIES", "3"))

T = TypeVar("T")


def _balance_rows(db: Session, group_id: int) -> dict[str, models.GroupBalance]:
    rows = db.query(models.GroupBalance).filter(
        models.GroupBalance.group_id == group_id
    ).order_by(models.GroupBalance.id).all()
    return {row.member_id: row for row in rows}


def get_balance_cents(db: Session, group_id: int) -> dict[str, int]:
    """
    Signed balance in cents for every member of a group.

    Members on the roster without any activity are reported as 0. Members with
    a balance row who have since left the roster are still reported.
    """
    balances = {member_id: 0 for member_id in get_group_members(db, group_id)}
    for member_id, row in _balance_rows(db, group_id).items():
        balances[member_id] = row.amount_cents
    return balances


def get_balances(db: Session, group_id: int) -> dict[str, Decimal]:
    """Read the balance map of a group. Positive: the group owes the member."""
    get_group_or_404(db, group_id)
    return {member_id: from_cents(cents) for member_id, cents in get_balance_cents(db, group_id).items()}


def apply_delta(
    db: Session,
    group: models.Group,
    member_id: str,
    delta_cents: int,
    rows: Optional[dict[str, models.GroupBalance]] = None,
) -> int:
    """
    Add a signed delta to one member's balance and return the new balance.

    Does not commit, and on its own breaks the zero-sum invariant: callers go
    through ``apply_batch``.
    """
    if rows is None:
        rows = _balance_rows(db, group.id)
    row = rows.get(member_id)
    if row is None:
        row = models.GroupBalance(group_id=group.id, member_id=member_id, amount_cents=0)
        db.add(row)
        rows[member_id] = row
    row.amount_cents += delta_cents
    return row.amount_cents


def apply_batch(db: Session, group: models.Group, deltas: list[tuple[str, int]]) -> dict[str, int]:
    """
    Apply a balanced set of (member_id, delta_cents) pairs to a group.

    The batch must sum to zero. The group row is touched so its version is
    checked when the session flushes.
    """
    total = sum(delta for _, delta in deltas)
    if total != 0:
        raise LedgerIntegrityError(f"Balance batch for group {group.id} is off by {from_cents(total)}")

    rows = _balance_rows(db, group.id)
    for member_id, delta in deltas:
        apply_delta(db, group, member_id, delta, rows)

    group.updated_at = datetime.utcnow()
    return {member_id: row.amount_cents for member_id, row in rows.items()}


def run_ledger_transaction(
    db: Session,
    group_id: int,
    operation: Callable[[models.Group], T],
    max_retries: Optional[int] = None,
) -> T:
    """
    Run ``operation(group)`` as one serializable read-modify-write.

    Commits on success. On a version conflict the whole operation is rolled
    back and rerun from a fresh read, up to ``max_retries`` attempts in total,
    after which ConflictError is raised. Any other error rolls back and
    propagates.
    """
    # Always make at least one attempt, whatever the configured limit
    attempts = max(1, LEDGER_MAX_RETRIES if max_retries is None else max_retries)
    for attempt in range(1, attempts + 1):
        try:
            group = get_group_or_404(db, group_id)
            result = operation(group)
            db.commit()
            return result
        except StaleDataError:
            db.rollback()
            logger.warning(f"Concurrent update on group {group_id}, retrying (attempt {attempt}/{attempts})")
        except Exception:
            db.rollback()
            raise

    logger.error(f"Giving up on group {group_id} after {attempts} conflicting attempts")
    raise ConflictError("The group was updated concurrently. Please try again.")


def recompute_balances(db: Session, group_id: int) -> dict[str, int]:
    """
    Rebuild every member's balance in cents from stored history.

    Payers are credited what they paid, participants debited their allocation,
    and settlement payers credited / recipients debited the amount paid.
    """
    balances = {member_id: 0 for member_id in get_group_members(db, group_id)}

    expense_ids = [
        e.id for e in db.query(models.Expense.id).filter(models.Expense.group_id == group_id).all()
    ]
    if expense_ids:
        payers = db.query(models.ExpensePayer).filter(
            models.ExpensePayer.expense_id.in_(expense_ids)
        ).all()
        for payer in payers:
            balances[payer.member_id] = balances.get(payer.member_id, 0) + payer.amount_cents

        allocations = db.query(models.ExpenseAllocation).filter(
            models.ExpenseAllocation.expense_id.in_(expense_ids)
        ).all()
        for allocation in allocations:
            balances[allocation.member_id] = balances.get(allocation.member_id, 0) - allocation.amount_cents

    records = db.query(models.SettlementRecord).filter(
        models.SettlementRecord.group_id == group_id
    ).all()
    for record in records:
        balances[record.from_member_id] = balances.get(record.from_member_id, 0) + record.amount_cents
        balances[record.to_member_id] = balances.get(record.to_member_id, 0) - record.amount_cents

    return balances


def summarize_member(db: Session, member_id: str) -> list[dict]:
    """
    Aggregate one member's balances across all of their groups, per currency.

    Returns dicts with total_owed, total_receivable and net_balance in cents.
    """
    rows = db.query(models.GroupBalance, models.Group).join(
        models.Group, models.GroupBalance.group_id == models.Group.id
    ).filter(models.GroupBalance.member_id == member_id).order_by(models.Group.id).all()

    summaries = {}
    for balance, group in rows:
        summary = summaries.setdefault(group.currency, {
            "currency": group.currency,
            "total_owed": 0,
            "total_receivable": 0,
            "group_count": 0,
        })
        summary["group_count"] += 1
        if balance.amount_cents < 0:
            summary["total_owed"] += -balance.amount_cents
        else:
            summary["total_receivable"] += balance.amount_cents

    result = []
    for summary in summaries.values():
        summary["net_balance"] = summary["total_receivable"] - summary["total_owed"]
        result.append(summary)
    return result
