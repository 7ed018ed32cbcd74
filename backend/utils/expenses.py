"""Expense ledger: create and delete expenses against the group balance map."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

import models
import schemas
from utils.balances import apply_batch, get_balances, run_ledger_transaction
from utils.currency import format_currency
from utils.errors import NotFoundError, ValidationError
from utils.money import CENT, from_cents
from utils.notifications import EXPENSE_CREATED, EXPENSE_DELETED, LedgerEvent, ledger_notifier
from utils.splits import calculate_split
from utils.validation import get_group_or_404, normalize_date, verify_group_members


logger = logging.getLogger(__name__)


def validate_split_details(expense: schemas.ExpenseCreate) -> None:
    """Checks on the split details that the calculator leaves to its caller."""
    split = expense.split
    participants = set(expense.participants)

    if isinstance(split, schemas.PercentageSplit):
        details = split.percentages
    elif isinstance(split, schemas.SharesSplit):
        details = split.shares
    elif isinstance(split, schemas.ExactSplit):
        details = split.amounts
    else:
        details = {}

    unknown = [member_id for member_id in details if member_id not in participants]
    if unknown:
        raise ValidationError(f"Split details given for non-participants: {', '.join(unknown)}")

    if isinstance(split, schemas.PercentageSplit):
        total = sum((Decimal(split.percentages.get(m, 0)) for m in expense.participants), Decimal(0))
        if abs(total - 100) > CENT:
            raise ValidationError(f"Percentages must add up to 100, got {total}")


def expense_deltas(payers: dict[str, int], allocations: dict[str, int]) -> list[tuple[str, int]]:
    """
    Balance deltas for an expense: payers are credited what they paid,
    participants are debited what they owe. A payer who also participates
    gets both entries.
    """
    deltas = [(member_id, paid) for member_id, paid in payers.items()]
    deltas.extend((member_id, -owed) for member_id, owed in allocations.items())
    return deltas


def invert_deltas(deltas: list[tuple[str, int]]) -> list[tuple[str, int]]:
    return [(member_id, -delta) for member_id, delta in deltas]


def _stored_payers(db: Session, expense_id: int) -> dict[str, int]:
    payers = db.query(models.ExpensePayer).filter(
        models.ExpensePayer.expense_id == expense_id
    ).order_by(models.ExpensePayer.position).all()
    return {p.member_id: p.amount_cents for p in payers}


def _stored_allocations(db: Session, expense_id: int) -> dict[str, int]:
    allocations = db.query(models.ExpenseAllocation).filter(
        models.ExpenseAllocation.expense_id == expense_id
    ).order_by(models.ExpenseAllocation.position).all()
    return {a.member_id: a.amount_cents for a in allocations}


def create_expense(
    db: Session,
    group_id: int,
    expense_in: schemas.ExpenseCreate,
    acting_member_id: Optional[str] = None,
) -> models.Expense:
    """
    Record an expense and apply its balance deltas in one transaction.

    The computed allocations are stored with the expense so deletion can
    reverse exactly what was applied here.
    """
    validate_split_details(expense_in)
    split = calculate_split(
        expense_in.amount,
        expense_in.payers,
        expense_in.participants,
        expense_in.split,
    )

    def operation(group: models.Group) -> models.Expense:
        verify_group_members(db, group.id, split.payers.keys(), role="Payer")
        verify_group_members(db, group.id, expense_in.participants, role="Participant")

        db_expense = models.Expense(
            group_id=group.id,
            description=expense_in.description,
            category=expense_in.category or "other",
            amount_cents=split.amount_cents,
            currency=group.currency,
            date=normalize_date(expense_in.date),
            split_method=expense_in.split.method,
            split_details=expense_in.split.model_dump(mode="json"),
            notes=expense_in.notes,
            location=expense_in.location,
            created_by=acting_member_id,
        )
        db.add(db_expense)
        db.flush()

        for position, (member_id, paid) in enumerate(split.payers.items()):
            db.add(models.ExpensePayer(
                expense_id=db_expense.id,
                member_id=member_id,
                amount_cents=paid,
                position=position
            ))
        for position, (member_id, owed) in enumerate(split.allocations.items()):
            db.add(models.ExpenseAllocation(
                expense_id=db_expense.id,
                member_id=member_id,
                amount_cents=owed,
                position=position
            ))

        apply_batch(db, group, expense_deltas(split.payers, split.allocations))

        group.total_expenses_cents += split.amount_cents
        group.expense_count += 1
        group.last_expense_at = datetime.utcnow()
        return db_expense

    db_expense = run_ledger_transaction(db, group_id, operation)
    logger.info(f"Expense {db_expense.id} created in group {group_id} for {format_currency(split.amount_cents, db_expense.currency)}")

    ledger_notifier.publish(LedgerEvent(
        kind=EXPENSE_CREATED,
        group_id=group_id,
        balances=get_balances(db, group_id),
        expense_id=db_expense.id
    ))
    return db_expense


def delete_expense(db: Session, group_id: int, expense_id: int) -> None:
    """
    Hard-delete an expense and reverse its balance effect.

    The reversal uses the stored payers and allocations, never a fresh split,
    so create followed by delete restores balances to the cent.
    """
    def operation(group: models.Group) -> None:
        expense = db.query(models.Expense).filter(
            models.Expense.id == expense_id,
            models.Expense.group_id == group.id
        ).first()
        if not expense:
            raise NotFoundError("Expense not found")

        payers = _stored_payers(db, expense.id)
        allocations = _stored_allocations(db, expense.id)
        apply_batch(db, group, invert_deltas(expense_deltas(payers, allocations)))

        db.query(models.ExpensePayer).filter(models.ExpensePayer.expense_id == expense.id).delete()
        db.query(models.ExpenseAllocation).filter(models.ExpenseAllocation.expense_id == expense.id).delete()

        group.total_expenses_cents = max(0, group.total_expenses_cents - expense.amount_cents)
        group.expense_count = max(0, group.expense_count - 1)

        db.delete(expense)

    run_ledger_transaction(db, group_id, operation)
    logger.info(f"Expense {expense_id} deleted from group {group_id}")

    ledger_notifier.publish(LedgerEvent(
        kind=EXPENSE_DELETED,
        group_id=group_id,
        balances=get_balances(db, group_id),
        expense_id=expense_id
    ))


def expense_to_schema(db: Session, expense: models.Expense) -> schemas.Expense:
    return schemas.Expense(
        id=expense.id,
        group_id=expense.group_id,
        description=expense.description or "",
        category=expense.category or "other",
        amount=from_cents(expense.amount_cents),
        currency=expense.currency,
        date=expense.date,
        split_method=expense.split_method,
        split_details=expense.split_details,
        payers={m: from_cents(c) for m, c in _stored_payers(db, expense.id).items()},
        allocations={m: from_cents(c) for m, c in _stored_allocations(db, expense.id).items()},
        created_by=expense.created_by,
        created_at=expense.created_at,
        notes=expense.notes,
        location=expense.location
    )


def get_expense(db: Session, group_id: int, expense_id: int) -> schemas.Expense:
    get_group_or_404(db, group_id)
    expense = db.query(models.Expense).filter(
        models.Expense.id == expense_id,
        models.Expense.group_id == group_id
    ).first()
    if not expense:
        raise NotFoundError("Expense not found")
    return expense_to_schema(db, expense)


def list_group_expenses(db: Session, group_id: int) -> list[schemas.Expense]:
    """All expenses of a group, newest first, with payers and allocations."""
    get_group_or_404(db, group_id)

    # 1. Fetch all expenses
    expenses = db.query(models.Expense).filter(
        models.Expense.group_id == group_id
    ).order_by(models.Expense.date.desc(), models.Expense.id.desc()).all()

    if not expenses:
        return []

    expense_ids = [e.id for e in expenses]

    # 2. Batch fetch payers and allocations, grouped by expense
    payers_by_expense = {}
    for payer in db.query(models.ExpensePayer).filter(
        models.ExpensePayer.expense_id.in_(expense_ids)
    ).order_by(models.ExpensePayer.position).all():
        payers_by_expense.setdefault(payer.expense_id, {})[payer.member_id] = from_cents(payer.amount_cents)

    allocations_by_expense = {}
    for allocation in db.query(models.ExpenseAllocation).filter(
        models.ExpenseAllocation.expense_id.in_(expense_ids)
    ).order_by(models.ExpenseAllocation.position).all():
        allocations_by_expense.setdefault(allocation.expense_id, {})[allocation.member_id] = from_cents(allocation.amount_cents)

    # 3. Assemble the result
    return [
        schemas.Expense(
            id=expense.id,
            group_id=expense.group_id,
            description=expense.description or "",
            category=expense.category or "other",
            amount=from_cents(expense.amount_cents),
            currency=expense.currency,
            date=expense.date,
            split_method=expense.split_method,
            split_details=expense.split_details,
            payers=payers_by_expense.get(expense.id, {}),
            allocations=allocations_by_expense.get(expense.id, {}),
            created_by=expense.created_by,
            created_at=expense.created_at,
            notes=expense.notes,
            location=expense.location
        )
        for expense in expenses
    ]
