"""Settlement planning and manual settlement payments."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

import models
import schemas
from utils.balances import apply_batch, get_balance_cents, get_balances, run_ledger_transaction
from utils.display import get_member_display_name
from utils.errors import NotFoundError, ValidationError
from utils.money import from_cents, to_cents
from utils.notifications import SETTLEMENT_DELETED, SETTLEMENT_RECORDED, LedgerEvent, ledger_notifier
from utils.validation import get_group_members, get_group_or_404, normalize_date, verify_group_members


logger = logging.getLogger(__name__)

# Balances of one cent or less either way count as settled
SETTLED_CENTS = 1


def simplify_debts(balances: dict[str, int]) -> list[tuple[str, str, int]]:
    """
    Greedy debt simplification over balances in cents.

    The largest debtor pays the largest creditor as much as possible, then
    the next, until one side runs out. Equal amounts are ordered by member id.
    Not guaranteed to find the fewest possible transfers.

    Returns (from_member_id, to_member_id, amount_cents) tuples.
    """
    debtors = []
    creditors = []

    for member_id, amount in balances.items():
        if amount < -SETTLED_CENTS:
            debtors.append([member_id, -amount])
        elif amount > SETTLED_CENTS:
            creditors.append([member_id, amount])

    debtors.sort(key=lambda x: (-x[1], x[0]))
    creditors.sort(key=lambda x: (-x[1], x[0]))

    transactions = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        amount = min(debtor[1], creditor[1])
        transactions.append((debtor[0], creditor[0], amount))

        debtor[1] -= amount
        creditor[1] -= amount

        if debtor[1] < 1:
            i += 1
        if creditor[1] < 1:
            j += 1

    return transactions


def plan_settlements(db: Session, group_id: int) -> schemas.SettlementPlan:
    """Suggest transfers that would zero the group's balances. Read-only."""
    group = get_group_or_404(db, group_id)
    members = get_group_members(db, group_id)

    transactions = [
        schemas.SettlementPlanEntry(
            from_member_id=from_id,
            from_name=get_member_display_name(members.get(from_id)),
            to_member_id=to_id,
            to_name=get_member_display_name(members.get(to_id)),
            amount=from_cents(amount)
        )
        for from_id, to_id, amount in simplify_debts(get_balance_cents(db, group_id))
    ]
    logger.debug(f"Settlement plan for group {group_id}: {len(transactions)} transfers")

    return schemas.SettlementPlan(group_id=group.id, currency=group.currency, transactions=transactions)


def record_settlement(
    db: Session,
    group_id: int,
    settlement_in: schemas.SettlementCreate,
    acting_member_id: Optional[str] = None,
) -> models.SettlementRecord:
    """
    Record a real-world payment from one member to another.

    The payer's balance goes up and the recipient's goes down by the amount.
    The amount does not have to match any suggested transfer.
    """
    if settlement_in.from_member_id == settlement_in.to_member_id:
        raise ValidationError("A member cannot settle with themselves")
    amount_cents = to_cents(settlement_in.amount)
    if amount_cents <= 0:
        raise ValidationError("Settlement amount must be greater than zero")

    def operation(group: models.Group) -> models.SettlementRecord:
        verify_group_members(db, group.id, [settlement_in.from_member_id], role="Payer")
        verify_group_members(db, group.id, [settlement_in.to_member_id], role="Recipient")

        record = models.SettlementRecord(
            group_id=group.id,
            from_member_id=settlement_in.from_member_id,
            to_member_id=settlement_in.to_member_id,
            amount_cents=amount_cents,
            payment_method=settlement_in.payment_method or "cash",
            remarks=settlement_in.remarks or "",
            date=normalize_date(settlement_in.date),
            recorded_by=acting_member_id
        )
        db.add(record)

        apply_batch(db, group, [
            (settlement_in.from_member_id, amount_cents),
            (settlement_in.to_member_id, -amount_cents),
        ])
        group.last_settlement_at = datetime.utcnow()
        return record

    record = run_ledger_transaction(db, group_id, operation)
    logger.info(
        f"Settlement {record.id} recorded in group {group_id}: "
        f"{record.from_member_id} paid {record.to_member_id} {from_cents(amount_cents)}"
    )

    ledger_notifier.publish(LedgerEvent(
        kind=SETTLEMENT_RECORDED,
        group_id=group_id,
        balances=get_balances(db, group_id),
        settlement_id=record.id
    ))
    return record


def delete_settlement_record(db: Session, group_id: int, record_id: int) -> None:
    """Hard-delete a settlement record and reverse its balance effect exactly."""
    def operation(group: models.Group) -> None:
        record = db.query(models.SettlementRecord).filter(
            models.SettlementRecord.id == record_id,
            models.SettlementRecord.group_id == group.id
        ).first()
        if not record:
            raise NotFoundError("Settlement record not found")

        apply_batch(db, group, [
            (record.from_member_id, -record.amount_cents),
            (record.to_member_id, record.amount_cents),
        ])
        group.last_settlement_at = datetime.utcnow()
        db.delete(record)

    run_ledger_transaction(db, group_id, operation)
    logger.info(f"Settlement {record_id} deleted from group {group_id}")

    ledger_notifier.publish(LedgerEvent(
        kind=SETTLEMENT_DELETED,
        group_id=group_id,
        balances=get_balances(db, group_id),
        settlement_id=record_id
    ))


def settlement_to_schema(record: models.SettlementRecord, currency: str) -> schemas.SettlementRecord:
    return schemas.SettlementRecord(
        id=record.id,
        group_id=record.group_id,
        from_member_id=record.from_member_id,
        to_member_id=record.to_member_id,
        amount=from_cents(record.amount_cents),
        currency=currency,
        payment_method=record.payment_method or "cash",
        remarks=record.remarks or "",
        date=record.date,
        recorded_by=record.recorded_by,
        recorded_at=record.recorded_at
    )


def list_settlement_records(db: Session, group_id: int) -> list[schemas.SettlementRecord]:
    """Settlement history of a group, newest first."""
    group = get_group_or_404(db, group_id)
    records = db.query(models.SettlementRecord).filter(
        models.SettlementRecord.group_id == group_id
    ).order_by(models.SettlementRecord.date.desc(), models.SettlementRecord.id.desc()).all()
    return [settlement_to_schema(r, group.currency) for r in records]
