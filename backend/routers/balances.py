"""Balances router: group balances, settlement plans and member summaries."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import schemas
from database import get_db
from utils.balances import get_balances, summarize_member
from utils.display import get_member_display_name
from utils.money import from_cents
from utils.settlements import plan_settlements
from utils.validation import get_group_or_404, get_group_members


router = APIRouter(tags=["balances"])


@router.get("/groups/{group_id}/balances", response_model=schemas.GroupBalances)
def get_group_balances(group_id: int, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_id)
    balances = get_balances(db, group_id)
    members = get_group_members(db, group_id)

    return schemas.GroupBalances(
        group_id=group.id,
        currency=group.currency,
        balances=balances,
        members=[
            schemas.MemberBalance(
                member_id=member_id,
                name=get_member_display_name(members.get(member_id)),
                amount=amount
            )
            for member_id, amount in balances.items()
        ]
    )


@router.get("/groups/{group_id}/settlement_plan", response_model=schemas.SettlementPlan)
def get_settlement_plan(group_id: int, db: Session = Depends(get_db)):
    """Suggested transfers that would settle the group, largest amounts first."""
    return plan_settlements(db, group_id)


@router.get("/members/{member_id}/balances", response_model=list[schemas.MemberSummary])
def get_member_balances(member_id: str, db: Session = Depends(get_db)):
    """A member's position across all of their groups, one entry per currency."""
    return [
        schemas.MemberSummary(
            member_id=member_id,
            currency=summary["currency"],
            total_owed=from_cents(summary["total_owed"]),
            total_receivable=from_cents(summary["total_receivable"]),
            net_balance=from_cents(summary["net_balance"]),
            group_count=summary["group_count"]
        )
        for summary in summarize_member(db, member_id)
    ]
