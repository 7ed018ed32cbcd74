"""Groups router: create and read groups with their member roster."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db
from utils.money import from_cents
from utils.validation import get_group_or_404, get_group_members


router = APIRouter(prefix="/groups", tags=["groups"])


def group_to_schema(db: Session, group: models.Group) -> schemas.Group:
    members = [
        schemas.Member(id=m.member_id, name=m.name, kind=m.kind, role=m.role)
        for m in get_group_members(db, group.id).values()
    ]
    return schemas.Group(
        id=group.id,
        name=group.name,
        currency=group.currency,
        created_by=group.created_by,
        members=members,
        summary=schemas.GroupSummary(
            total_expenses=from_cents(group.total_expenses_cents or 0),
            expense_count=group.expense_count or 0,
            last_expense_at=group.last_expense_at,
            last_settlement_at=group.last_settlement_at
        )
    )


@router.post("", response_model=schemas.Group)
def create_group(group: schemas.GroupCreate, db: Session = Depends(get_db)):
    db_group = models.Group(
        name=group.name,
        currency=group.currency,
        created_by=group.created_by,
        total_expenses_cents=0,
        expense_count=0
    )
    db.add(db_group)
    db.flush()

    # Every member starts settled
    for member in group.members:
        db.add(models.GroupMember(
            group_id=db_group.id,
            member_id=member.id,
            name=member.name,
            kind=member.kind.value,
            role=member.role.value
        ))
        db.add(models.GroupBalance(group_id=db_group.id, member_id=member.id, amount_cents=0))

    db.commit()
    db.refresh(db_group)
    return group_to_schema(db, db_group)


@router.get("/{group_id}", response_model=schemas.Group)
def get_group(group_id: int, db: Session = Depends(get_db)):
    group = get_group_or_404(db, group_id)
    return group_to_schema(db, group)
