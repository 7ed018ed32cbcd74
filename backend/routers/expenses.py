"""Expenses router: create, read and delete group expenses."""

from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import schemas
from database import get_db
from dependencies import get_acting_member_id
from utils.expenses import (
    create_expense as create_group_expense,
    delete_expense as delete_group_expense,
    expense_to_schema,
    get_expense as get_group_expense,
    list_group_expenses
)


router = APIRouter(prefix="/groups/{group_id}", tags=["expenses"])


@router.post("/expenses", response_model=schemas.Expense)
def create_expense(
    group_id: int,
    expense: schemas.ExpenseCreate,
    acting_member_id: Annotated[Optional[str], Depends(get_acting_member_id)],
    db: Session = Depends(get_db)
):
    db_expense = create_group_expense(db, group_id, expense, acting_member_id)
    return expense_to_schema(db, db_expense)


@router.get("/expenses", response_model=list[schemas.Expense])
def read_expenses(group_id: int, db: Session = Depends(get_db)):
    return list_group_expenses(db, group_id)


@router.get("/expenses/{expense_id}", response_model=schemas.Expense)
def get_expense(group_id: int, expense_id: int, db: Session = Depends(get_db)):
    return get_group_expense(db, group_id, expense_id)


@router.delete("/expenses/{expense_id}")
def delete_expense(group_id: int, expense_id: int, db: Session = Depends(get_db)):
    delete_group_expense(db, group_id, expense_id)
    return {"message": "Expense deleted successfully"}
