"""Settlements router: record, list and delete manual settlement payments."""

from typing import Annotated, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import schemas
from database import get_db
from dependencies import get_acting_member_id
from utils.settlements import (
    delete_settlement_record,
    list_settlement_records,
    record_settlement,
    settlement_to_schema
)
from utils.validation import get_group_or_404


router = APIRouter(prefix="/groups/{group_id}", tags=["settlements"])


@router.post("/settlements", response_model=schemas.SettlementRecord)
def create_settlement(
    group_id: int,
    settlement: schemas.SettlementCreate,
    acting_member_id: Annotated[Optional[str], Depends(get_acting_member_id)],
    db: Session = Depends(get_db)
):
    record = record_settlement(db, group_id, settlement, acting_member_id)
    group = get_group_or_404(db, group_id)
    return settlement_to_schema(record, group.currency)


@router.get("/settlements", response_model=list[schemas.SettlementRecord])
def read_settlements(group_id: int, db: Session = Depends(get_db)):
    return list_settlement_records(db, group_id)


@router.delete("/settlements/{record_id}")
def delete_settlement(group_id: int, record_id: int, db: Session = Depends(get_db)):
    delete_settlement_record(db, group_id, record_id)
    return {"message": "Settlement record deleted successfully"}
