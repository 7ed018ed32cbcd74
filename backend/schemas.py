from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


# Upper bound on a single expense or settlement amount
MAX_AMOUNT = Decimal("1000000000")


class MemberKind(str, Enum):
    REAL = "real"
    DUMMY = "dummy"  # Placeholder added by an owner before the real person joins


class MemberRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class SplitMethod(str, Enum):
    EQUAL = "equal"
    PERCENTAGE = "percentage"
    SHARES = "shares"
    EXACT = "exact"


class MemberBase(BaseModel):
    id: str
    name: str
    kind: MemberKind = MemberKind.REAL
    role: MemberRole = MemberRole.MEMBER


class MemberCreate(MemberBase):
    pass


class Member(MemberBase):
    pass


class GroupCreate(BaseModel):
    name: str
    currency: str = "HKD"
    created_by: Optional[str] = None
    members: list[MemberCreate]

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v):
        v = v.strip().upper()
        if len(v) != 3 or not v.isalpha():
            raise ValueError('Currency must be a three-letter ISO code')
        return v

    @field_validator('members')
    @classmethod
    def validate_members(cls, v):
        if not v:
            raise ValueError('A group needs at least one member')
        ids = [m.id for m in v]
        if len(ids) != len(set(ids)):
            raise ValueError('Member ids must be unique within a group')
        return v


class GroupSummary(BaseModel):
    total_expenses: Decimal
    expense_count: int
    last_expense_at: Optional[datetime] = None
    last_settlement_at: Optional[datetime] = None


class Group(BaseModel):
    id: int
    name: str
    currency: str
    created_by: Optional[str] = None
    members: list[Member]
    summary: GroupSummary


# Split method payloads, discriminated on `method`
class EqualSplit(BaseModel):
    method: Literal["equal"] = "equal"


class PercentageSplit(BaseModel):
    method: Literal["percentage"] = "percentage"
    percentages: dict[str, Decimal]  # member_id -> percentage of the total


class SharesSplit(BaseModel):
    method: Literal["shares"] = "shares"
    shares: dict[str, Decimal] = {}  # member_id -> share count, missing counts as 1


class ExactSplit(BaseModel):
    method: Literal["exact"] = "exact"
    amounts: dict[str, Decimal]  # member_id -> amount owed


SplitDetails = Annotated[
    Union[EqualSplit, PercentageSplit, SharesSplit, ExactSplit],
    Field(discriminator="method"),
]


class ExpenseCreate(BaseModel):
    description: str = ""
    category: str = "other"
    amount: Decimal = Field(le=MAX_AMOUNT)
    payers: dict[str, Decimal]  # member_id -> amount actually paid
    participants: list[str]
    split: SplitDetails
    date: Optional[str] = None
    notes: Optional[str] = None
    location: Optional[str] = None


class Expense(BaseModel):
    id: int
    group_id: int
    description: str
    category: str
    amount: Decimal
    currency: str
    date: Optional[str] = None
    split_method: SplitMethod
    split_details: Optional[dict] = None
    payers: dict[str, Decimal]
    allocations: dict[str, Decimal]
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    notes: Optional[str] = None
    location: Optional[str] = None


class SettlementCreate(BaseModel):
    from_member_id: str
    to_member_id: str
    amount: Decimal = Field(le=MAX_AMOUNT)
    payment_method: str = "cash"
    remarks: str = ""
    date: Optional[str] = None


class SettlementRecord(BaseModel):
    id: int
    group_id: int
    from_member_id: str
    to_member_id: str
    amount: Decimal
    currency: str
    payment_method: str
    remarks: str
    date: Optional[str] = None
    recorded_by: Optional[str] = None
    recorded_at: Optional[datetime] = None


class MemberBalance(BaseModel):
    member_id: str
    name: str
    amount: Decimal  # Positive means the group owes this member, negative means they owe


class GroupBalances(BaseModel):
    group_id: int
    currency: str
    balances: dict[str, Decimal]
    members: list[MemberBalance]


class SettlementPlanEntry(BaseModel):
    from_member_id: str
    from_name: str
    to_member_id: str
    to_name: str
    amount: Decimal


class SettlementPlan(BaseModel):
    group_id: int
    currency: str
    transactions: list[SettlementPlanEntry]


class MemberSummary(BaseModel):
    """One member's position across every group they belong to, per currency."""
    member_id: str
    currency: str
    total_owed: Decimal
    total_receivable: Decimal
    net_balance: Decimal
    group_count: int
