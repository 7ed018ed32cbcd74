from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, UniqueConstraint, Text

from database import Base


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    currency = Column(String, nullable=False, default="HKD")  # Fixed at creation
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Summary, kept in step with balances
    total_expenses_cents = Column(Integer, nullable=False, default=0)
    expense_count = Column(Integer, nullable=False, default=0)
    last_expense_at = Column(DateTime, nullable=True)
    last_settlement_at = Column(DateTime, nullable=True)

    # Optimistic lock over the group's balance state
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class GroupMember(Base):
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "member_id", name="uq_group_member"),)

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), index=True, nullable=False)
    member_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    kind = Column(String, nullable=False, default="real")  # 'real' or 'dummy'
    role = Column(String, nullable=False, default="member")  # 'owner', 'admin' or 'member'


class GroupBalance(Base):
    __tablename__ = "group_balances"
    __table_args__ = (UniqueConstraint("group_id", "member_id", name="uq_group_balance"),)

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), index=True, nullable=False)
    member_id = Column(String, nullable=False)
    amount_cents = Column(Integer, nullable=False, default=0)  # Positive: owed to member


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), index=True, nullable=False)
    description = Column(String, default="")
    category = Column(String, default="other")
    amount_cents = Column(Integer, nullable=False)  # Stored in cents/smallest unit
    currency = Column(String, nullable=False)
    date = Column(String)  # ISO date string
    split_method = Column(String, nullable=False)  # equal, percentage, shares, exact
    split_details = Column(JSON, nullable=True)  # Method input as submitted
    notes = Column(Text, nullable=True)
    location = Column(String, nullable=True)  # Where the money was spent, free text
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ExpensePayer(Base):
    __tablename__ = "expense_payers"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), index=True, nullable=False)
    member_id = Column(String, nullable=False)
    amount_cents = Column(Integer, nullable=False)  # Amount this member actually paid
    position = Column(Integer, nullable=False, default=0)


class ExpenseAllocation(Base):
    __tablename__ = "expense_allocations"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), index=True, nullable=False)
    member_id = Column(String, nullable=False)
    amount_cents = Column(Integer, nullable=False)  # The amount this member owes
    position = Column(Integer, nullable=False, default=0)


class SettlementRecord(Base):
    __tablename__ = "settlement_records"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), index=True, nullable=False)
    from_member_id = Column(String, nullable=False)
    to_member_id = Column(String, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    payment_method = Column(String, default="cash")
    remarks = Column(Text, default="")
    date = Column(String)  # ISO date string
    recorded_by = Column(String, nullable=True)
    recorded_at = Column(DateTime, default=datetime.utcnow)
