import sys

import check_balances
from conftest import TestingSessionLocal, add_group
from models import Group, GroupBalance, GroupMember
from utils.balances import apply_batch, run_ledger_transaction
from utils.currency import format_currency
from utils.display import get_member_display_name


def test_audit_passes_for_consistent_ledger(db_session, client, api_group, capsys):
    client.post(f"/groups/{api_group['id']}/expenses", json={
        "amount": "300.00",
        "payers": {"M1": "300.00"},
        "participants": ["M1", "M2", "M3"],
        "split": {"method": "equal"}
    })
    group = db_session.get(Group, api_group["id"])

    assert check_balances.audit_group(db_session, group) is True
    assert check_balances.audit_group(db_session, add_group(db_session, name="Empty")) is True
    out = capsys.readouterr().out
    assert "Balances sum to zero" in out


def test_audit_reports_drift(db_session, trip_group, capsys):
    # Stored balance edited behind the ledger's back
    row = db_session.query(GroupBalance).filter(
        GroupBalance.group_id == trip_group.id, GroupBalance.member_id == "M2"
    ).first()
    row.amount_cents = 500
    db_session.commit()

    assert check_balances.audit_group(db_session, trip_group) is False
    out = capsys.readouterr().out
    assert "M2: HK$5.00  <-- drift, history gives HK$0.00" in out
    assert "Balances sum to HK$5.00, expected 0" in out


def test_main_exit_codes(db_session, trip_group, monkeypatch, capsys):
    monkeypatch.setattr(check_balances, "SessionLocal", TestingSessionLocal)
    monkeypatch.setattr(sys, "argv", ["check_balances.py", "--group-id", str(trip_group.id)])
    assert check_balances.main() == 0

    monkeypatch.setattr(sys, "argv", ["check_balances.py", "--group-id", "999"])
    assert check_balances.main() == 0
    assert "No groups found" in capsys.readouterr().out

    run_ledger_transaction(db_session, trip_group.id, lambda g: apply_batch(db_session, g, [("M1", 100), ("M2", -100)]))
    monkeypatch.setattr(sys, "argv", ["check_balances.py"])
    assert check_balances.main() == 1


def test_format_currency():
    assert format_currency(1234, "HKD") == "HK$12.34"
    assert format_currency(-1234, "EUR") == "-€12.34"
    assert format_currency(150000, "JPY") == "¥1500"
    assert format_currency(999, "CHF") == "CHF 9.99"


def test_member_display_names():
    assert get_member_display_name(None) == "Unknown Member"
    assert get_member_display_name(GroupMember(member_id="M1", name="Alice", kind="real")) == "Alice"
    assert get_member_display_name(GroupMember(member_id="M2", name="  ", kind="real")) == "Member"
    assert get_member_display_name(GroupMember(member_id="M3", name="Carol", kind="dummy")) == "Carol (dummy)"
