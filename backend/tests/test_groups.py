def test_create_group(client):
    response = client.post("/groups", json={
        "name": "Kyoto",
        "currency": "jpy",
        "created_by": "M1",
        "members": [
            {"id": "M1", "name": "Alice", "role": "owner"},
            {"id": "M2", "name": "Bob"}
        ]
    })
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Kyoto"
    assert data["currency"] == "JPY"
    assert data["created_by"] == "M1"
    assert data["members"] == [
        {"id": "M1", "name": "Alice", "kind": "real", "role": "owner"},
        {"id": "M2", "name": "Bob", "kind": "real", "role": "member"}
    ]
    assert data["summary"]["total_expenses"] == "0.00"
    assert data["summary"]["expense_count"] == 0


def test_new_members_start_settled(client, api_group):
    response = client.get(f"/groups/{api_group['id']}/balances")
    assert response.status_code == 200
    data = response.json()
    assert data["currency"] == "HKD"
    assert data["balances"] == {"M1": "0.00", "M2": "0.00", "M3": "0.00"}
    assert [m["name"] for m in data["members"]] == ["Alice", "Bob", "Carol (dummy)"]


def test_get_group(client, api_group):
    response = client.get(f"/groups/{api_group['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Tokyo Trip"


def test_get_unknown_group_returns_404(client):
    response = client.get("/groups/999")
    assert response.status_code == 404
    assert response.json()["detail"] == "Group not found"

    assert client.get("/groups/999/balances").status_code == 404


def test_create_group_rejects_bad_currency(client):
    response = client.post("/groups", json={
        "name": "Nowhere",
        "currency": "DOLLARS",
        "members": [{"id": "M1", "name": "Alice"}]
    })
    assert response.status_code == 422


def test_create_group_rejects_duplicate_members(client):
    response = client.post("/groups", json={
        "name": "Twins",
        "members": [{"id": "M1", "name": "Alice"}, {"id": "M1", "name": "Alice again"}]
    })
    assert response.status_code == 422


def test_create_group_requires_members(client):
    response = client.post("/groups", json={"name": "Empty", "members": []})
    assert response.status_code == 422


def test_member_summary_across_groups(client, api_group):
    hkd_id = api_group["id"]
    eur_id = client.post("/groups", json={
        "name": "Paris",
        "currency": "EUR",
        "members": [{"id": "M1", "name": "Alice"}, {"id": "M2", "name": "Bob"}]
    }).json()["id"]

    client.post(f"/groups/{hkd_id}/expenses", json={
        "amount": "300.00",
        "payers": {"M1": "300.00"},
        "participants": ["M1", "M2", "M3"],
        "split": {"method": "equal"}
    })
    client.post(f"/groups/{eur_id}/expenses", json={
        "amount": "40.00",
        "payers": {"M2": "40.00"},
        "participants": ["M1", "M2"],
        "split": {"method": "equal"}
    })

    response = client.get("/members/M1/balances")
    assert response.status_code == 200
    summaries = {s["currency"]: s for s in response.json()}
    assert summaries["HKD"]["total_receivable"] == "200.00"
    assert summaries["HKD"]["total_owed"] == "0.00"
    assert summaries["HKD"]["net_balance"] == "200.00"
    assert summaries["EUR"]["total_owed"] == "20.00"
    assert summaries["EUR"]["net_balance"] == "-20.00"
    assert summaries["EUR"]["group_count"] == 1


def test_member_summary_for_unknown_member_is_empty(client, api_group):
    response = client.get("/members/nobody/balances")
    assert response.status_code == 200
    assert response.json() == []
