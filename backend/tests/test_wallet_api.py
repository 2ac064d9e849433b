"""
Wallet endpoint tests.
"""

import pytest
from decimal import Decimal


@pytest.mark.asyncio
async def test_deposit_and_balance(client, make_user):
    user = await make_user("wallet@test.com", wallet_balance=Decimal("100.00"))

    response = await client.post("/v1/transactions", json={
        "user_id": user.id,
        "amount": "50.00",
        "type": "deposit",
        "method": "chapa",
        "reference": "CH-991"
    })

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["status"] == "completed"
    assert data["amount"] == "50.00"
    assert data["method"] == "chapa"

    balance = await client.get(f"/v1/users/{user.id}/wallet")
    assert balance.status_code == 200
    assert balance.json() == {"user_id": user.id, "wallet_balance": "150.00"}

    history = await client.get(f"/v1/transactions/{user.id}")
    assert [t["id"] for t in history.json()] == [data["id"]]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-1.00", "abc", "1.001"])
async def test_invalid_amount(client, make_user, amount):
    user = await make_user("bad@test.com", wallet_balance=Decimal("5.00"))

    response = await client.post("/v1/transactions", json={
        "user_id": user.id, "amount": amount, "type": "deposit"
    })

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"
    assert (await client.get(f"/v1/transactions/{user.id}")).json() == []
    assert (await client.get(f"/v1/users/{user.id}/wallet")).json()["wallet_balance"] == "5.00"


@pytest.mark.asyncio
async def test_unknown_user(client):
    response = await client.post("/v1/transactions", json={
        "user_id": 9999, "amount": "5.00", "type": "deposit"
    })
    assert response.status_code == 404

    response = await client.get("/v1/users/9999/wallet")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"


@pytest.mark.asyncio
async def test_payment_recorded_balance_unchanged(client, make_user):
    user = await make_user("pay@test.com", wallet_balance=Decimal("40.00"))

    response = await client.post("/v1/transactions", json={
        "user_id": user.id, "amount": "15.00", "type": "payment", "method": "wallet"
    })

    assert response.status_code == 201
    assert (await client.get(f"/v1/users/{user.id}/wallet")).json()["wallet_balance"] == "40.00"
