import pytest

PROFILE = {
    "business_name": "Bright Electric",
    "specialty": "Electrical",
    "description": "Panel upgrades and rewiring",
    "hourly_rate": "95.00",
    "location": "Dallas, TX",
    "service_area": "Dallas-Fort Worth",
    "years_experience": 6,
}


@pytest.mark.asyncio
async def test_create_contractor_profile(client, professional_headers, professional_user):
    response = await client.post("/api/contractors", headers=professional_headers, json=PROFILE)
    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == str(professional_user.id)
    assert data["hourly_rate"] == 95.0
    assert data["rating"] == 0.0
    assert data["has_payment_account"] is False


@pytest.mark.asyncio
async def test_homeowner_cannot_create_profile(client, auth_headers):
    response = await client.post("/api/contractors", headers=auth_headers, json=PROFILE)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_contractors_filters(client, contractor, professional_headers):
    await client.post("/api/contractors", headers=professional_headers, json=PROFILE)

    all_resp = await client.get("/api/contractors")
    assert len(all_resp.json()) == 2
    # Ordered by rating
    assert all_resp.json()[0]["id"] == str(contractor.id)

    by_specialty = await client.get("/api/contractors", params={"specialty": "electrical"})
    assert [c["business_name"] for c in by_specialty.json()] == ["Bright Electric"]

    by_location = await client.get("/api/contractors", params={"location": "austin"})
    assert [c["id"] for c in by_location.json()] == [str(contractor.id)]

    by_search = await client.get("/api/professionals", params={"search": "cabinets"})
    assert [c["id"] for c in by_search.json()] == [str(contractor.id)]


@pytest.mark.asyncio
async def test_get_my_profile(client, contractor, professional_headers, auth_headers):
    mine = await client.get("/api/contractors/me", headers=professional_headers)
    assert mine.json()["id"] == str(contractor.id)

    none = await client.get("/api/contractors/me", headers=auth_headers)
    assert none.status_code == 200
    assert none.json() is None


@pytest.mark.asyncio
async def test_update_profile_owner_only(client, contractor, professional_headers, auth_headers):
    response = await client.patch(
        f"/api/contractors/{contractor.id}",
        headers=professional_headers,
        json={"hourly_rate": "120.00"},
    )
    assert response.status_code == 200
    assert response.json()["hourly_rate"] == 120.0

    response = await client.patch(
        f"/api/contractors/{contractor.id}", headers=auth_headers, json={"phone": "555"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_contractor_not_found(client):
    response = await client.get("/api/contractors/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_earnings_without_payments(client, onboarded_contractor, professional_headers):
    response = await client.get(
        f"/api/contractors/{onboarded_contractor.id}/earnings", headers=professional_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_earned"] == 0
    assert data["payment_count"] == 0


@pytest.mark.asyncio
async def test_payout_requires_account(client, contractor, professional_headers):
    response = await client.post(
        f"/api/contractors/{contractor.id}/request-payout",
        headers=professional_headers,
        json={"amount": 100},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_payout_rejects_non_positive(client, onboarded_contractor, professional_headers):
    response = await client.post(
        f"/api/contractors/{onboarded_contractor.id}/request-payout",
        headers=professional_headers,
        json={"amount": 0},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_request_payout(client, onboarded_contractor, professional_headers):
    response = await client.post(
        f"/api/contractors/{onboarded_contractor.id}/request-payout",
        headers=professional_headers,
        json={"amount": 250.5},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["amount"] == 250.5
    assert data["status"] == "pending"
