import pytest


@pytest.mark.asyncio
async def test_create_estimate_generates_title(client, auth_headers, homeowner_user):
    response = await client.post(
        "/api/estimate",
        headers=auth_headers,
        json={
            "description": "Remodel our bathroom with a walk-in shower, 80 sq ft",
            "location": "Denver, CO",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Bathroom Renovation (80 sq ft)"
    assert data["user_id"] == str(homeowner_user.id)
    assert 0 < data["total_cost_min"] < data["total_cost_max"]
    assert data["ai_analysis"]["complexity"]["complexity"] in ("low", "medium", "high")


@pytest.mark.asyncio
async def test_create_estimate_camel_case_wrapper(client, auth_headers):
    response = await client.post(
        "/api/estimates",
        headers=auth_headers,
        json={
            "projectData": {
                "title": "Deck",
                "projectType": "Deck",
                "description": "Build a composite deck off the kitchen door",
                "location": "Austin, TX",
            }
        },
    )
    assert response.status_code == 201
    # Title equal to the project type is replaced
    assert response.json()["title"] == "Kitchen Renovation"


@pytest.mark.asyncio
async def test_create_estimate_requires_location(client, auth_headers):
    response = await client.post(
        "/api/estimate",
        headers=auth_headers,
        json={"description": "New roof"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Description and location are required"


@pytest.mark.asyncio
async def test_professional_cannot_create_estimate(client, professional_headers):
    response = await client.post(
        "/api/estimate",
        headers=professional_headers,
        json={"description": "New roof", "location": "Austin, TX"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_and_delete_estimates(client, auth_headers, other_headers):
    created = await client.post(
        "/api/estimate",
        headers=auth_headers,
        json={"description": "Paint the living room", "location": "Austin, TX"},
    )
    estimate_id = created.json()["id"]

    listing = await client.get("/api/estimates", headers=auth_headers)
    assert listing.json()["total"] == 1

    forbidden = await client.get(f"/api/estimates/{estimate_id}", headers=other_headers)
    assert forbidden.status_code == 403

    deleted = await client.delete(f"/api/estimates/{estimate_id}", headers=auth_headers)
    assert deleted.status_code == 200

    listing = await client.get("/api/estimates", headers=auth_headers)
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_project_estimate_returns_latest(client, project, auth_headers):
    await client.post(
        "/api/estimate",
        headers=auth_headers,
        json={
            "title": "Kitchen refresh",
            "description": project["description"],
            "location": project["location"],
            "projectId": project["id"],
        },
    )
    response = await client.get(f"/api/projects/{project['id']}/estimate", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Kitchen refresh"
