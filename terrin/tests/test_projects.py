import pytest


@pytest.mark.asyncio
async def test_create_project(client, project, homeowner_user):
    assert project["title"] == "Kitchen Remodel"
    assert project["owner_id"] == str(homeowner_user.id)
    assert project["status"] == "active"
    assert project["completion_percentage"] == 0


@pytest.mark.asyncio
async def test_create_project_validation_error(client, auth_headers):
    response = await client.post("/api/projects", headers=auth_headers, json={"title": "x"})
    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Invalid request data"
    assert any(e["field"] == "description" for e in data["errors"])


@pytest.mark.asyncio
async def test_visitor_cannot_create_project(client, visitor_headers):
    response = await client.post(
        "/api/projects",
        headers=visitor_headers,
        json={
            "title": "Deck",
            "description": "New deck",
            "project_type": "Deck",
            "budget_range": "$10k",
            "timeline": "1 month",
            "location": "Austin, TX",
        },
    )
    assert response.status_code == 403
    data = response.json()
    assert data["required_permission"] == "create_projects"
    assert data["user_role"] == "visitor"


@pytest.mark.asyncio
async def test_list_projects_only_own(client, project, auth_headers, other_headers):
    mine = await client.get("/api/projects", headers=auth_headers)
    assert mine.status_code == 200
    assert mine.json()["total"] == 1
    assert mine.json()["projects"][0]["id"] == project["id"]

    theirs = await client.get("/api/projects", headers=other_headers)
    assert theirs.json()["total"] == 0


@pytest.mark.asyncio
async def test_get_project_forbidden_for_stranger(client, project, other_headers):
    response = await client.get(f"/api/projects/{project['id']}", headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_can_view_any_project(client, project, admin_headers):
    response = await client.get(f"/api/projects/{project['id']}", headers=admin_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_update_project_records_activity(client, project, auth_headers):
    response = await client.patch(
        f"/api/projects/{project['id']}",
        headers=auth_headers,
        json={"status": "in_progress", "completion_percentage": 20},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_progress"
    assert response.json()["completion_percentage"] == 20

    updates = await client.get(f"/api/projects/{project['id']}/updates", headers=auth_headers)
    kinds = {u["update_type"] for u in updates.json()}
    assert {"status_change", "progress"} <= kinds


@pytest.mark.asyncio
async def test_add_note_update(client, project, auth_headers):
    response = await client.post(
        f"/api/projects/{project['id']}/updates",
        headers=auth_headers,
        json={"title": "Cabinets ordered"},
    )
    assert response.status_code == 201
    assert response.json()["update_type"] == "note"


@pytest.mark.asyncio
async def test_delete_project(client, project, auth_headers):
    response = await client.delete(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 200

    response = await client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_only_owner_can_delete(client, project, other_headers):
    response = await client.delete(f"/api/projects/{project['id']}", headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_project_estimate_empty(client, project, auth_headers):
    response = await client.get(f"/api/projects/{project['id']}/estimate", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() is None


@pytest.mark.asyncio
async def test_project_matches(client, project, auth_headers, contractor):
    response = await client.get(f"/api/projects/{project['id']}/matches", headers=auth_headers)
    assert response.status_code == 200
    matches = response.json()["matches"]
    assert len(matches) == 1
    assert matches[0]["contractor_id"] == str(contractor.id)
    assert matches[0]["match_score"] > 50
