import pytest


async def _add_milestone(client, headers, project_id, title, weight):
    resp = await client.post(
        f"/api/projects/{project_id}/milestones",
        headers=headers,
        json={"title": title, "progress_weight": weight},
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_and_list_milestones(client, project, auth_headers):
    await _add_milestone(client, auth_headers, project["id"], "Demo", 10)
    await _add_milestone(client, auth_headers, project["id"], "Cabinets", 30)

    response = await client.get(f"/api/projects/{project['id']}/milestones", headers=auth_headers)
    assert response.status_code == 200
    titles = [m["title"] for m in response.json()]
    assert titles == ["Demo", "Cabinets"]


@pytest.mark.asyncio
async def test_completing_milestone_updates_project(client, project, auth_headers):
    await _add_milestone(client, auth_headers, project["id"], "Demo", 10)
    cabinets = await _add_milestone(client, auth_headers, project["id"], "Cabinets", 30)

    response = await client.patch(
        f"/api/projects/milestones/{cabinets['id']}",
        headers=auth_headers,
        json={"status": "completed"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["completed_date"] is not None

    project_resp = await client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert project_resp.json()["completion_percentage"] == 75

    updates = await client.get(f"/api/projects/{project['id']}/updates", headers=auth_headers)
    assert any(u["update_type"] == "milestone" for u in updates.json())


@pytest.mark.asyncio
async def test_delete_milestone_recomputes(client, project, auth_headers):
    demo = await _add_milestone(client, auth_headers, project["id"], "Demo", 10)
    cabinets = await _add_milestone(client, auth_headers, project["id"], "Cabinets", 30)
    await client.patch(
        f"/api/projects/milestones/{demo['id']}",
        headers=auth_headers,
        json={"status": "completed"},
    )

    response = await client.delete(f"/api/projects/milestones/{cabinets['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["completion_percentage"] == 100


@pytest.mark.asyncio
async def test_stranger_cannot_edit_milestone(client, project, auth_headers, other_headers):
    demo = await _add_milestone(client, auth_headers, project["id"], "Demo", 10)
    response = await client.patch(
        f"/api/projects/milestones/{demo['id']}",
        headers=other_headers,
        json={"status": "completed"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_generate_timeline(client, project, auth_headers):
    response = await client.post(
        f"/api/projects/{project['id']}/generate-timeline", headers=auth_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["milestones_created"] == 6
    assert len(data["milestones"]) == 6
    assert sum(m["progress_weight"] for m in data["milestones"]) == 100
    assert data["completion_percentage"] == 0
    assert [m["order"] for m in data["milestones"]] == [1, 2, 3, 4, 5, 6]
