import base64

import pytest

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()


@pytest.mark.asyncio
async def test_upload_photo(client, project, auth_headers, tmp_path):
    response = await client.post(
        f"/api/projects/{project['id']}/photos",
        headers=auth_headers,
        json={
            "file_name": "foundation.png",
            "data_url": DATA_URL,
            "caption": "Foundation pour complete",
            "category": "progress",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["caption"] == "Foundation pour complete"
    assert data["category"] == "progress"
    assert data["content_type"] == "image/png"
    assert data["size_bytes"] == len(PNG_BYTES)
    assert data["file_url"].startswith("/uploads/projects/")
    assert any(p.name == "foundation.png" for p in tmp_path.rglob("*"))


@pytest.mark.asyncio
async def test_upload_photo_rejects_non_image(client, project, auth_headers):
    response = await client.post(
        f"/api/projects/{project['id']}/photos",
        headers=auth_headers,
        json={"file_name": "notes.txt", "data_url": "data:text/plain;base64,aGVsbG8="},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_photos_paginated(client, project, auth_headers):
    for i in range(3):
        await client.post(
            f"/api/projects/{project['id']}/photos",
            headers=auth_headers,
            json={"file_name": f"photo_{i}.png", "data_url": DATA_URL},
        )

    response = await client.get(f"/api/projects/{project['id']}/photos", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert len(data["items"]) == 3
    assert data["page"] == 1


@pytest.mark.asyncio
async def test_batch_upload(client, project, auth_headers):
    photos = [
        {"file_name": f"batch_{i}.png", "data_url": DATA_URL, "category": "before"}
        for i in range(4)
    ]
    response = await client.post(
        f"/api/projects/{project['id']}/photos/batch",
        headers=auth_headers,
        json={"photos": photos},
    )
    assert response.status_code == 201
    assert response.json()["uploaded"] == 4

    filtered = await client.get(
        f"/api/projects/{project['id']}/photos",
        headers=auth_headers,
        params={"category": "before"},
    )
    assert filtered.json()["total"] == 4


@pytest.mark.asyncio
async def test_batch_upload_rejects_empty(client, project, auth_headers):
    response = await client.post(
        f"/api/projects/{project['id']}/photos/batch",
        headers=auth_headers,
        json={"photos": []},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_batch_upload_with_bad_payload_stores_nothing(
    client, project, auth_headers, tmp_path
):
    photos = [
        {"file_name": "good.png", "data_url": DATA_URL},
        {"file_name": "broken.png", "data_url": "data:image/png;base64,@@not-base64@@"},
    ]
    response = await client.post(
        f"/api/projects/{project['id']}/photos/batch",
        headers=auth_headers,
        json={"photos": photos},
    )
    assert response.status_code == 400
    assert not any(p.name == "good.png" for p in tmp_path.rglob("*"))


@pytest.mark.asyncio
async def test_update_and_delete_photo(client, project, auth_headers, other_headers):
    created = await client.post(
        f"/api/projects/{project['id']}/photos",
        headers=auth_headers,
        json={"file_name": "after.png", "data_url": DATA_URL},
    )
    photo_id = created.json()["id"]

    forbidden = await client.patch(
        f"/api/projects/photos/{photo_id}", headers=other_headers, json={"caption": "Mine"}
    )
    assert forbidden.status_code == 403

    updated = await client.patch(
        f"/api/projects/photos/{photo_id}",
        headers=auth_headers,
        json={"caption": "Finished", "category": "after"},
    )
    assert updated.json()["caption"] == "Finished"
    assert updated.json()["category"] == "after"

    deleted = await client.delete(f"/api/projects/photos/{photo_id}", headers=auth_headers)
    assert deleted.status_code == 200

    missing = await client.get(
        f"/api/projects/{project['id']}/photos/{photo_id}", headers=auth_headers
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_gallery_lists_own_photos(client, project, auth_headers, other_headers):
    await client.post(
        f"/api/projects/{project['id']}/photos",
        headers=auth_headers,
        json={"file_name": "gallery.png", "data_url": DATA_URL},
    )
    mine = await client.get("/api/gallery/photos", headers=auth_headers)
    assert len(mine.json()) == 1

    theirs = await client.get("/api/gallery/photos", headers=other_headers)
    assert theirs.json() == []
