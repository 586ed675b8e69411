import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from terrin.api import deps
from terrin.api.ws import manager
from terrin.common.events import queue_event


@pytest.fixture
def sent(monkeypatch):
    pushed = []

    async def fake_send(user_id, event, data):
        pushed.append((user_id, event, data))

    monkeypatch.setattr(manager, "send_to_user", fake_send)
    return pushed


@pytest.fixture
def real_get_db(test_engine, monkeypatch):
    factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(deps, "async_session_factory", factory)
    return deps.get_db


@pytest.mark.asyncio
async def test_events_wait_for_commit(real_get_db, sent):
    gen = real_get_db()
    session = await gen.__anext__()
    queue_event(session, ["user-1"], "message.created", {"content": "Hi"})
    assert sent == []

    with pytest.raises(StopAsyncIteration):
        await gen.__anext__()
    assert sent == [("user-1", "message.created", {"content": "Hi"})]


@pytest.mark.asyncio
async def test_events_dropped_on_rollback(real_get_db, sent):
    gen = real_get_db()
    session = await gen.__anext__()
    queue_event(session, ["user-1"], "message.created", {"content": "Hi"})

    with pytest.raises(RuntimeError):
        await gen.athrow(RuntimeError("commit blocked"))
    assert sent == []
    assert "pending_events" not in session.info


@pytest.mark.asyncio
async def test_message_pushed_to_other_participants(
    client, auth_headers, professional_user, homeowner_user, sent
):
    conversation = await client.post(
        "/api/conversations",
        headers=auth_headers,
        json={"participants": [str(professional_user.id)]},
    )
    resp = await client.post(
        f"/api/conversations/{conversation.json()['id']}/messages",
        headers=auth_headers,
        json={"content": "Tile arrives Friday"},
    )
    assert resp.status_code == 201

    assert [(user_id, event) for user_id, event, _ in sent] == [
        (str(professional_user.id), "message.created")
    ]
    assert sent[0][2]["content"] == "Tile arrives Friday"
