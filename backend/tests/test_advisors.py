"""Tests for advisors, chat sharing and the share-link view."""

from uuid import uuid4

from app.errors import UpstreamError
from app.services.advisors import FALLBACK_DESCRIPTION, FALLBACK_REASON


async def _advisor(client, name="Ms. Rivera", type="School counselor") -> dict:
    response = await client.post("/api/advisors", json={"name": name, "type": type})
    assert response.status_code == 201, response.text
    return response.json()


async def _session(client, title="Essay help") -> dict:
    response = await client.post("/api/chat/sessions", json={"title": title})
    assert response.status_code == 200, response.text
    return response.json()


async def test_create_and_list_advisors(auth_client):
    first = await _advisor(auth_client, "Mom", "Parent")
    second = await _advisor(auth_client)

    assert first["isActive"] is True
    assert first["shareToken"] != second["shareToken"]

    listed = (await auth_client.get("/api/advisors")).json()
    assert [a["id"] for a in listed] == [second["id"], first["id"]]


async def test_create_advisor_rejects_unknown_type(auth_client):
    response = await auth_client.post("/api/advisors", json={"name": "Uncle Bob", "type": "Uncle"})
    assert response.status_code == 400


async def test_share_and_unshare_chats(auth_client):
    advisor = await _advisor(auth_client)
    one = await _session(auth_client, "One")
    two = await _session(auth_client, "Two")

    response = await auth_client.post(
        f"/api/advisors/{advisor['id']}/share-chats",
        json={"sessionIds": [one["id"], two["id"]]},
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "sharedSessionIds": sorted([one["id"], two["id"]])}

    # Sharing again is idempotent
    response = await auth_client.post(
        f"/api/advisors/{advisor['id']}/share-chats",
        json={"session_ids": [one["id"]]},
    )
    assert len(response.json()["sharedSessionIds"]) == 2

    response = await auth_client.post(
        f"/api/advisors/{advisor['id']}/unshare-chats",
        json={"sessionIds": [one["id"]]},
    )
    assert response.json()["sharedSessionIds"] == [two["id"]]

    shared = (await auth_client.get(f"/api/advisors/{advisor['id']}/shared-chats")).json()
    assert shared == [two["id"]]


async def test_share_requires_session_ids(auth_client):
    advisor = await _advisor(auth_client)
    response = await auth_client.post(f"/api/advisors/{advisor['id']}/share-chats", json={"sessionIds": []})
    assert response.status_code == 400


async def test_cannot_share_another_users_session(auth_client, other_client):
    advisor = await _advisor(auth_client)
    foreign = await _session(other_client)

    response = await auth_client.post(
        f"/api/advisors/{advisor['id']}/share-chats",
        json={"sessionIds": [foreign["id"]]},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "One or more sessions are not accessible"


async def test_other_users_advisor_looks_missing(auth_client, other_client):
    advisor = await _advisor(auth_client)

    response = await other_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": False})
    assert response.status_code == 404

    response = await other_client.get(f"/api/advisors/{advisor['id']}/shared-chats")
    assert response.status_code == 404

    response = await other_client.delete(f"/api/advisors/{advisor['id']}")
    assert response.json() == {"success": False}


async def test_shared_view_exposes_only_shared_data(auth_client, client):
    await auth_client.post("/api/user/profile-description", json={"profileDescription": "Wants a small college."})
    await auth_client.post("/api/colleges", json={"name": "Williams", "status": "researching"})
    await auth_client.post("/api/colleges", json={"name": "Amherst", "status": "applying"})
    advisor = await _advisor(auth_client)
    shared = await _session(auth_client, "Shared")
    await _session(auth_client, "Private")
    await auth_client.post(f"/api/advisors/{advisor['id']}/share-chats", json={"sessionIds": [shared["id"]]})

    response = await client.get(f"/api/shared/{advisor['shareToken']}")
    assert response.status_code == 200
    view = response.json()

    assert view["advisor"] == {"name": "Ms. Rivera", "type": "School counselor"}
    assert view["user"] == {"username": "alice", "profileDescription": "Wants a small college."}
    assert [c["name"] for c in view["colleges"]] == ["Amherst", "Williams"]
    assert [s["title"] for s in view["sharedChatSessions"]] == ["Shared"]
    assert "onboarding" not in view["user"]
    assert "passwordHash" not in view["user"]


async def test_shared_view_unknown_or_malformed_token(client):
    assert (await client.get(f"/api/shared/{uuid4()}")).status_code == 404
    assert (await client.get("/api/shared/not-a-token")).status_code == 404


async def test_deactivated_link_stops_working(auth_client, client):
    advisor = await _advisor(auth_client)
    token = advisor["shareToken"]
    assert (await client.get(f"/api/shared/{token}")).status_code == 200

    response = await auth_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": False})
    assert response.json()["isActive"] is False
    assert (await client.get(f"/api/shared/{token}")).status_code == 404

    await auth_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": True})
    assert (await client.get(f"/api/shared/{token}")).status_code == 200


async def test_reactivation_keeps_token_and_shared_chats(auth_client, client):
    advisor = await _advisor(auth_client)
    token = advisor["shareToken"]
    session = await _session(auth_client, "College list")
    await auth_client.post(f"/api/advisors/{advisor['id']}/share-chats", json={"sessionIds": [session["id"]]})

    await auth_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": False})
    response = await auth_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": True})
    assert response.json()["isActive"] is True
    assert response.json()["shareToken"] == token

    view = (await client.get(f"/api/shared/{token}")).json()
    assert [s["id"] for s in view["sharedChatSessions"]] == [session["id"]]
    assert (await auth_client.get(f"/api/advisors/{advisor['id']}/shared-chats")).json() == [session["id"]]


async def test_status_update_requires_boolean(auth_client):
    advisor = await _advisor(auth_client)
    response = await auth_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": "no"})
    assert response.status_code == 400


async def test_shared_messages_only_for_shared_sessions(auth_client, client):
    advisor = await _advisor(auth_client)
    sent = await auth_client.post("/api/chat/messages", json={"content": "Which schools have good co-ops?"})
    session_id = sent.json()["sessionId"]
    token = advisor["shareToken"]

    response = await client.get(f"/api/shared/{token}/chat/{session_id}/messages")
    assert response.status_code == 200
    assert response.json() == []

    await auth_client.post(f"/api/advisors/{advisor['id']}/share-chats", json={"sessionIds": [session_id]})
    messages = (await client.get(f"/api/shared/{token}/chat/{session_id}/messages")).json()
    assert [m["sender"] for m in messages] == ["user", "ai"]


async def test_send_message_can_share_with_advisors(auth_client):
    advisor = await _advisor(auth_client)
    response = await auth_client.post(
        "/api/chat/messages",
        json={"content": "Hello", "shareWithAdvisorIds": [advisor["id"]]},
    )
    session_id = response.json()["sessionId"]

    shared = (await auth_client.get(f"/api/advisors/{advisor['id']}/shared-chats")).json()
    assert shared == [session_id]


async def test_deleting_advisor_removes_shares(auth_client):
    advisor = await _advisor(auth_client)
    session = await _session(auth_client)
    await auth_client.post(f"/api/advisors/{advisor['id']}/share-chats", json={"sessionIds": [session["id"]]})

    response = await auth_client.delete(f"/api/advisors/{advisor['id']}")
    assert response.json() == {"success": True}
    assert (await auth_client.get("/api/advisors")).json() == []
    # The session itself survives
    assert (await auth_client.get(f"/api/chat/sessions/{session['id']}/messages")).status_code == 200


async def test_advisor_recommendation_uses_ai_details(auth_client, client, fake_llm):
    advisor = await _advisor(auth_client)
    fake_llm.completions.append(
        '{"description": "Small liberal arts college.", "reason": "Great writing program.", "acceptanceRate": "12%"}'
    )

    response = await client.post(
        f"/api/shared/{advisor['shareToken']}/recommendations",
        json={"name": "Kenyon College", "advisorNotes": "Visit in the fall"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["description"] == "Small liberal arts college."
    assert body["acceptanceRate"] == 12
    assert body["recommendedBy"] == "Ms. Rivera"
    assert body["advisorNotes"] == "Visit in the fall"

    listed = (await auth_client.get("/api/recommendations")).json()
    assert [r["name"] for r in listed] == ["Kenyon College"]


async def test_advisor_recommendation_falls_back_when_ai_fails(auth_client, client, fake_llm):
    advisor = await _advisor(auth_client)
    fake_llm.completions.append(UpstreamError())

    response = await client.post(
        f"/api/shared/{advisor['shareToken']}/recommendations",
        json={"name": "Oberlin"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["description"] == FALLBACK_DESCRIPTION
    assert body["reason"] == FALLBACK_REASON
    assert body["acceptanceRate"] is None


async def test_advisor_recommendation_validation(auth_client, client):
    advisor = await _advisor(auth_client)

    response = await client.post(f"/api/shared/{advisor['shareToken']}/recommendations", json={"name": "  "})
    assert response.status_code == 400
    assert response.json()["detail"] == "College name is required"

    await auth_client.patch(f"/api/advisors/{advisor['id']}/status", json={"isActive": False})
    response = await client.post(f"/api/shared/{advisor['shareToken']}/recommendations", json={"name": "Oberlin"})
    assert response.status_code == 404
