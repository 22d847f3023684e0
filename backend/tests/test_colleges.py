"""Tests for the college kanban endpoints."""


async def _add(client, name, status=None, position=None) -> dict:
    payload = {"name": name}
    if status is not None:
        payload["status"] = status
    if position is not None:
        payload["position"] = position
    response = await client.post("/api/colleges", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def test_add_defaults_to_end_of_researching(auth_client):
    first = await _add(auth_client, "MIT")
    second = await _add(auth_client, "Caltech")

    assert first["status"] == "researching"
    assert first["position"] == 1
    assert second["position"] == 2
    assert "userId" in first and "createdAt" in first


async def test_positions_are_per_column(auth_client):
    await _add(auth_client, "MIT", "applying")
    college = await _add(auth_client, "Reed", "not_applying")
    assert college["position"] == 1


async def test_explicit_position_is_kept(auth_client):
    college = await _add(auth_client, "MIT", "applying", position=0)
    assert college["position"] == 0


async def test_add_rejects_bad_input(auth_client):
    response = await auth_client.post("/api/colleges", json={"name": "MIT", "status": "maybe"})
    assert response.status_code == 400

    response = await auth_client.post("/api/colleges", json={"name": "MIT", "position": -1})
    assert response.status_code == 400

    response = await auth_client.post("/api/colleges", json={"name": "MIT", "position": "3"})
    assert response.status_code == 400

    response = await auth_client.post("/api/colleges", json={"name": "   "})
    assert response.status_code == 400


async def test_list_orders_by_position_within_status(auth_client):
    await _add(auth_client, "B", "applying", position=5)
    await _add(auth_client, "A", "applying", position=2)
    await _add(auth_client, "C", "researching")

    response = await auth_client.get("/api/colleges/status/applying")
    assert response.status_code == 200
    assert [c["name"] for c in response.json()] == ["A", "B"]

    response = await auth_client.get("/api/colleges")
    assert {c["name"] for c in response.json()} == {"A", "B", "C"}


async def test_list_by_unknown_status_is_400(auth_client):
    response = await auth_client.get("/api/colleges/status/dreaming")
    assert response.status_code == 400


async def test_update_status_appends_to_new_column(auth_client):
    await _add(auth_client, "Stanford", "applying")
    await _add(auth_client, "Yale", "applying")
    moving = await _add(auth_client, "Brown", "researching")

    response = await auth_client.patch(f"/api/colleges/{moving['id']}/status", json={"status": "applying"})
    assert response.status_code == 200
    assert response.json()["status"] == "applying"
    assert response.json()["position"] == 3

    # Siblings keep their positions
    applying = (await auth_client.get("/api/colleges/status/applying")).json()
    assert [(c["name"], c["position"]) for c in applying] == [("Stanford", 1), ("Yale", 2), ("Brown", 3)]


async def test_update_position(auth_client):
    college = await _add(auth_client, "Duke")

    response = await auth_client.patch(f"/api/colleges/{college['id']}/position", json={"position": 7})
    assert response.status_code == 200
    assert response.json()["position"] == 7

    response = await auth_client.patch(f"/api/colleges/{college['id']}/position", json={"position": -2})
    assert response.status_code == 400

    response = await auth_client.patch(f"/api/colleges/{college['id']}/position", json={"position": 1.5})
    assert response.status_code == 400


async def test_update_missing_college_is_404(auth_client):
    response = await auth_client.patch("/api/colleges/9999/status", json={"status": "applying"})
    assert response.status_code == 404
    assert response.json()["detail"] == "College not found"


async def test_other_users_college_is_forbidden(auth_client, other_client):
    college = await _add(auth_client, "Rice")

    response = await other_client.patch(f"/api/colleges/{college['id']}/position", json={"position": 3})
    assert response.status_code == 403

    response = await other_client.delete(f"/api/colleges/{college['id']}")
    assert response.status_code == 403

    assert (await other_client.get("/api/colleges")).json() == []


async def test_delete(auth_client):
    college = await _add(auth_client, "Tufts")

    response = await auth_client.delete(f"/api/colleges/{college['id']}")
    assert response.json() == {"success": True}
    assert (await auth_client.get("/api/colleges")).json() == []

    response = await auth_client.delete(f"/api/colleges/{college['id']}")
    assert response.status_code == 200
    assert response.json() == {"success": False}
