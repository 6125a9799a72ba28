def send(client, headers, **body):
    return client.post("/api/notifications", headers=headers, json={"title": "Heads up", **body})


def test_inbox_only_shows_addressed_notifications(client, admin, student, premium_student):
    h = admin["headers"]
    send(client, h, to_role="student", message="Exam on Friday")
    send(client, h, to_user_id=student["id"], message="See me")
    send(client, h, to_role="admin", message="Staff meeting")

    sara = client.get("/api/notifications/me", headers=student["headers"]).json()
    assert [n["message"] for n in sara["data"]] == ["See me", "Exam on Friday"]
    paul = client.get("/api/notifications/me", headers=premium_student["headers"]).json()
    assert [n["message"] for n in paul["data"]] == ["Exam on Friday"]


def test_mark_read_returns_confirmed_state(client, admin, student):
    note = send(client, admin["headers"], to_user_id=student["id"]).json()
    assert note["is_read"] is False

    first = client.patch(f"/api/notifications/{note['id']}/read", headers=student["headers"])
    assert first.status_code == 200
    assert first.json()["is_read"] is True
    assert first.json()["read_at"] is not None

    second = client.patch(f"/api/notifications/{note['id']}/read", headers=student["headers"]).json()
    assert second["read_at"] == first.json()["read_at"]

    unread = client.get("/api/notifications/me", params={"unread_only": True}, headers=student["headers"]).json()
    assert unread["total"] == 0


def test_cannot_read_someone_elses_notification(client, admin, student, premium_student):
    note = send(client, admin["headers"], to_user_id=student["id"]).json()
    resp = client.patch(f"/api/notifications/{note['id']}/read", headers=premium_student["headers"])
    assert resp.status_code == 403
    assert client.patch("/api/notifications/999/read", headers=student["headers"]).status_code == 404


def test_only_admins_send(client, student):
    assert send(client, student["headers"], to_role="student").status_code == 403


def test_new_content_is_announced(client, admin, student):
    client.post("/api/notes", headers=admin["headers"], json={"title": "Vectors"})
    client.post("/api/lectures", headers=admin["headers"],
                json={"title": "Vectors intro", "type": "link", "link": "https://v/3"})
    inbox = client.get("/api/notifications/me", headers=student["headers"]).json()["data"]
    assert [n["type"] for n in inbox] == ["lecture", "note"]
