def open_direct_chat(client, headers, other_id: int):
    return client.post("/chat/chats", headers=headers, json={"type": "DIRECT", "participant_ids": [other_id]})


def test_direct_chat_is_reused(client, login, seed_data):
    tutor = login("tutor1@example.com")

    r1 = open_direct_chat(client, tutor, seed_data["student"])
    assert r1.status_code == 201, r1.text
    chat = r1.json()
    assert chat["type"] == "DIRECT"
    assert sorted(p["id"] for p in chat["participants"]) == sorted([seed_data["tutor"], seed_data["student"]])

    # the other side opening the same conversation gets the existing chat
    r2 = open_direct_chat(client, login("student1@example.com"), seed_data["tutor"])
    assert r2.status_code == 200
    assert r2.json()["id"] == chat["id"]


def test_chat_validation(client, login, seed_data):
    tutor = login("tutor1@example.com")

    r = open_direct_chat(client, tutor, 99999)
    assert r.status_code == 404

    r = open_direct_chat(client, tutor, seed_data["tutor"])
    assert r.status_code == 400

    r = client.post(
        "/chat/chats",
        headers=tutor,
        json={"type": "GROUP", "participant_ids": [seed_data["student"], seed_data["student2"]]},
    )
    assert r.status_code == 400


def test_group_chat(client, login, seed_data):
    tutor = login("tutor1@example.com")
    r = client.post(
        "/chat/chats",
        headers=tutor,
        json={
            "type": "GROUP",
            "name": "IELTS evening group",
            "participant_ids": [seed_data["student"], seed_data["student2"]],
        },
    )
    assert r.status_code == 201, r.text
    assert len(r.json()["participants"]) == 3


def test_messages_and_unread_counts(client, login, seed_data):
    tutor = login("tutor1@example.com")
    chat_id = open_direct_chat(client, tutor, seed_data["student"]).json()["id"]

    for text in ("Welcome!", "Homework is on page 12"):
        r = client.post(f"/chat/chats/{chat_id}/messages", headers=tutor, json={"content": text})
        assert r.status_code == 201, r.text

    student = login("student1@example.com")
    chats = client.get("/chat/chats", headers=student).json()
    assert chats[0]["id"] == chat_id
    assert chats[0]["unread_count"] == 2
    assert chats[0]["last_message"]["content"] == "Homework is on page 12"

    # the sender has nothing unread
    assert client.get("/chat/chats", headers=tutor).json()[0]["unread_count"] == 0

    r = client.post(f"/chat/chats/{chat_id}/read", headers=student)
    assert r.status_code == 204
    assert client.get("/chat/chats", headers=student).json()[0]["unread_count"] == 0


def test_message_paging(client, login, seed_data):
    tutor = login("tutor1@example.com")
    chat_id = open_direct_chat(client, tutor, seed_data["student"]).json()["id"]
    ids = [
        client.post(f"/chat/chats/{chat_id}/messages", headers=tutor, json={"content": f"m{i}"}).json()["id"]
        for i in range(5)
    ]

    r = client.get(f"/chat/chats/{chat_id}/messages", headers=tutor, params={"limit": 2})
    assert [m["content"] for m in r.json()] == ["m3", "m4"]

    r = client.get(
        f"/chat/chats/{chat_id}/messages",
        headers=tutor,
        params={"limit": 2, "before_id": ids[3]},
    )
    assert [m["content"] for m in r.json()] == ["m1", "m2"]

    r = client.get(f"/chat/chats/{chat_id}/messages", headers=tutor, params={"limit": 101})
    assert r.status_code == 400


def test_outsider_cannot_read_or_post(client, login, seed_data):
    chat_id = open_direct_chat(client, login("tutor1@example.com"), seed_data["student"]).json()["id"]
    outsider = login("student2@example.com")

    assert client.get(f"/chat/chats/{chat_id}/messages", headers=outsider).status_code == 403
    r = client.post(f"/chat/chats/{chat_id}/messages", headers=outsider, json={"content": "hi"})
    assert r.status_code == 403


def test_reply_must_stay_in_chat(client, login, seed_data):
    tutor = login("tutor1@example.com")
    chat_a = open_direct_chat(client, tutor, seed_data["student"]).json()["id"]
    chat_b = open_direct_chat(client, tutor, seed_data["student2"]).json()["id"]

    original = client.post(f"/chat/chats/{chat_a}/messages", headers=tutor, json={"content": "question"}).json()

    r = client.post(
        f"/chat/chats/{chat_a}/messages",
        headers=tutor,
        json={"content": "answer", "reply_to_id": original["id"]},
    )
    assert r.status_code == 201
    assert r.json()["reply_to_id"] == original["id"]

    r = client.post(
        f"/chat/chats/{chat_b}/messages",
        headers=tutor,
        json={"content": "wrong place", "reply_to_id": original["id"]},
    )
    assert r.status_code == 400


def test_edit_and_delete_own_message(client, login, seed_data):
    tutor = login("tutor1@example.com")
    chat_id = open_direct_chat(client, tutor, seed_data["student"]).json()["id"]
    message = client.post(f"/chat/chats/{chat_id}/messages", headers=tutor, json={"content": "tpyo"}).json()

    student = login("student1@example.com")
    r = client.patch(f"/chat/messages/{message['id']}", headers=student, json={"content": "hacked"})
    assert r.status_code == 403

    r = client.patch(f"/chat/messages/{message['id']}", headers=tutor, json={"content": "typo"})
    assert r.status_code == 200
    assert r.json()["content"] == "typo"
    assert r.json()["is_edited"] is True

    r = client.delete(f"/chat/messages/{message['id']}", headers=tutor)
    assert r.status_code == 200
    assert r.json()["is_deleted"] is True
    assert r.json()["content"] == ""

    r = client.patch(f"/chat/messages/{message['id']}", headers=tutor, json={"content": "again"})
    assert r.status_code == 400


def test_find_user_by_email(client, login):
    student = login("student1@example.com")
    r = client.get("/chat/find-user", headers=student, params={"email": " Tutor1@Example.com "})
    assert r.status_code == 200
    assert r.json()["role"] == "TUTOR"

    r = client.get("/chat/find-user", headers=student, params={"email": "ghost@example.com"})
    assert r.status_code == 404


def test_forward_message(client, login, seed_data):
    tutor = login("tutor1@example.com")
    chat_a = open_direct_chat(client, tutor, seed_data["student"]).json()["id"]
    chat_b = open_direct_chat(client, tutor, seed_data["student2"]).json()["id"]
    original = client.post(f"/chat/chats/{chat_a}/messages", headers=tutor, json={"content": "Mock test on Friday"})
    original = original.json()

    r = client.post(f"/chat/messages/{original['id']}/forward", headers=tutor, json={"target_chat_id": chat_b})
    assert r.status_code == 201, r.text
    assert r.json()["chat_id"] == chat_b
    assert r.json()["content"] == "Mock test on Friday"
    assert r.json()["sender_id"] == seed_data["tutor"]

    r = client.post(
        f"/chat/messages/{original['id']}/forward",
        headers=tutor,
        json={"target_chat_id": chat_b, "content": "FYI: Mock test on Friday"},
    )
    assert r.json()["content"] == "FYI: Mock test on Friday"

    student2 = login("student2@example.com")
    assert client.get("/chat/chats", headers=student2).json()[0]["unread_count"] == 2


def test_forward_needs_membership_in_both_chats(client, login, seed_data):
    tutor = login("tutor1@example.com")
    chat_a = open_direct_chat(client, tutor, seed_data["student"]).json()["id"]
    message = client.post(f"/chat/chats/{chat_a}/messages", headers=tutor, json={"content": "hi"}).json()

    student2 = login("student2@example.com")
    chat_b = open_direct_chat(client, student2, seed_data["tutor2"]).json()["id"]

    # not in the source chat
    r = client.post(f"/chat/messages/{message['id']}/forward", headers=student2, json={"target_chat_id": chat_b})
    assert r.status_code == 403

    # not in the target chat
    r = client.post(f"/chat/messages/{message['id']}/forward", headers=tutor, json={"target_chat_id": chat_b})
    assert r.status_code == 403

    r = client.post("/chat/messages/99999/forward", headers=tutor, json={"target_chat_id": chat_a})
    assert r.status_code == 404

    r = client.post(f"/chat/messages/{message['id']}/forward", headers=tutor, json={"target_chat_id": 99999})
    assert r.status_code == 404
