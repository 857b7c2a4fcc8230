from conftest import CLASS_ID, OTHER_CLASS_ID, OTHER_STUDENT_ID, OTHER_TEACHER_ID, auth


def post_row(post_id, created_at, **overrides):
    row = {
        "id": post_id,
        "class_id": CLASS_ID,
        "title": "Notice",
        "message": "Bring your lab coats.",
        "type": "general",
        "teacher_id": "teacher-1",
        "created_at": created_at,
    }
    row.update(overrides)
    return row


def test_teacher_posts_to_own_class(client, db, teacher_headers):
    r = client.post("/posts/", json={
        "class_id": CLASS_ID,
        "title": "Field trip",
        "message": "Permission slips due Friday.",
        "type": "announcement",
    }, headers=teacher_headers)
    assert r.status_code == 201
    js = r.json()
    assert js["teacher_id"] == "teacher-1"
    assert js["type"] == "announcement"
    assert js["created_at"]
    assert len(db.rows("posts")) == 1


def test_post_defaults_to_general_and_needs_a_message(client, teacher_headers):
    r = client.post("/posts/", json={"class_id": CLASS_ID, "title": "Hi", "message": "Welcome"},
                    headers=teacher_headers)
    assert r.json()["type"] == "general"

    r = client.post("/posts/", json={"class_id": CLASS_ID, "title": "Hi", "message": "  "},
                    headers=teacher_headers)
    assert r.status_code == 422
    r = client.post("/posts/", json={"class_id": CLASS_ID, "title": "Hi", "message": "x", "type": "memo"},
                    headers=teacher_headers)
    assert r.status_code == 422


def test_only_a_teacher_of_the_class_may_post(client, db, teacher_headers, student_headers):
    body = {"class_id": OTHER_CLASS_ID, "title": "Hi", "message": "Welcome"}
    assert client.post("/posts/", json=body, headers=teacher_headers).status_code == 403
    body["class_id"] = CLASS_ID
    assert client.post("/posts/", json=body, headers=student_headers).status_code == 403
    body["class_id"] = "class-missing"
    assert client.post("/posts/", json=body, headers=teacher_headers).status_code == 404
    assert db.rows("posts") == []


def test_stream_is_newest_first_for_class_members(client, db, teacher_headers, student_headers, admin_headers):
    db.tables["posts"] = [
        post_row("p-old", "2024-01-01T08:00:00+00:00"),
        post_row("p-new", "2024-02-01T08:00:00+00:00", type="announcement"),
        post_row("p-other", "2024-03-01T08:00:00+00:00", class_id=OTHER_CLASS_ID, teacher_id=OTHER_TEACHER_ID),
    ]
    for headers in (student_headers, teacher_headers, admin_headers):
        r = client.get(f"/posts/class/{CLASS_ID}", headers=headers)
        assert r.status_code == 200
        assert [p["id"] for p in r.json()] == ["p-new", "p-old"]

    assert client.get(f"/posts/class/{CLASS_ID}", headers=auth(OTHER_STUDENT_ID)).status_code == 403
    assert client.get(f"/posts/class/{CLASS_ID}", headers=auth(OTHER_TEACHER_ID)).status_code == 403
    assert client.get(f"/posts/class/{CLASS_ID}").status_code == 401


def test_only_the_author_deletes_a_post(client, db, teacher_headers, student_headers):
    db.tables["posts"] = [post_row("p-1", "2024-01-01T08:00:00+00:00")]

    assert client.delete("/posts/p-1", headers=auth(OTHER_TEACHER_ID)).status_code == 403
    assert client.delete("/posts/p-1", headers=student_headers).status_code == 403
    assert client.delete("/posts/p-1", headers=teacher_headers).status_code == 200
    assert db.rows("posts") == []
    assert client.delete("/posts/p-1", headers=teacher_headers).status_code == 404
