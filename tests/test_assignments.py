from conftest import CLASS_ID, OTHER_CLASS_ID, STUDENT_ID, TEACHER_ID, add_assignment, auth


def form(**overrides):
    data = {
        "title": "Algebra worksheet",
        "subject": "Math",
        "class_id": CLASS_ID,
        "due_date": "2099-05-01",
        "points": "50",
        "priority": "high",
    }
    data.update(overrides)
    return data


def test_create_with_material(client, db, teacher_headers):
    r = client.post(
        "/assignments/",
        data=form(),
        files={"material": ("worksheet.pdf", b"%PDF-1.4 body", "application/pdf")},
        headers=teacher_headers,
    )
    assert r.status_code == 201
    js = r.json()
    assert js["status"] == "pending"
    assert js["effective_status"] == "pending"
    assert js["submissions_count"] == 0
    assert js["teacher_id"] == TEACHER_ID
    assert js["material"].startswith("https://storage.test/")
    assert "assignment-materials/" in js["material"]
    assert not js["material"].endswith("?")
    assert len(db.storage.files) == 1
    assert len(db.rows("assignments")) == 1


def test_upload_failure_writes_nothing(client, db, teacher_headers):
    db.storage.fail = True
    r = client.post(
        "/assignments/",
        data=form(),
        files={"material": ("worksheet.pdf", b"data", "application/pdf")},
        headers=teacher_headers,
    )
    assert r.status_code == 502
    assert r.json()["error"] == "upload_failed"
    assert db.rows("assignments") == []


def test_create_requires_title_and_valid_date(client, db, teacher_headers):
    r = client.post("/assignments/", data=form(title="   "), headers=teacher_headers)
    assert r.status_code == 422
    r = client.post("/assignments/", data=form(due_date="tomorrow-ish"), headers=teacher_headers)
    assert r.status_code == 422
    assert db.rows("assignments") == []


def test_create_for_unknown_or_foreign_class(client, teacher_headers):
    r = client.post("/assignments/", data=form(class_id="nope"), headers=teacher_headers)
    assert r.status_code == 404
    r = client.post("/assignments/", data=form(class_id=OTHER_CLASS_ID), headers=teacher_headers)
    assert r.status_code == 403


def test_students_cannot_create(client, student_headers):
    r = client.post("/assignments/", data=form(), headers=student_headers)
    assert r.status_code == 403


def test_edit_keeps_material(client, db, teacher_headers):
    row = add_assignment(db, material="https://storage.test/school-files/assignment-materials/1_a.pdf")
    r = client.patch(f"/assignments/{row['id']}", json={"due_date": "2099-06-01", "points": 80},
                     headers=teacher_headers)
    assert r.status_code == 200
    js = r.json()
    assert js["due_date"] == "2099-06-01"
    assert js["points"] == 80
    assert js["material"] == row["material"]
    assert js["created_at"].startswith("2024-02-01")


def test_edit_rejects_unknown_fields(client, db, teacher_headers):
    row = add_assignment(db)
    r = client.patch(f"/assignments/{row['id']}", json={"teacher_id": "someone-else"}, headers=teacher_headers)
    assert r.status_code == 422
    assert db.rows("assignments")[0]["teacher_id"] == TEACHER_ID


def test_only_owner_can_edit(client, db):
    row = add_assignment(db)
    r = client.patch(f"/assignments/{row['id']}", json={"title": "Hijacked"}, headers=auth("teacher-2"))
    assert r.status_code == 403


def test_replace_material(client, db, teacher_headers):
    row = add_assignment(db, material="https://storage.test/old.pdf")
    r = client.put(
        f"/assignments/{row['id']}/material",
        files={"material": ("new.pdf", b"new", "application/pdf")},
        headers=teacher_headers,
    )
    assert r.status_code == 200
    assert r.json()["material"] != "https://storage.test/old.pdf"
    assert "new.pdf" in r.json()["material"]


def test_teacher_list_derives_overdue_and_filters(client, db, teacher_headers):
    add_assignment(db, title="Old essay", description="Compare two sonnets", due_date="2000-01-01",
                   created_at="2024-01-01T00:00:00+00:00")
    add_assignment(db, title="Future quiz", subject="Math", created_at="2024-03-01T00:00:00+00:00")

    r = client.get("/assignments/teacher", headers=teacher_headers)
    assert r.status_code == 200
    assert [a["title"] for a in r.json()] == ["Future quiz", "Old essay"]
    assert [a["effective_status"] for a in r.json()] == ["pending", "overdue"]

    r = client.get("/assignments/teacher", params={"status": "overdue"}, headers=teacher_headers)
    assert [a["title"] for a in r.json()] == ["Old essay"]

    r = client.get("/assignments/teacher", params={"search": "math"}, headers=teacher_headers)
    assert [a["title"] for a in r.json()] == ["Future quiz"]

    r = client.get("/assignments/teacher", params={"search": "Sonnets"}, headers=teacher_headers)
    assert [a["title"] for a in r.json()] == ["Old essay"]


def test_student_sees_enrolled_classes_only(client, db, student_headers):
    add_assignment(db, title="Mine", due_date="2099-02-01")
    add_assignment(db, title="Earlier", due_date="2099-01-01")
    add_assignment(db, title="Not mine", class_id=OTHER_CLASS_ID, teacher_id="teacher-2")

    r = client.get("/assignments/student", headers=student_headers)
    assert r.status_code == 200
    js = r.json()
    assert [a["title"] for a in js] == ["Earlier", "Mine"]
    assert all(a["action"] == "submit" and a["submission"] is None for a in js)


def test_student_cannot_open_foreign_assignment(client, db, student_headers):
    row = add_assignment(db, class_id=OTHER_CLASS_ID, teacher_id="teacher-2")
    r = client.get(f"/assignments/{row['id']}", headers=student_headers)
    assert r.status_code == 403


def test_delete_cascades_to_submissions(client, db, teacher_headers):
    row = add_assignment(db)
    db.tables["submissions"] = [
        {"id": "s1", "assignment_id": row["id"], "student_id": STUDENT_ID, "content": "a",
         "attachments": [], "submitted_at": "2024-02-02T00:00:00+00:00", "status": "submitted"},
        {"id": "s2", "assignment_id": "other", "student_id": STUDENT_ID, "content": "b",
         "attachments": [], "submitted_at": "2024-02-02T00:00:00+00:00", "status": "submitted"},
    ]
    r = client.delete(f"/assignments/{row['id']}", headers=teacher_headers)
    assert r.status_code == 200
    assert r.json()["deleted_submissions"] == 1
    assert db.rows("assignments") == []
    assert [s["id"] for s in db.rows("submissions")] == ["s2"]


def test_admin_can_delete_any_assignment(client, db, admin_headers):
    row = add_assignment(db, teacher_id="teacher-2", class_id=OTHER_CLASS_ID)
    assert client.delete(f"/assignments/{row['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/assignments/{row['id']}", headers=admin_headers).status_code == 404
