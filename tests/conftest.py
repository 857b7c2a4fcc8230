import copy
import uuid
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from schoolportal.core.session_cache import create_session
from schoolportal.db.supabase import get_supabase
from schoolportal.integrations.google_calendar import CalendarEvent, get_calendar_provider
from schoolportal.main import app


# -------------------------
# In-memory Supabase double
# -------------------------
class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.orders = []
        self.row_limit = None
        self.want_count = False

    def select(self, columns="*", count=None):
        self.op = "select"
        self.want_count = count == "exact"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload):
        self.op, self.payload = "upsert", payload
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def contains(self, column, values):
        self.filters.append(lambda row: all(v in (row.get(column) or []) for v in values))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        if (self.table, self.op) in self.db.failures:
            raise Exception(f"{self.table} {self.op} failed")

        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "select":
            found = [r for r in rows if self._matches(r)]
            for column, desc in reversed(self.orders):
                present = [r for r in found if r.get(column) is not None]
                missing = [r for r in found if r.get(column) is None]
                found = sorted(present, key=lambda r: r[column], reverse=desc) + missing
            if self.row_limit is not None:
                found = found[:self.row_limit]
            return SimpleNamespace(
                data=copy.deepcopy(found),
                count=len(found) if self.want_count else None,
            )

        if self.op in ("insert", "upsert"):
            new_rows = self.payload if isinstance(self.payload, list) else [self.payload]
            written = []
            for new in new_rows:
                new = copy.deepcopy(new)
                new.setdefault("id", str(uuid.uuid4()))
                existing = next((r for r in rows if r.get("id") == new["id"]), None)
                if existing is not None and self.op == "upsert":
                    existing.update(new)
                    written.append(existing)
                else:
                    rows.append(new)
                    written.append(new)
            return SimpleNamespace(data=copy.deepcopy(written), count=None)

        if self.op == "update":
            changed = [r for r in rows if self._matches(r)]
            for r in changed:
                r.update(copy.deepcopy(self.payload))
            return SimpleNamespace(data=copy.deepcopy(changed), count=None)

        removed = [r for r in rows if self._matches(r)]
        self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
        return SimpleNamespace(data=copy.deepcopy(removed), count=None)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name

    def upload(self, path, content, options=None):
        if self.storage.fail:
            raise Exception("storage unavailable")
        self.storage.files[path] = content
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}?"


class FakeStorage:
    def __init__(self):
        self.files = {}
        self.fail = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuthAdmin:
    def __init__(self, auth):
        self.auth = auth

    def create_user(self, attributes):
        email = attributes["email"]
        if email in self.auth.users:
            raise Exception("User already registered")
        user_id = str(uuid.uuid4())
        self.auth.users[email] = (user_id, attributes["password"])
        return SimpleNamespace(user=SimpleNamespace(id=user_id))

    def delete_user(self, user_id):
        self.auth.users = {e: v for e, v in self.auth.users.items() if v[0] != user_id}


class FakeAuth:
    def __init__(self):
        self.users = {}  # email -> (id, password)
        self.admin = FakeAuthAdmin(self)

    def sign_in_with_password(self, credentials):
        user = self.users.get(credentials["email"])
        if user is None or user[1] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return SimpleNamespace(
            user=SimpleNamespace(id=user[0]),
            session=SimpleNamespace(access_token="supabase-jwt"),
        )


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failures = set()  # {(table, op)}
        self.storage = FakeStorage()
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.get(name, [])


class FakeCalendar:
    def __init__(self):
        self.created = []
        self.cancelled = []
        self.error = None
        self.meet_link = "https://meet.google.com/abc-defg-hij"

    def create_meeting(self, title, start, participants, access_token, description=None):
        if self.error is not None:
            raise self.error
        event_id = f"evt-{len(self.created) + 1}"
        self.created.append({
            "event_id": event_id,
            "title": title,
            "start": start,
            "participants": participants,
            "access_token": access_token,
        })
        return CalendarEvent(
            event_id=event_id,
            meet_link=self.meet_link,
            html_link=f"https://calendar.google.com/event?eid={event_id}",
        )

    def cancel_event(self, event_id, access_token):
        self.cancelled.append(event_id)


# -------------------------
# Fixtures
# -------------------------
ADMIN_ID = "admin-1"
TEACHER_ID = "teacher-1"
OTHER_TEACHER_ID = "teacher-2"
STUDENT_ID = "student-1"
OTHER_STUDENT_ID = "student-2"
CLASS_ID = "class-1"
OTHER_CLASS_ID = "class-2"


@pytest.fixture()
def db():
    fake = FakeSupabase()
    fake.tables = {
        "profiles": [
            {"id": ADMIN_ID, "email": "admin@school.test", "full_name": "Ada Admin", "role": "admin"},
            {"id": TEACHER_ID, "email": "tina@school.test", "full_name": "Tina Teacher", "role": "teacher"},
            {"id": OTHER_TEACHER_ID, "email": "tom@school.test", "full_name": "Tom Teacher", "role": "teacher"},
            {"id": STUDENT_ID, "email": "sam@school.test", "full_name": "Sam Student", "role": "student"},
            {"id": OTHER_STUDENT_ID, "email": "sue@school.test", "full_name": "Sue Student", "role": "student"},
        ],
        "teachers": [
            {"id": TEACHER_ID, "name": "Tina Teacher", "email": "tina@school.test", "subjects": ["Math"],
             "created_at": "2024-01-01T00:00:00+00:00"},
            {"id": OTHER_TEACHER_ID, "name": "Tom Teacher", "email": "tom@school.test", "subjects": ["History"],
             "created_at": "2024-01-02T00:00:00+00:00"},
        ],
        "students": [
            {"id": STUDENT_ID, "name": "Sam Student", "email": "sam@school.test", "enrolled_classes": [CLASS_ID],
             "attendance": {"total_days": 0, "present_days": 0}, "created_at": "2024-01-03T00:00:00+00:00"},
            {"id": OTHER_STUDENT_ID, "name": "Sue Student", "email": "sue@school.test", "enrolled_classes": [],
             "attendance": {"total_days": 0, "present_days": 0}, "created_at": "2024-01-04T00:00:00+00:00"},
        ],
        "classes": [
            {"id": CLASS_ID, "name": "Grade 10 A", "capacity": 30, "student_count": 1,
             "teacher_ids": [TEACHER_ID], "created_at": "2024-01-01T00:00:00+00:00"},
            {"id": OTHER_CLASS_ID, "name": "Grade 11 B", "capacity": 1, "student_count": 0,
             "teacher_ids": [OTHER_TEACHER_ID], "created_at": "2024-01-02T00:00:00+00:00"},
        ],
    }
    fake.auth.users = {
        "admin@school.test": (ADMIN_ID, "admin-pass"),
        "tina@school.test": (TEACHER_ID, "teacher-pass"),
        "sam@school.test": (STUDENT_ID, "student-pass"),
    }
    return fake


@pytest.fixture()
def calendar():
    return FakeCalendar()


@pytest.fixture()
def client(db, calendar):
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_calendar_provider] = lambda: calendar
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id):
    return {"Authorization": f"Bearer {create_session(user_id)}"}


@pytest.fixture()
def admin_headers():
    return auth(ADMIN_ID)


@pytest.fixture()
def teacher_headers():
    return auth(TEACHER_ID)


@pytest.fixture()
def student_headers():
    return auth(STUDENT_ID)


def add_assignment(db, **overrides):
    """Insert an assignment row directly and return it."""
    row = {
        "id": str(uuid.uuid4()),
        "teacher_id": TEACHER_ID,
        "class_id": CLASS_ID,
        "title": "Essay",
        "subject": "English",
        "description": None,
        "points": 100,
        "material": None,
        "priority": "medium",
        "assignment_type": "assignment",
        "due_date": "2099-01-01",
        "due_time": None,
        "status": "pending",
        "submissions_count": 0,
        "created_at": "2024-02-01T00:00:00+00:00",
        "updated_at": "2024-02-01T00:00:00+00:00",
    }
    row.update(overrides)
    db.tables.setdefault("assignments", []).append(row)
    return row
