from datetime import datetime, timezone

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from conftest import CLASS_ID, OTHER_CLASS_ID, OTHER_STUDENT_ID, auth
from schoolportal.core.errors import ProviderAuthError, ProviderError
from schoolportal.integrations.google_calendar import GoogleCalendarProvider, _translate


def meeting(**overrides):
    body = {
        "title": "Revision session",
        "class_id": CLASS_ID,
        "mode": "scheduled",
        "time": "2099-03-01T10:00:00+00:00",
        "access_token": "ya29.token",
    }
    body.update(overrides)
    return body


def test_schedule_meeting_invites_enrolled_students(client, db, calendar, teacher_headers):
    r = client.post("/meetings/", json=meeting(), headers=teacher_headers)
    assert r.status_code == 201
    js = r.json()
    assert js["link"] == "https://meet.google.com/abc-defg-hij"
    assert js["event_id"] == "evt-1"
    assert js["created_by"] == "teacher-1"

    assert calendar.created[0]["participants"] == ["sam@school.test"]
    assert calendar.created[0]["access_token"] == "ya29.token"
    assert len(db.rows("meetings")) == 1


def test_instant_meeting_starts_now(client, calendar, teacher_headers):
    r = client.post("/meetings/", json=meeting(mode="instant", time=None), headers=teacher_headers)
    assert r.status_code == 201
    started = calendar.created[0]["start"]
    assert abs((datetime.now(timezone.utc) - started).total_seconds()) < 60


def test_expired_credential_asks_for_reauthentication(client, db, calendar, teacher_headers):
    calendar.error = ProviderAuthError("Google authorization expired. Please re-authorize with Google.")
    r = client.post("/meetings/", json=meeting(), headers=teacher_headers)
    assert r.status_code == 401
    assert r.json()["reauthenticate"] is True
    assert db.rows("meetings") == []


def test_transient_failure_is_retryable(client, db, calendar, teacher_headers):
    calendar.error = ProviderError("Google Calendar could not create the event (HTTP 503)")
    r = client.post("/meetings/", json=meeting(), headers=teacher_headers)
    assert r.status_code == 502
    assert r.json()["retry"] is True
    assert db.rows("meetings") == []


def test_past_time_rejected_before_calling_provider(client, calendar, teacher_headers):
    r = client.post("/meetings/", json=meeting(time="2001-01-01T10:00:00+00:00"), headers=teacher_headers)
    assert r.status_code == 422
    assert calendar.created == []


def test_scheduled_meeting_needs_time(client, teacher_headers):
    r = client.post("/meetings/", json=meeting(time=None), headers=teacher_headers)
    assert r.status_code == 422


def test_store_failure_cancels_event(client, db, calendar, teacher_headers):
    db.failures.add(("meetings", "insert"))
    r = client.post("/meetings/", json=meeting(), headers=teacher_headers)
    assert r.status_code == 502
    assert r.json()["error"] == "store_error"
    assert calendar.cancelled == ["evt-1"]


def test_teacher_must_teach_the_class(client, calendar, teacher_headers):
    r = client.post("/meetings/", json=meeting(class_id=OTHER_CLASS_ID), headers=teacher_headers)
    assert r.status_code == 403
    assert calendar.created == []


def test_meeting_reads_and_delete(client, db, teacher_headers, student_headers):
    db.tables["meetings"] = [
        {"id": "m-past", "title": "Past", "link": "https://meet.google.com/x", "event_id": "e1",
         "time": "2001-01-01T10:00:00+00:00", "class_id": CLASS_ID, "created_by": "teacher-1",
         "created_at": "2001-01-01T00:00:00+00:00"},
        {"id": "m-next", "title": "Next", "link": "https://meet.google.com/y", "event_id": "e2",
         "time": "2099-01-01T10:00:00+00:00", "class_id": CLASS_ID, "created_by": "teacher-1",
         "created_at": "2001-01-01T00:00:00+00:00"},
    ]
    r = client.get("/meetings/my", params={"upcoming": True}, headers=student_headers)
    assert [m["id"] for m in r.json()] == ["m-next"]

    r = client.get(f"/meetings/class/{CLASS_ID}", headers=teacher_headers)
    assert [m["id"] for m in r.json()] == ["m-past", "m-next"]

    assert client.get(f"/meetings/class/{CLASS_ID}", headers=auth(OTHER_STUDENT_ID)).status_code == 403
    assert client.delete("/meetings/m-past", headers=auth("teacher-2")).status_code == 403
    assert client.delete("/meetings/m-past", headers=teacher_headers).status_code == 200
    assert [m["id"] for m in db.rows("meetings")] == ["m-next"]


def test_upcoming_accepts_times_without_offset(client, db, teacher_headers):
    db.tables["meetings"] = [
        {"id": "m-old", "title": "Old", "link": "https://meet.google.com/x", "event_id": "e1",
         "time": "2001-01-01T10:00:00", "class_id": CLASS_ID, "created_by": "teacher-1",
         "created_at": "2001-01-01T00:00:00+00:00"},
        {"id": "m-new", "title": "New", "link": "https://meet.google.com/y", "event_id": "e2",
         "time": "2099-01-01T10:00:00", "class_id": CLASS_ID, "created_by": "teacher-1",
         "created_at": "2001-01-01T00:00:00+00:00"},
    ]
    r = client.get(f"/meetings/class/{CLASS_ID}", params={"upcoming": True}, headers=teacher_headers)
    assert r.status_code == 200
    assert [m["id"] for m in r.json()] == ["m-new"]

    r = client.get("/meetings/my", params={"upcoming": True}, headers=teacher_headers)
    assert [m["id"] for m in r.json()] == ["m-new"]


# -------------------------
# Google Calendar provider
# -------------------------
INSUFFICIENT_SCOPES = b'{"error": {"code": 403, "message": "Request had insufficient authentication scopes."}}'


def http_error(status, content=b"error"):
    return HttpError(httplib2.Response({"status": status}), content)


def test_translate_errors():
    assert isinstance(_translate(RefreshError("invalid_grant"), "create the event"), ProviderAuthError)
    assert isinstance(_translate(http_error(401), "create the event"), ProviderAuthError)
    assert isinstance(_translate(http_error(403, INSUFFICIENT_SCOPES), "create the event"),
                      ProviderAuthError)
    assert isinstance(_translate(http_error(503), "create the event"), ProviderError)
    assert isinstance(_translate(TimeoutError("timed out"), "create the event"), ProviderError)


class FakeRequest:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def execute(self):
        if self.error is not None:
            raise self.error
        return self.result


class FakeEvents:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.inserted = None

    def insert(self, **kwargs):
        self.inserted = kwargs
        return FakeRequest(self.result, self.error)

    def delete(self, **kwargs):
        return FakeRequest({}, self.error)


class FakeService:
    def __init__(self, events):
        self._events = events

    def events(self):
        return self._events


def provider_with(monkeypatch, events):
    provider = GoogleCalendarProvider(duration_minutes=45, timezone="UTC")
    monkeypatch.setattr(provider, "_service", lambda access_token: FakeService(events))
    return provider


def test_create_meeting_reads_video_entry_point(monkeypatch):
    events = FakeEvents(result={
        "id": "evt-9",
        "htmlLink": "https://calendar.google.com/event?eid=9",
        "conferenceData": {"entryPoints": [
            {"entryPointType": "phone", "uri": "tel:+1-555"},
            {"entryPointType": "video", "uri": "https://meet.google.com/xyz-abcd-efg"},
        ]},
    })
    provider = provider_with(monkeypatch, events)
    start = datetime(2099, 1, 1, 9, 0, tzinfo=timezone.utc)

    event = provider.create_meeting("Review", start, ["a@school.test"], "token")

    assert event.event_id == "evt-9"
    assert event.meet_link == "https://meet.google.com/xyz-abcd-efg"
    body = events.inserted["body"]
    assert events.inserted["conferenceDataVersion"] == 1
    assert body["attendees"] == [{"email": "a@school.test"}]
    assert body["end"]["dateTime"] == "2099-01-01T09:45:00+00:00"
    assert body["conferenceData"]["createRequest"]["conferenceSolutionKey"] == {"type": "hangoutsMeet"}


def test_create_meeting_falls_back_to_html_link(monkeypatch):
    events = FakeEvents(result={"id": "evt-10", "htmlLink": "https://calendar.google.com/event?eid=10"})
    provider = provider_with(monkeypatch, events)
    event = provider.create_meeting("Review", datetime(2099, 1, 1, tzinfo=timezone.utc), [], "token")
    assert event.meet_link == "https://calendar.google.com/event?eid=10"


def test_create_meeting_translates_auth_failure(monkeypatch):
    provider = provider_with(monkeypatch, FakeEvents(error=http_error(401)))
    with pytest.raises(ProviderAuthError):
        provider.create_meeting("Review", datetime(2099, 1, 1, tzinfo=timezone.utc), [], "expired")
