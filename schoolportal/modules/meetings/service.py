"""
Meeting scheduling: resolve the class roster, create the external event,
then mirror it locally. The local record is only written after the provider
succeeds.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from supabase import Client

from schoolportal.core.config import settings
from schoolportal.core.errors import PermissionDeniedError, StoreError, ValidationError, NotFoundError
from schoolportal.integrations.google_calendar import GoogleCalendarProvider
from schoolportal.modules.assignments.service import ensure_teaches, get_class, get_student, utc_now_iso
from schoolportal.schemas.meetings import MeetingCreate

logger = logging.getLogger(__name__)


def resolve_participants(client: Client, class_id: str) -> List[str]:
    """Emails of every student enrolled in the class."""
    result = (
        client
        .table("students")
        .select("id, email")
        .contains("enrolled_classes", [class_id])
        .execute()
    )
    return sorted({row["email"] for row in result.data if row.get("email")})


def meeting_start(data: MeetingCreate, now: datetime) -> datetime:
    if data.mode == "instant":
        return now
    start = data.time
    if start.tzinfo is None:
        start = start.replace(tzinfo=ZoneInfo(settings.TIMEZONE))
    if start < now:
        raise ValidationError("Scheduled meeting time cannot be in the past")
    return start


def schedule_meeting(
    client: Client,
    provider: GoogleCalendarProvider,
    data: MeetingCreate,
    teacher: dict,
    now: Optional[datetime] = None,
) -> dict:
    """
    Raises:
        ValidationError: scheduled time in the past
        ProviderAuthError / ProviderError: calendar failure, nothing written
        StoreError: event created but the local record could not be saved
    """
    now = now or datetime.now(timezone.utc)
    ensure_teaches(get_class(client, data.class_id), teacher["id"])
    start = meeting_start(data, now)
    participants = resolve_participants(client, data.class_id)

    event = provider.create_meeting(
        title=data.title,
        start=start,
        participants=participants,
        access_token=data.access_token,
        description=data.description or f"Class meeting for class ID: {data.class_id}",
    )

    record = {
        "id": str(uuid.uuid4()),
        "title": data.title,
        "link": event.meet_link,
        "event_id": event.event_id,
        "time": start.isoformat(),
        "class_id": data.class_id,
        "description": data.description,
        "created_by": teacher["id"],
        "created_at": utc_now_iso(),
    }
    try:
        result = client.table("meetings").insert(record).execute()
    except Exception:
        logger.exception("Saving meeting for event %s failed, cancelling the event", event.event_id)
        try:
            provider.cancel_event(event.event_id, data.access_token)
        except Exception as cancel_error:
            logger.error("Orphaned calendar event %s could not be cancelled: %s", event.event_id, cancel_error)
        raise StoreError("Meeting was created in the calendar but could not be saved", {"retry": True})

    logger.info("Meeting %s scheduled for class %s with %d participants",
                record["id"], data.class_id, len(participants))
    return result.data[0]


def _starts_at(row: dict) -> datetime:
    start = datetime.fromisoformat(row["time"].replace("Z", "+00:00"))
    # rows written without an offset are in school time
    if start.tzinfo is None:
        start = start.replace(tzinfo=ZoneInfo(settings.TIMEZONE))
    return start


def _upcoming(rows: List[dict], now: datetime) -> List[dict]:
    return [r for r in rows if _starts_at(r) >= now]


def list_class_meetings(client: Client, class_id: str, user: dict, upcoming: bool = False) -> List[dict]:
    class_row = get_class(client, class_id)
    if user["role"] == "teacher":
        ensure_teaches(class_row, user["id"])
    elif user["role"] == "student":
        if class_id not in (get_student(client, user["id"]).get("enrolled_classes") or []):
            raise PermissionDeniedError("Not enrolled in this class")

    rows = client.table("meetings").select("*").eq("class_id", class_id).order("time").execute().data
    return _upcoming(rows, datetime.now(timezone.utc)) if upcoming else rows


def list_my_meetings(client: Client, user: dict, upcoming: bool = False) -> List[dict]:
    if user["role"] == "student":
        class_ids = get_student(client, user["id"]).get("enrolled_classes") or []
        if not class_ids:
            return []
        query = client.table("meetings").select("*").in_("class_id", class_ids)
    else:
        query = client.table("meetings").select("*").eq("created_by", user["id"])

    rows = query.order("time").execute().data
    return _upcoming(rows, datetime.now(timezone.utc)) if upcoming else rows


def delete_meeting(client: Client, meeting_id: str, user: dict) -> None:
    result = client.table("meetings").select("*").eq("id", meeting_id).execute()
    if not result.data:
        raise NotFoundError("Meeting not found")
    if user["role"] != "admin" and result.data[0]["created_by"] != user["id"]:
        raise PermissionDeniedError("Access denied")
    client.table("meetings").delete().eq("id", meeting_id).execute()
    logger.info("Meeting %s deleted by %s", meeting_id, user["id"])
