from fastapi import APIRouter, Depends, Query
from supabase import Client

from schoolportal.core.dependencies import require_admin_or_teacher, require_teacher
from schoolportal.core.security import get_current_user
from schoolportal.db.supabase import get_supabase
from schoolportal.integrations.google_calendar import GoogleCalendarProvider, get_calendar_provider
from schoolportal.modules.meetings import service
from schoolportal.schemas.meetings import MeetingCreate, MeetingResponse

router = APIRouter(tags=["Meetings"])


@router.post("/", response_model=MeetingResponse, status_code=201)
def create_meeting(
    meeting: MeetingCreate,
    user: dict = Depends(require_teacher),
    client: Client = Depends(get_supabase),
    provider: GoogleCalendarProvider = Depends(get_calendar_provider),
):
    """
    Schedule a Google Meet for a class and invite its students.

    - instant: starts now
    - scheduled: starts at `time`, which must not be in the past

    A 401 response with `reauthenticate: true` means the Google access token
    must be renewed; a 502 with `retry: true` is a transient failure.
    """
    return service.schedule_meeting(client, provider, meeting, user)


@router.get("/my", response_model=list[MeetingResponse])
def get_my_meetings(
    upcoming: bool = Query(False, description="Only meetings that have not started yet"),
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    """Teachers see meetings they created, students those of their classes."""
    return service.list_my_meetings(client, user, upcoming)


@router.get("/class/{class_id}", response_model=list[MeetingResponse])
def get_class_meetings(
    class_id: str,
    upcoming: bool = Query(False),
    user: dict = Depends(get_current_user),
    client: Client = Depends(get_supabase),
):
    return service.list_class_meetings(client, class_id, user, upcoming)


@router.delete("/{meeting_id}")
def delete_meeting(
    meeting_id: str,
    user: dict = Depends(require_admin_or_teacher),
    client: Client = Depends(get_supabase),
):
    service.delete_meeting(client, meeting_id, user)
    return {"message": "Meeting deleted successfully"}
