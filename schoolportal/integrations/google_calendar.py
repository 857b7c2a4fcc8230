"""
Google Calendar client used as the meeting provider.
Creates calendar events with a Google Meet conference for a class and
invites the enrolled students.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional

import google_auth_httplib2
import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from schoolportal.core.config import settings
from schoolportal.core.errors import ProviderAuthError, ProviderError

TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/calendar.events"]


@dataclass
class CalendarEvent:
    event_id: str
    meet_link: str
    html_link: Optional[str] = None


def _status_of(error: HttpError) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None and getattr(error, "resp", None) is not None:
        status = getattr(error.resp, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def _translate(error: Exception, action: str) -> Exception:
    """Map a Google client failure to ProviderAuthError or ProviderError."""
    if isinstance(error, RefreshError):
        return ProviderAuthError("Google authorization expired. Please re-authorize with Google.")
    if isinstance(error, HttpError):
        status = _status_of(error)
        reason = str(error).lower()
        if status == 401:
            return ProviderAuthError("Authentication failed. Please re-authorize with Google.")
        if status == 403 and "insufficient" in reason:
            return ProviderAuthError("Insufficient permissions. Please grant Calendar access.")
        return ProviderError(f"Google Calendar could not {action} (HTTP {status})", {"status": status})
    return ProviderError(f"Google Calendar could not {action}: {error}")


class GoogleCalendarProvider:
    """Creates and cancels Meet-enabled events with a caller-supplied OAuth access token."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        calendar_id: str = "primary",
        duration_minutes: int = 60,
        timeout: int = 15,
        timezone: str = "UTC",
        logger: Optional[logging.Logger] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.calendar_id = calendar_id
        self.duration = timedelta(minutes=duration_minutes)
        self.timeout = timeout
        self.timezone = timezone
        self.logger = logger or logging.getLogger(__name__)

    def _service(self, access_token: str):
        creds = Credentials(
            token=access_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=SCOPES,
        )
        http = google_auth_httplib2.AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout))
        return build("calendar", "v3", http=http, cache_discovery=False)

    def event_body(
        self,
        title: str,
        start: datetime,
        participants: List[str],
        description: Optional[str] = None,
    ) -> dict:
        end = start + self.duration
        return {
            "summary": title,
            "description": description or "",
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone},
            "conferenceData": {
                "createRequest": {
                    "requestId": f"meet-{uuid.uuid4().hex}",
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            },
            "attendees": [{"email": email} for email in participants],
            "guestsCanInviteOthers": False,
            "guestsCanModify": False,
            "guestsCanSeeOtherGuests": False,
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 10},
                ],
            },
        }

    def create_meeting(
        self,
        title: str,
        start: datetime,
        participants: List[str],
        access_token: str,
        description: Optional[str] = None,
    ) -> CalendarEvent:
        """
        Insert the event and return its id and joinable link.

        Raises:
            ProviderAuthError: the access token is expired, revoked or lacks scope
            ProviderError: any other failure; safe to retry
        """
        body = self.event_body(title, start, participants, description)
        try:
            event = (
                self._service(access_token)
                .events()
                .insert(calendarId=self.calendar_id, body=body, conferenceDataVersion=1, sendUpdates="all")
                .execute()
            )
        except Exception as e:
            self.logger.error("Google Calendar event creation failed: %s", e)
            raise _translate(e, "create the event")

        entry_points = (event.get("conferenceData") or {}).get("entryPoints") or []
        meet_link = next((ep.get("uri") for ep in entry_points if ep.get("entryPointType") == "video"), None)
        if not meet_link:
            self.logger.warning("Google Meet link not generated for event %s", event.get("id"))

        return CalendarEvent(
            event_id=event["id"],
            meet_link=meet_link or event.get("htmlLink"),
            html_link=event.get("htmlLink"),
        )

    def cancel_event(self, event_id: str, access_token: str) -> None:
        try:
            self._service(access_token).events().delete(
                calendarId=self.calendar_id, eventId=event_id, sendUpdates="all"
            ).execute()
        except Exception as e:
            raise _translate(e, "cancel the event")
        self.logger.info("Cancelled Google Calendar event %s", event_id)


def get_calendar_provider() -> GoogleCalendarProvider:
    """FastAPI dependency returning a provider configured from settings."""
    return GoogleCalendarProvider(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        calendar_id=settings.GOOGLE_CALENDAR_ID,
        duration_minutes=settings.MEETING_DURATION_MINUTES,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        timezone=settings.TIMEZONE,
    )
