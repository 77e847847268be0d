"""
Calendar helpers.
https://developers.google.com/calendar/api/v3/reference

Event and EventDateTime mirror the API resources and carry the raw
get/list/insert/patch/update/delete wrappers as static methods.  The
module functions below them are the convenience layer: create a Meet
meeting, add attendees, attach a Drive file.
"""
from dataclasses import dataclass, field, asdict
from typing import List, Self, Tuple
import datetime
import logging
import uuid
from zoneinfo import ZoneInfo

from . import drive
from .access import gws
from .config import DEFAULT_TIMEZONE
from .errors import api_call
from .resources import GoogleWorkSpaceResourceBase

logger = logging.getLogger(__name__)

_SEND_UPDATES = ["all", "externalOnly", "none"]


def _get_service():
    gws.append_scopes("calendar")
    return gws.get_service("calendar", "v3")


def _check_send_updates(method: str, sendUpdates: str) -> None:
    if sendUpdates and sendUpdates not in _SEND_UPDATES:
        raise ValueError(f"Invalid Event::{method}() sendUpdates value: {sendUpdates}")


@dataclass
class Calendar(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/calendar/api/v3/reference/calendars#resource-representations
    Typically you'd interact with this via ::get and an id, which is usually someone's email address
    """
    kind: str|None = field(default=None)
    etag: str|None = field(default=None)
    id: str|None = field(default=None)
    summary: str|None = field(default=None)
    description: str|None = field(default=None)
    timeZone: str|None = field(default=None)

    def __bool__(self) -> bool:
        return self.kind == "calendar#calendar" and bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.summary}<{self.id}>"
        return "<empty>"

    @staticmethod
    @api_call("unable to retrieve calendar")
    def get(id: str = "primary") -> Self:
        """
        https://developers.google.com/calendar/api/v3/reference/calendars/get
        The 'primary' default is the calendar of the authenticated user, for a
        service account that's its own (usually empty) calendar.
        """
        response = _get_service().calendars().get(calendarId=str(id)).execute()
        return Calendar.from_base(response)


def _calendar_id(calendar_id: str|Calendar) -> str:
    return calendar_id.id if isinstance(calendar_id, Calendar) else str(calendar_id)


@dataclass
class EventDateTime(GoogleWorkSpaceResourceBase):
    """
    Event start/end.  The API uses distinct fields for all-day ('date') vs
    specific day/time ('dateTime'); dateTime wins if both are given.
    """
    date: datetime.date|str|None = field(default=None)
    dateTime: datetime.datetime|str|None = field(default=None)
    timeZone: ZoneInfo|str|None = field(default=None)

    def __bool__(self) -> bool:
        return bool(self.date) or bool(self.dateTime)

    def __str__(self) -> str:
        s = str(self.dateTime or self.date or "<empty>")
        if self.timeZone:
            s = f'{s}:{str(self.timeZone)}'
        return s

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if self.date is not None and not isinstance(self.date, datetime.date):
            self.date = datetime.date.fromisoformat(str(self.date))
        if self.dateTime is not None and not isinstance(self.dateTime, datetime.datetime):
            self.dateTime = datetime.datetime.fromisoformat(str(self.dateTime)).replace(microsecond=0)
        if self.timeZone is not None and not isinstance(self.timeZone, ZoneInfo):
            self.timeZone = ZoneInfo(str(self.timeZone))
        if self.dateTime and self.date:
            self.date = None

    @classmethod
    def at(cls, when: datetime.datetime, tz: ZoneInfo) -> Self:
        """
        A specific time expressed in tz.  Naive datetimes are taken as local
        time, the same as datetime.astimezone() does.
        """
        return cls(dateTime=when.astimezone(tz).replace(microsecond=0), timeZone=tz)

    def values(self) -> Tuple[datetime.date|datetime.datetime|None, ZoneInfo|None]:
        return (self.dateTime if self.dateTime else self.date, self.timeZone)

    def to_base(self) -> dict|None:
        """
        GWS needs the 'T' separator so isoformat() rather than str(), and
        only one of date/dateTime.
        """
        self.fixup()
        base = {'date': self.date.isoformat() if self.date else None,
                'dateTime': self.dateTime.isoformat() if self.dateTime else None,
                'timeZone': str(self.timeZone) if self.timeZone else None}
        base = {k: v for k, v in base.items() if v is not None}
        return base or None


@dataclass
class Event(GoogleWorkSpaceResourceBase):
    """
    https://developers.google.com/calendar/api/v3/reference/events#resource-representations
    The modifying helpers use patch so fields not modelled here are left alone
    upstream.
    """
    kind: str|None = field(default=None)
    etag: str|None = field(default=None)
    id: str|None = field(default=None)
    status: str|None = field(default=None)
    htmlLink: str|None = field(default=None)
    created: datetime.datetime|str|None = field(default=None)
    updated: datetime.datetime|str|None = field(default=None)
    summary: str|None = field(default=None)
    description: str|None = field(default=None)
    location: str|None = field(default=None)
    creator: dict|None = field(default=None)
    organizer: dict|None = field(default=None)
    start: EventDateTime|dict|None = field(default=None)
    end: EventDateTime|dict|None = field(default=None)
    recurrence: List[str]|None = field(default=None)
    iCalUID: str|None = field(default=None)
    sequence: int|None = field(default=None)
    attendees: List[dict]|None = field(default=None)
    hangoutLink: str|None = field(default=None)
    conferenceData: dict|None = field(default=None)
    reminders: dict|None = field(default=None)
    attachments: List[dict]|None = field(default=None)
    eventType: str|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        for name in ("created", "updated"):
            v = getattr(self, name)
            if v is not None and not isinstance(v, datetime.datetime):
                setattr(self, name, datetime.datetime.fromisoformat(str(v)).replace(microsecond=0))
        if self.start is not None and not isinstance(self.start, EventDateTime):
            self.start = EventDateTime.from_base(self.start)
        if self.end is not None and not isinstance(self.end, EventDateTime):
            self.end = EventDateTime.from_base(self.end)

    def __bool__(self) -> bool:
        return self.kind == "calendar#event" and bool(self.id)

    def __str__(self) -> str:
        ret = "<empty>"
        if self:
            ret = f"{self.summary}<{self.id}>"
            if self.start:
                start, tz = self.start.values()
                end, _ = self.end.values() if self.end else (None, None)
                ret += f"({str(start)}-->{str(end)}:{str(tz)})"
        return ret

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @property
    def meet_link(self) -> str|None:
        """Video link once the conference has been created."""
        if self.hangoutLink:
            return self.hangoutLink
        for ep in (self.conferenceData or {}).get("entryPoints", []):
            if ep.get("entryPointType") == "video":
                return ep.get("uri")
        return None

    @property
    def attendee_emails(self) -> List[str]:
        return [a.get("email", "") for a in self.attendees or []]

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['start'] = self.start.to_base() if self.start else None
        b['end'] = self.end.to_base() if self.end else None
        b['created'] = self.created.isoformat() if self.created else None
        b['updated'] = self.updated.isoformat() if self.updated else None
        return b

    @staticmethod
    @api_call("unable to list events")
    def list(calendar_id: str|Calendar = "primary", **kwargs) -> List[Self]:
        """
        https://developers.google.com/calendar/api/v3/reference/events/list
        kwargs are the query parameters, see the documentation.  timeMin and
        timeMax must carry an offset so naive values are taken as UTC.
        """
        method = _get_service().events().list
        kwargs.pop('pageToken', None)
        for t in ['timeMin', 'timeMax']:
            tm = kwargs.get(t)
            if tm:
                tmdt = tm if isinstance(tm, datetime.datetime) else datetime.datetime.fromisoformat(str(tm))
                if tmdt.tzinfo is None:
                    tmdt = tmdt.replace(tzinfo=ZoneInfo('UTC'))
                kwargs[t] = tmdt.replace(microsecond=0).isoformat()
            elif t in kwargs:
                del kwargs[t]
        page_token = None
        events = []
        while True:
            response = method(calendarId=_calendar_id(calendar_id), pageToken=page_token, **kwargs).execute()
            events.extend(Event.from_base(e) for e in response.get('items', []))
            page_token = response.get('nextPageToken', None)
            if not page_token:
                break
        return events

    @staticmethod
    @api_call("unable to retrieve event")
    def get(calendar_id: str|Calendar, event_id: str|Self) -> Self:
        """https://developers.google.com/calendar/api/v3/reference/events/get"""
        eid = event_id.id if isinstance(event_id, Event) else str(event_id)
        response = _get_service().events().get(calendarId=_calendar_id(calendar_id), eventId=eid).execute()
        return Event.from_base(response)

    @staticmethod
    @api_call("unable to delete event")
    def delete(calendar_id: str|Calendar, event_id: str|Self, sendUpdates: str = "all") -> None:
        """https://developers.google.com/calendar/api/v3/reference/events/delete"""
        _check_send_updates("delete", sendUpdates)
        eid = event_id.id if isinstance(event_id, Event) else str(event_id)
        _get_service().events().delete(calendarId=_calendar_id(calendar_id), eventId=eid,
                                       sendUpdates=sendUpdates).execute()
        logger.info("deleted event %s", eid)

    @staticmethod
    @api_call("unable to create calendar event")
    def insert(calendar_id: str|Calendar, event: Self|dict,
               sendUpdates: str = "",
               supportsAttachments: bool = False,
               conferenceDataVersion: int = 0) -> Self:
        """
        https://developers.google.com/calendar/api/v3/reference/events/insert
        conferenceDataVersion must be 1 for a conference createRequest to be honoured.
        """
        _check_send_updates("insert", sendUpdates)
        request = {"calendarId": _calendar_id(calendar_id),
                   "body": event.trim() if isinstance(event, Event) else dict(event),
                   "supportsAttachments": supportsAttachments,
                   "conferenceDataVersion": 1 if conferenceDataVersion else 0}
        if sendUpdates:
            request['sendUpdates'] = sendUpdates
        response = _get_service().events().insert(**request).execute()
        # if an Event was passed in, fill that out, otherwise return a new object
        if isinstance(event, Event):
            event.update_fields(**response)
            return event
        return Event.from_base(response)

    @staticmethod
    @api_call("unable to update event")
    def update(calendar_id: str|Calendar, event: Self,
               sendUpdates: str = "",
               supportsAttachments: bool = False) -> Self:
        """
        https://developers.google.com/calendar/api/v3/reference/events/update
        Full replacement, anything not modelled on Event is lost upstream.
        Prefer patch() for targeted changes.
        """
        _check_send_updates("update", sendUpdates)
        request = {"calendarId": _calendar_id(calendar_id), "eventId": event.id, "body": event.trim(),
                   "supportsAttachments": supportsAttachments}
        if sendUpdates:
            request['sendUpdates'] = sendUpdates
        response = _get_service().events().update(**request).execute()
        event.update_fields(**response)
        return event

    @staticmethod
    @api_call("unable to patch event")
    def patch(calendar_id: str|Calendar, event_id: str|Self, body: dict,
              sendUpdates: str = "",
              supportsAttachments: bool = False) -> Self:
        """
        https://developers.google.com/calendar/api/v3/reference/events/patch
        Only the fields in body change.  Array fields (attendees, attachments)
        are replaced whole so send the complete list.
        """
        _check_send_updates("patch", sendUpdates)
        eid = event_id.id if isinstance(event_id, Event) else str(event_id)
        request = {"calendarId": _calendar_id(calendar_id), "eventId": eid, "body": body,
                   "supportsAttachments": supportsAttachments}
        if sendUpdates:
            request['sendUpdates'] = sendUpdates
        response = _get_service().events().patch(**request).execute()
        return Event.from_base(response)


def create_meeting(summary: str, location: str, description: str,
                   start: datetime.datetime, end: datetime.datetime,
                   timezone: str|ZoneInfo|None = None,
                   calendar_id: str|Calendar = "primary") -> Event:
    """
    Create an event with a Google Meet conference attached.  Start and end
    are converted to timezone and the event is tagged with that zone.  When
    None the zone applied to the session from AuthConfig is used, then
    DEFAULT_TIMEZONE.
    """
    if end <= start:
        raise ValueError(f"Meeting end {end} must be after start {start}")
    tz = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(str(timezone or gws.timezone or DEFAULT_TIMEZONE))
    event = Event(summary=summary, location=location, description=description,
                  start=EventDateTime.at(start, tz), end=EventDateTime.at(end, tz))
    # requestId has to be unique per conference create, a retry with the same id is a no-op
    event.conferenceData = {"createRequest": {"requestId": uuid.uuid4().hex,
                                              "conferenceSolutionKey": {"type": "hangoutsMeet"}}}
    created = Event.insert(calendar_id, event, conferenceDataVersion=1)
    logger.info("created meeting %s", created)
    return created


def add_attendees(event_id: str, emails: List[str], calendar_id: str|Calendar = "primary") -> Event:
    """
    Add attendees by email.  Addresses already invited are skipped,
    compared case insensitively.
    """
    event = Event.get(calendar_id, event_id)
    attendees = list(event.attendees or [])
    known = {a.get("email", "").lower() for a in attendees}
    for email in emails:
        if email and email.lower() not in known:
            attendees.append({"email": email})
            known.add(email.lower())
    updated = Event.patch(calendar_id, event_id, {"attendees": attendees})
    logger.info("event %s now has %d attendees", event_id, len(attendees))
    return updated


def attach_file(event_id: str, file_id: str, calendar_id: str|Calendar = "primary") -> Event:
    """
    Attach a Drive file to the event.  Calendar allows up to 25 attachments
    per event.
    """
    f = drive.get_file(file_id, fields="webViewLink, name, mimeType")
    event = Event.get(calendar_id, event_id)
    attachments = list(event.attachments or [])
    attachments.append({"fileId": file_id, "fileUrl": f.webViewLink,
                        "title": f.name, "mimeType": f.mimeType})
    updated = Event.patch(calendar_id, event_id, {"attachments": attachments}, supportsAttachments=True)
    logger.info("attached %s to event %s", f, event_id)
    return updated
