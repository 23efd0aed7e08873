import json
import logging
import datetime as dt
from typing import Callable

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_events.auth.dependencies import get_current_claims, require_admin
from campus_events.auth.jwt_handler import SessionClaims
from campus_events.core.errors import Forbidden, NotFound, ServerError, ValidationError
from campus_events.database import get_db
from campus_events.models.event import DEPARTMENTS, Event
from campus_events.models.user import User
from campus_events.services.event_filters import filter_events

router = APIRouter(tags=['events'])

logger = logging.getLogger(__name__)

REGISTRATION_LINK_SCHEMES = ('http://', 'https://')


class EventPayload(BaseModel):
    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    location: str | None = None
    departments: list[str] | None = None
    registration_needed: bool | None = None
    registration_link: str | None = None
    cover_image: str | None = None
    cover_color: str | None = None

    @field_validator('date', 'time', mode='before')
    @classmethod
    def blank_as_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('departments', mode='before')
    @classmethod
    def decode_departments(cls, value):
        # Forms send the tag list JSON-encoded.
        if isinstance(value, str):
            if not value.strip():
                return None
            return json.loads(value)
        return value


def format_time_12h(value: dt.time) -> str:
    return value.strftime('%I:%M %p').lstrip('0')


def format_time_24h(value: dt.time) -> str:
    return value.strftime('%H:%M')


def serialize_creator(creator: User | None) -> dict | None:
    if creator is None:
        return None
    return {
        'id': creator.id,
        'name': creator.name,
        'email': creator.email,
        'department': creator.department,
    }


def serialize_event(event: Event, time_format: Callable[[dt.time], str] = format_time_24h) -> dict:
    return {
        'id': event.id,
        'title': event.title,
        'description': event.description,
        'date': event.event_date.isoformat() if event.event_date else '',
        'time': time_format(event.event_time) if event.event_time else '',
        'location': event.location,
        'departments': event.departments,
        'registration_needed': event.registration_needed,
        'registration_link': event.registration_link,
        'cover_image': event.cover_image,
        'cover_color': event.cover_color,
        'created_by': event.created_by,
        'creator': serialize_creator(event.creator),
        'created_at': event.created_at,
        'updated_at': event.updated_at,
    }


def parse_event_id(event_id: str) -> int:
    try:
        return int(event_id)
    except ValueError:
        raise ValidationError('Invalid event ID') from None


def validate_departments(departments: list[str] | None) -> list[str] | None:
    if departments is None:
        return None
    unknown = [department for department in departments if department not in DEPARTMENTS]
    if unknown:
        raise ValidationError(f"Invalid department: {', '.join(unknown)}")
    return departments


def validate_registration_link(link: str | None) -> str | None:
    if not link or not link.strip():
        return None
    link = link.strip()
    if not link.lower().startswith(REGISTRATION_LINK_SCHEMES):
        raise ValidationError('Registration link must start with http:// or https://')
    return link


def load_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound('Event not found')
    return event


def list_serialized_events(db: Session) -> list[dict]:
    events = db.query(Event).order_by(Event.event_date.asc(), Event.event_time.asc(), Event.id.asc()).all()
    return [serialize_event(event, format_time_12h) for event in events]


@router.get('')
def list_events(
    search: str | None = Query(default=None),
    department: str | None = Query(default=None),
    claims: SessionClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    try:
        events = list_serialized_events(db)
    except SQLAlchemyError as exc:
        logger.exception('Error fetching events')
        raise ServerError() from exc

    return {'events': filter_events(events, search=search, department=department)}


@router.get('/{event_id}')
def get_event(
    event_id: str,
    claims: SessionClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    parsed_id = parse_event_id(event_id)

    try:
        event = load_event(db, parsed_id)
    except SQLAlchemyError as exc:
        logger.exception('Error fetching event %s', parsed_id)
        raise ServerError() from exc

    return {'event': serialize_event(event)}


@router.post('', status_code=status.HTTP_201_CREATED)
def create_event(
    data: EventPayload,
    claims: SessionClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not data.title or not data.description or data.date is None:
        raise ValidationError('Missing required fields')

    departments = validate_departments(data.departments)
    registration_link = validate_registration_link(data.registration_link)

    try:
        creator = db.get(User, claims.id)
        if creator is None or not creator.is_admin:
            raise Forbidden('Admin access required')

        event = Event(
            title=data.title,
            description=data.description,
            event_date=data.date,
            event_time=data.time,
            location=data.location,
            departments=departments,
            registration_needed=bool(data.registration_needed),
            registration_link=registration_link,
            cover_image=data.cover_image,
            cover_color=data.cover_color,
            created_by=creator.id,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error creating event')
        raise ServerError() from exc

    logger.info('Event %s created by user %s', event.id, claims.id)
    return {'message': 'Event created successfully', 'event': serialize_event(event)}


@router.put('/{event_id}')
def update_event(
    event_id: str,
    data: EventPayload,
    claims: SessionClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    parsed_id = parse_event_id(event_id)
    departments = validate_departments(data.departments)
    registration_link = validate_registration_link(data.registration_link)

    try:
        event = load_event(db, parsed_id)

        # Omitted fields keep their stored values.
        event.title = data.title or event.title
        event.description = data.description or event.description
        if data.date is not None:
            event.event_date = data.date
        if data.time is not None:
            event.event_time = data.time
        event.location = data.location or event.location
        if departments is not None:
            event.departments = departments
        if data.registration_needed is not None:
            event.registration_needed = data.registration_needed
        event.registration_link = registration_link or event.registration_link
        event.cover_image = data.cover_image or event.cover_image
        event.cover_color = data.cover_color or event.cover_color

        db.commit()
        db.refresh(event)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error updating event %s', parsed_id)
        raise ServerError() from exc

    logger.info('Event %s updated by user %s', event.id, claims.id)
    return {'message': 'Event updated successfully', 'event': serialize_event(event)}


@router.delete('/{event_id}')
def delete_event(
    event_id: str,
    claims: SessionClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    parsed_id = parse_event_id(event_id)

    try:
        event = load_event(db, parsed_id)
        db.delete(event)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error deleting event %s', parsed_id)
        raise ServerError() from exc

    logger.info('Event %s deleted by user %s', parsed_id, claims.id)
    return {'message': 'Event deleted successfully'}
