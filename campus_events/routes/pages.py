"""Server-rendered pages.

Every protected page runs ``authorize_page`` before it touches a template, so a
visitor who is not allowed to see a page only ever receives a redirect.
"""

import logging
from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_events.auth.dependencies import get_session
from campus_events.auth.guards import LOGIN_PAGE, authorize_page, landing_page_for, redirect
from campus_events.auth.session import SessionResult
from campus_events.core.errors import ServerError
from campus_events.database import get_db
from campus_events.models.event import DEPARTMENTS
from campus_events.models.user import ROLE_ADMIN, ROLE_STUDENT, User
from campus_events.routes.analytics_routes import collect_user_statistics
from campus_events.routes.event_routes import list_serialized_events
from campus_events.services.event_filters import (
    CALENDAR_VIEWS,
    MONTH_VIEW,
    WEEK_VIEW,
    calendar_step,
    count_events_in_month,
    department_event_counts,
    events_in_week,
    events_on_date,
    filter_events,
    month_grid,
    week_dates,
)

router = APIRouter(tags=['pages'], include_in_schema=False)

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / 'templates'))


def render(request: Request, name: str, **context) -> HTMLResponse:
    return templates.TemplateResponse(request, name, {'departments': DEPARTMENTS, **context})


def load_page_user(db: Session, session: SessionResult) -> User | None:
    try:
        return db.get(User, session.claims.id)
    except SQLAlchemyError as exc:
        logger.exception('Page user lookup failed for %s', session.claims.id)
        raise ServerError() from exc


def load_events(db: Session) -> list[dict]:
    try:
        return list_serialized_events(db)
    except SQLAlchemyError as exc:
        logger.exception('Page event lookup failed')
        raise ServerError() from exc


@router.get('/', response_class=HTMLResponse)
def index(request: Request, session: SessionResult = Depends(get_session)):
    claims = session.claims
    return render(
        request,
        'index.html',
        user=claims,
        landing_page=landing_page_for(claims.role) if claims else None,
    )


@router.get('/login', response_class=HTMLResponse)
def login_page(request: Request):
    return render(request, 'login.html')


@router.get('/register', response_class=HTMLResponse)
def register_page(request: Request):
    return render(request, 'register.html')


@router.get('/dashboard', response_class=HTMLResponse)
def dashboard(
    request: Request,
    search: str | None = Query(default=None),
    department: str | None = Query(default=None),
    session: SessionResult = Depends(get_session),
    db: Session = Depends(get_db),
):
    access = authorize_page(session)
    if not access.allowed:
        return redirect(access.redirect_to)

    user = load_page_user(db, session)
    if user is None:
        return redirect(LOGIN_PAGE)

    events = load_events(db)
    today = date.today()
    return render(
        request,
        'dashboard.html',
        user=user,
        events=filter_events(events, search=search, department=department),
        total_events=len(events),
        events_this_month=count_events_in_month(events, today.year, today.month),
        search=search or '',
        selected_department=department or '',
    )


def profile_page(request: Request, session: SessionResult, db: Session, required_role: str, back_link: str):
    access = authorize_page(session, required_role)
    if not access.allowed:
        return redirect(access.redirect_to)

    user = load_page_user(db, session)
    if user is None:
        return redirect(LOGIN_PAGE)

    return render(request, 'profile.html', user=user, back_link=back_link)


@router.get('/profile', response_class=HTMLResponse)
def student_profile(
    request: Request,
    session: SessionResult = Depends(get_session),
    db: Session = Depends(get_db),
):
    return profile_page(request, session, db, ROLE_STUDENT, back_link='/dashboard')


@router.get('/admin/profile', response_class=HTMLResponse)
def admin_profile(
    request: Request,
    session: SessionResult = Depends(get_session),
    db: Session = Depends(get_db),
):
    return profile_page(request, session, db, ROLE_ADMIN, back_link='/admin')


@router.get('/admin', response_class=HTMLResponse)
def admin_dashboard(
    request: Request,
    search: str | None = Query(default=None),
    department: str | None = Query(default=None),
    session: SessionResult = Depends(get_session),
    db: Session = Depends(get_db),
):
    access = authorize_page(session, ROLE_ADMIN)
    if not access.allowed:
        return redirect(access.redirect_to)

    user = load_page_user(db, session)
    if user is None:
        return redirect(LOGIN_PAGE)

    events = load_events(db)
    try:
        statistics = collect_user_statistics(db)
    except SQLAlchemyError as exc:
        logger.exception('Admin statistics failed')
        raise ServerError() from exc

    return render(
        request,
        'admin.html',
        user=user,
        events=filter_events(events, search=search, department=department),
        department_counts=department_event_counts(events),
        statistics=statistics,
        search=search or '',
        selected_department=department or '',
    )


def calendar_url(view: str, day: date) -> str:
    return f'/calendar?view={view}&day={day.isoformat()}'


def calendar_title(view: str, day: date, week: list[date | None]) -> str:
    if view == MONTH_VIEW:
        return day.strftime('%B %Y')
    if view == WEEK_VIEW:
        first = next(week_day for week_day in week if week_day)
        return first.strftime('Week of %B %d, %Y')
    return day.strftime('%A, %B %d, %Y')


@router.get('/calendar', response_class=HTMLResponse)
def calendar_page(
    request: Request,
    view: str = Query(default=MONTH_VIEW, pattern=f"^({'|'.join(CALENDAR_VIEWS)})$"),
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    day: date | None = Query(default=None),
    session: SessionResult = Depends(get_session),
    db: Session = Depends(get_db),
):
    access = authorize_page(session)
    if not access.allowed:
        return redirect(access.redirect_to)

    today = date.today()
    if day is None:
        year = year or today.year
        month = month or today.month
        day = today if (year, month) == (today.year, today.month) else date(year, month, 1)

    events = load_events(db)
    week = week_dates(day)
    week_events = events_in_week(events, day)

    previous_day = calendar_step(view, day, -1)
    next_day = calendar_step(view, day, 1)

    return render(
        request,
        'calendar.html',
        user=session.claims,
        view=view,
        title=calendar_title(view, day, week),
        today=today,
        weeks=[
            [(month_day, events_on_date(events, month_day) if month_day else []) for month_day in grid_week]
            for grid_week in month_grid(day.year, day.month)
        ],
        week=[(week_day, events_on_date(week_events, week_day) if week_day else []) for week_day in week],
        day_events=events_on_date(events, day),
        view_urls={name: calendar_url(name, day) for name in CALENDAR_VIEWS},
        today_url=calendar_url(view, today),
        previous_url=calendar_url(view, previous_day) if previous_day else None,
        next_url=calendar_url(view, next_day) if next_day else None,
        landing_page=landing_page_for(session.claims.role),
    )
