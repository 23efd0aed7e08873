import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_events.auth.dependencies import require_analytics_admin
from campus_events.auth.jwt_handler import SessionClaims
from campus_events.core.errors import ServerError
from campus_events.database import get_db
from campus_events.models.user import ROLE_ADMIN, ROLE_STUDENT, User, utcnow
from campus_events.routes.auth_routes import UserResponse

router = APIRouter(tags=['analytics'])

logger = logging.getLogger(__name__)

RECENT_USER_WINDOW_DAYS = 30


class DepartmentCount(BaseModel):
    department: str
    count: int


class UserStatistics(BaseModel):
    total_users: int = Field(alias='totalUsers')
    total_students: int = Field(alias='totalStudents')
    total_admins: int = Field(alias='totalAdmins')
    recent_users: int = Field(alias='recentUsers')
    users_with_student_id: int = Field(alias='usersWithStudentId')
    users_by_department: list[DepartmentCount] = Field(alias='usersByDepartment')

    class Config:
        populate_by_name = True


class UserAnalyticsResponse(BaseModel):
    statistics: UserStatistics
    users: list[UserResponse]


def collect_user_statistics(db: Session, now: datetime | None = None) -> UserStatistics:
    recent_cutoff = (now or utcnow()) - timedelta(days=RECENT_USER_WINDOW_DAYS)

    department_rows = (
        db.query(User.department, func.count(User.id))
        .filter(User.department.is_not(None))
        .group_by(User.department)
        .order_by(User.department.asc())
        .all()
    )

    return UserStatistics(
        total_users=db.query(User).count(),
        total_students=db.query(User).filter(User.role == ROLE_STUDENT).count(),
        total_admins=db.query(User).filter(User.role == ROLE_ADMIN).count(),
        recent_users=db.query(User).filter(User.created_at >= recent_cutoff).count(),
        users_with_student_id=db.query(User).filter(User.student_id.is_not(None)).count(),
        users_by_department=[
            DepartmentCount(department=department, count=count) for department, count in department_rows
        ],
    )


@router.get('/users', response_model=UserAnalyticsResponse)
def user_analytics(
    claims: SessionClaims = Depends(require_analytics_admin),
    db: Session = Depends(get_db),
):
    try:
        statistics = collect_user_statistics(db)
        users = db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
    except SQLAlchemyError as exc:
        logger.exception('Analytics query failed')
        raise ServerError() from exc

    return UserAnalyticsResponse(
        statistics=statistics,
        users=[UserResponse.model_validate(user) for user in users],
    )
