import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_events.auth.dependencies import get_current_claims, get_token_service
from campus_events.auth.jwt_handler import SessionClaims, TokenService
from campus_events.auth.passwords import hash_password, verify_password
from campus_events.core.config import AuthSettings
from campus_events.core.errors import Conflict, NotFound, ServerError, Unauthorized, ValidationError
from campus_events.database import get_db
from campus_events.models.user import ROLE_STUDENT, ROLES, User

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None
    department: str | None = None
    student_id: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    department: str | None = None
    student_id: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    department: str | None = None
    student_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    user: UserResponse


class UserMessageResponse(BaseModel):
    message: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


def set_session_cookie(response: Response, token: str, settings: AuthSettings) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.cookie_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def clear_session_cookie(response: Response, settings: AuthSettings) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value='',
        max_age=0,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )


def normalize_role(role: str | None) -> str:
    normalized = (role or ROLE_STUDENT).strip().upper()
    if normalized not in ROLES:
        raise ValidationError('Invalid role')
    return normalized


def load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound('User not found')
    return user


@router.post('/register', response_model=UserMessageResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    if not data.name or not data.email or not data.password:
        raise ValidationError('Missing required fields')

    role = normalize_role(data.role)
    is_student = role == ROLE_STUDENT
    if is_student and (not data.department or not data.student_id):
        raise ValidationError('Department and student ID are required for students')

    try:
        if db.query(User).filter(User.email == data.email).first():
            raise Conflict('Email already exists')

        if is_student and db.query(User).filter(User.student_id == data.student_id).first():
            raise Conflict('Student ID already exists')

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=role,
            department=data.department if is_student else None,
            student_id=data.student_id if is_student else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Registration failed for %s', data.email)
        raise ServerError('Internal server error') from exc

    logger.info('Registered user %s with role %s', user.id, user.role)
    return UserMessageResponse(message='User registered successfully', user=UserResponse.model_validate(user))


@router.post('/login', response_model=UserMessageResponse)
def login(
    data: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    if not data.email or not data.password:
        raise Unauthorized(INVALID_CREDENTIALS)

    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        logger.exception('Login lookup failed')
        raise ServerError() from exc

    # Same message for unknown email and wrong password.
    if user is None or not verify_password(data.password, user.password):
        raise Unauthorized(INVALID_CREDENTIALS)

    token = tokens.issue(SessionClaims(id=user.id, email=user.email, role=user.role, name=user.name))
    set_session_cookie(response, token, tokens.settings)

    logger.info('User %s logged in', user.id)
    return UserMessageResponse(message='Login success', user=UserResponse.model_validate(user))


@router.post('/logout', response_model=MessageResponse)
def logout(response: Response, tokens: TokenService = Depends(get_token_service)):
    clear_session_cookie(response, tokens.settings)
    return MessageResponse(message='Logout successful')


@router.get('/me', response_model=UserEnvelope)
def me(claims: SessionClaims = Depends(get_current_claims), db: Session = Depends(get_db)):
    try:
        user = load_user(db, claims.id)
    except SQLAlchemyError as exc:
        logger.exception('User lookup failed for %s', claims.id)
        raise ServerError() from exc

    return UserEnvelope(user=UserResponse.model_validate(user))


@router.put('/me', response_model=UserMessageResponse)
def update_me(
    data: ProfileUpdateRequest,
    claims: SessionClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    try:
        user = load_user(db, claims.id)
        is_student = user.role == ROLE_STUDENT

        if data.email and data.email != user.email:
            if db.query(User).filter(User.email == data.email).first():
                raise Conflict('Email already exists')

        if is_student and data.student_id and data.student_id != user.student_id:
            if db.query(User).filter(User.student_id == data.student_id).first():
                raise Conflict('Student ID already exists')

        user.name = data.name or user.name
        user.email = data.email or user.email
        # Department and student ID only apply to student accounts.
        if is_student:
            user.department = data.department or user.department
            user.student_id = data.student_id or user.student_id

        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Profile update failed for %s', claims.id)
        raise ServerError() from exc

    return UserMessageResponse(message='Profile updated successfully', user=UserResponse.model_validate(user))
