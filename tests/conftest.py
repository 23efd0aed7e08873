import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET', 'test-secret')

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from campus_events.auth.jwt_handler import TokenService  # noqa: E402
from campus_events.auth.passwords import hash_password  # noqa: E402
from campus_events.core.config import AuthSettings  # noqa: E402
from campus_events.database import Base, get_db, init_db  # noqa: E402
from campus_events.main import create_app  # noqa: E402
from campus_events.models.user import ROLE_ADMIN, ROLE_STUDENT, User  # noqa: E402

TEST_PASSWORD = 'correct-horse'


@pytest.fixture
def auth_settings() -> AuthSettings:
    return AuthSettings(secret_key='test-secret', token_lifetime=timedelta(days=7))


@pytest.fixture
def token_service(auth_settings) -> TokenService:
    return TokenService(auth_settings)


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    init_db(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def app(auth_settings, db_session):
    application = create_app(auth_settings)

    def override_get_db():
        yield db_session

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def make_user(db, *, email, role=ROLE_STUDENT, name='Test User', department='CS', student_id=None, password=TEST_PASSWORD):
    is_student = role == ROLE_STUDENT
    user = User(
        name=name,
        email=email,
        password=hash_password(password),
        role=role,
        department=department if is_student else None,
        student_id=(student_id or f'S-{email}') if is_student else None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session) -> User:
    return make_user(db_session, email='admin@campus.edu', role=ROLE_ADMIN, name='Ada Admin')


@pytest.fixture
def student_user(db_session) -> User:
    return make_user(db_session, email='student@campus.edu', name='Sam Student', student_id='S100')


def login(client, user_email, password=TEST_PASSWORD):
    response = client.post('/auth/login', json={'email': user_email, 'password': password})
    assert response.status_code == 200
    return response


@pytest.fixture
def admin_client(client, admin_user):
    login(client, admin_user.email)
    return client


@pytest.fixture
def student_client(client, student_user):
    login(client, student_user.email)
    return client


@pytest.fixture
def create_user(db_session):
    def _create(**kwargs) -> User:
        return make_user(db_session, **kwargs)

    return _create


@pytest.fixture
def log_in(client):
    def _log_in(email, password=TEST_PASSWORD):
        return client.post('/auth/login', json={'email': email, 'password': password})

    return _log_in
