"""Resolve the caller's session from a cookie or a bearer header.

The cookie wins when both are present. ``resolve_session`` reports why a
session is missing (no token, expired token, bad token) so callers can tell
the cases apart; ``current_user`` collapses all of them to ``None``.
"""

import enum
from dataclasses import dataclass

from starlette.requests import HTTPConnection

from campus_events.auth.jwt_handler import ExpiredToken, InvalidToken, SessionClaims, TokenService

BEARER_PREFIX = "bearer "


class SessionStatus(str, enum.Enum):
    ABSENT = "absent"
    EXPIRED = "expired"
    INVALID = "invalid"
    VALID = "valid"


@dataclass(frozen=True)
class SessionResult:
    status: SessionStatus
    claims: SessionClaims | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.VALID


def token_from_cookie(request: HTTPConnection, cookie_name: str) -> str | None:
    return request.cookies.get(cookie_name) or None


def token_from_header(request: HTTPConnection) -> str | None:
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip() or None
    return None


def extract_token(request: HTTPConnection, cookie_name: str) -> str | None:
    return token_from_cookie(request, cookie_name) or token_from_header(request)


def verify_token(token: str | None, tokens: TokenService) -> SessionResult:
    if not token:
        return SessionResult(SessionStatus.ABSENT)
    try:
        claims = tokens.verify(token)
    except ExpiredToken:
        return SessionResult(SessionStatus.EXPIRED)
    except InvalidToken:
        return SessionResult(SessionStatus.INVALID)
    return SessionResult(SessionStatus.VALID, claims)


def resolve_session(request: HTTPConnection, tokens: TokenService, cookie_name: str) -> SessionResult:
    return verify_token(extract_token(request, cookie_name), tokens)


def current_user(request: HTTPConnection, tokens: TokenService, cookie_name: str) -> SessionClaims | None:
    return resolve_session(request, tokens, cookie_name).claims
