from fastapi import Depends, Request

from campus_events.auth.jwt_handler import SessionClaims, TokenService
from campus_events.auth.session import SessionResult, resolve_session
from campus_events.core.errors import Forbidden, Unauthorized
from campus_events.models.user import ROLE_ADMIN


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_session(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> SessionResult:
    return resolve_session(request, tokens, tokens.settings.cookie_name)


def get_current_claims(session: SessionResult = Depends(get_session)) -> SessionClaims:
    if not session.is_authenticated:
        raise Unauthorized("Unauthorized")
    return session.claims


def require_role(role: str, message: str):
    def dependency(claims: SessionClaims = Depends(get_current_claims)) -> SessionClaims:
        if claims.role != role:
            raise Forbidden(message)
        return claims

    return dependency


require_admin = require_role(ROLE_ADMIN, "Admin access required")
require_analytics_admin = require_role(ROLE_ADMIN, "Forbidden")
