import logging
from dataclasses import dataclass

from fastapi import status
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from campus_events.auth.session import SessionResult, token_from_cookie, verify_token
from campus_events.models.user import ROLE_ADMIN

logger = logging.getLogger(__name__)

LOGIN_PAGE = "/login"
ADMIN_LANDING_PAGE = "/admin"
STUDENT_LANDING_PAGE = "/dashboard"

PROTECTED_PREFIXES = ("/dashboard", "/admin", "/profile")
ADMIN_PREFIXES = ("/admin",)
AUTH_PAGES = ("/login", "/register")


def landing_page_for(role: str | None) -> str:
    return ADMIN_LANDING_PAGE if role == ROLE_ADMIN else STUDENT_LANDING_PAGE


def matches_prefix(path: str, prefixes: tuple[str, ...]) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in prefixes)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


class RoutePrefixGuard(BaseHTTPMiddleware):
    """Redirects page requests that need a session before they reach a route.

    Only the session cookie counts here; bearer headers are for API clients
    and are checked by the route dependencies instead.
    """

    def __init__(
        self,
        app,
        protected_prefixes: tuple[str, ...] = PROTECTED_PREFIXES,
        admin_prefixes: tuple[str, ...] = ADMIN_PREFIXES,
        auth_pages: tuple[str, ...] = AUTH_PAGES,
    ):
        super().__init__(app)
        self.protected_prefixes = protected_prefixes
        self.admin_prefixes = admin_prefixes
        self.auth_pages = auth_pages

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        is_protected = matches_prefix(path, self.protected_prefixes)
        is_auth_page = path in self.auth_pages

        if not (is_protected or is_auth_page):
            return await call_next(request)

        settings = request.app.state.auth_settings
        session = verify_token(token_from_cookie(request, settings.cookie_name), request.app.state.tokens)

        if is_protected:
            if not session.is_authenticated:
                logger.info("Redirecting %s to login (%s session)", path, session.status.value)
                return redirect(LOGIN_PAGE)
            if matches_prefix(path, self.admin_prefixes) and session.claims.role != ROLE_ADMIN:
                return redirect(STUDENT_LANDING_PAGE)

        if is_auth_page and session.is_authenticated:
            return redirect(landing_page_for(session.claims.role))

        return await call_next(request)


@dataclass(frozen=True)
class PageAccess:
    allowed: bool
    redirect_to: str | None = None


def authorize_page(session: SessionResult, required_role: str | None = None) -> PageAccess:
    """Decide whether a page may render, before any of its markup is built."""
    if not session.is_authenticated:
        return PageAccess(allowed=False, redirect_to=LOGIN_PAGE)
    if required_role and session.claims.role != required_role:
        return PageAccess(allowed=False, redirect_to=landing_page_for(session.claims.role))
    return PageAccess(allowed=True)
