from dataclasses import asdict, dataclass
from datetime import datetime, timezone

import jwt

from campus_events.core.config import AuthSettings


class InvalidToken(Exception):
    """The token is malformed, wrongly signed or missing claims."""


class ExpiredToken(InvalidToken):
    """The token signature is fine but its expiry has passed."""


@dataclass(frozen=True)
class SessionClaims:
    """Snapshot of the user taken at login; not refreshed from storage."""

    id: int
    email: str
    role: str
    name: str

    def to_dict(self) -> dict:
        return asdict(self)


class TokenService:
    def __init__(self, settings: AuthSettings):
        self.settings = settings

    def issue(self, claims: SessionClaims, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(claims.id),
            "email": claims.email,
            "role": claims.role,
            "name": claims.name,
            "iat": issued_at,
            "exp": issued_at + self.settings.token_lifetime,
        }
        return jwt.encode(payload, self.settings.secret_key, algorithm=self.settings.algorithm)

    def verify(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(
                token,
                self.settings.secret_key,
                algorithms=[self.settings.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredToken("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(str(exc)) from exc

        try:
            return SessionClaims(
                id=int(payload["sub"]),
                email=payload["email"],
                role=payload["role"],
                name=payload["name"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken("Token is missing claims") from exc
