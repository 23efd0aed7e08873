from datetime import datetime, timedelta, timezone

import jwt
import pytest

from campus_events.auth.jwt_handler import ExpiredToken, InvalidToken, SessionClaims, TokenService
from campus_events.core.config import AuthSettings

CLAIMS = SessionClaims(id=7, email='a@x.com', role='STUDENT', name='A')


def test_issue_then_verify_returns_original_claims(token_service: TokenService) -> None:
    token = token_service.issue(CLAIMS)

    assert token_service.verify(token) == CLAIMS


def test_issued_token_expires_after_configured_lifetime(token_service: TokenService) -> None:
    issued_at = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
    token = token_service.issue(CLAIMS, now=issued_at)

    payload = jwt.decode(token, options={'verify_signature': False, 'verify_exp': False})

    assert payload['sub'] == '7'
    assert payload['exp'] - payload['iat'] == int(timedelta(days=7).total_seconds())


def test_verify_rejects_expired_token(token_service: TokenService) -> None:
    token = token_service.issue(CLAIMS, now=datetime.now(timezone.utc) - timedelta(days=8))

    with pytest.raises(ExpiredToken):
        token_service.verify(token)


def test_verify_rejects_token_signed_with_another_secret(token_service: TokenService) -> None:
    other = TokenService(AuthSettings(secret_key='another-secret'))
    token = other.issue(CLAIMS)

    with pytest.raises(InvalidToken) as exception_info:
        token_service.verify(token)

    assert not isinstance(exception_info.value, ExpiredToken)


def test_verify_rejects_malformed_token(token_service: TokenService) -> None:
    with pytest.raises(InvalidToken):
        token_service.verify('not-a-jwt')


def test_verify_rejects_token_without_claim_set(token_service: TokenService, auth_settings: AuthSettings) -> None:
    token = jwt.encode(
        {'sub': '7', 'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
        auth_settings.secret_key,
        algorithm=auth_settings.algorithm,
    )

    with pytest.raises(InvalidToken):
        token_service.verify(token)


def test_verify_does_not_consult_storage_for_claims(token_service: TokenService) -> None:
    stale = SessionClaims(id=999, email='gone@x.com', role='ADMIN', name='Gone')

    assert token_service.verify(token_service.issue(stale)) == stale
