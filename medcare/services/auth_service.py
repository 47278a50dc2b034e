"""
MedCare Backend: Session Token Service (Token Verifier)
=========================================================

What:  Issues and verifies the signed session token carried in the cookie.
Why:   Every protected route starts from the identity claims produced here.
How:   HS256 JWT via python-jose. Verification returns a TokenResult value
       (claims on success, failure kind otherwise) instead of raising, so the
       caller decides how to log and respond.
Who:   POST /auth/jwt calls issue_token(); the get_current_claims dependency
       calls verify_token() on every protected request.

Failure kinds:
    missing  → no cookie was sent
    invalid  → bad signature, malformed token, expired, or no email claim
    Both map to the same 401 response; the kind is only logged.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

from medcare.config import settings

logger = logging.getLogger(__name__)

FAILURE_MISSING = "missing"
FAILURE_INVALID = "invalid"


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims decoded from a valid session token."""
    email: str
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class TokenResult:
    """
    Outcome of verifying a session token.

    Exactly one of `claims` and `failure` is set.
    """
    claims: Optional[TokenClaims] = None
    failure: Optional[str] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


class AuthService:
    """Signs and verifies session tokens with the configured secret."""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None,
    ):
        self._secret = secret
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    # Settings are read lazily so tests can patch them after import
    @property
    def secret(self) -> str:
        return self._secret if self._secret is not None else settings.jwt_secret

    @property
    def algorithm(self) -> str:
        return self._algorithm or settings.jwt_algorithm

    @property
    def expire_minutes(self) -> int:
        return self._expire_minutes or settings.jwt_expire_minutes

    def issue_token(self, email: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        Sign a session token for the given email.

        Args:
            email: Identity claim to embed
            expires_delta: Override for the configured lifetime

        Returns:
            Encoded JWT string suitable for the session cookie.
        """
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=self.expire_minutes)
        )
        payload = {"email": email, "exp": expire}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> TokenResult:
        """
        Verify a session token and decode its claims.

        Never raises for a bad token; the failure is described in the result.
        """
        if not token:
            return TokenResult(failure=FAILURE_MISSING)

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return TokenResult(failure=FAILURE_INVALID, detail="expired")
        except JWTError as e:
            return TokenResult(failure=FAILURE_INVALID, detail=str(e))

        email = payload.get("email")
        if not email or not isinstance(email, str):
            return TokenResult(failure=FAILURE_INVALID, detail="missing email claim")

        exp = payload.get("exp")
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
        return TokenResult(claims=TokenClaims(email=email, expires_at=expires_at))


auth_service = AuthService()
