"""
MedCare Backend: Request Dependencies (Authentication & Authorization)
========================================================================

What:  FastAPI dependencies that gate protected routes.
Why:   Keeps the token check and role checks out of the route bodies; a
       route declares what it needs in its signature and nothing runs
       before the gates pass.
How:
    get_current_claims   reads the session cookie, verifies it, and
                         attaches the claims to request.state
    require_role(role)   runs after get_current_claims, looks up the user
                         once, and compares roles

Ordering:
    Request → get_current_claims (401) → require_role (403) → handler
    Both gates are read-only, so a rejected request has made no writes.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.config import settings
from medcare.database import get_db_session
from medcare.exceptions import AuthenticationError, AuthorizationError
from medcare.middleware.request_id import request_id_var
from medcare.models.user import UserRole
from medcare.services.auth_service import TokenClaims, auth_service
from medcare.services.payment_base import PaymentGateway
from medcare.services.stripe_service import stripe_gateway
from medcare.services.user_service import user_service

logger = logging.getLogger(__name__)


async def get_current_claims(request: Request) -> TokenClaims:
    """
    Verify the session cookie and return its claims.

    Missing and invalid credentials produce the same 401 response; only the
    log line tells them apart.
    """
    token = request.cookies.get(settings.token_cookie_name)
    result = auth_service.verify_token(token)

    if not result.ok:
        logger.info(
            "[%s] Rejected credential on %s: %s%s",
            request_id_var.get(""),
            request.url.path,
            result.failure,
            f" ({result.detail})" if result.detail else "",
        )
        raise AuthenticationError(reason=result.failure or "invalid")

    request.state.user = result.claims
    return result.claims


def require_role(role: UserRole):
    """
    Build a dependency that allows only users holding `role`.

    Usage:
        @router.post("/camps")
        async def create_camp(claims: TokenClaims = Depends(require_organizer)): ...
    """

    async def role_dependency(
        claims: TokenClaims = Depends(get_current_claims),
        db: AsyncSession = Depends(get_db_session),
    ) -> TokenClaims:
        if not await user_service.has_role(db, claims.email, role):
            logger.info(
                "[%s] %s denied: requires role %s",
                request_id_var.get(""),
                claims.email,
                role.value,
            )
            raise AuthorizationError(required_role=role.value)
        return claims

    return role_dependency


require_organizer = require_role(UserRole.ORGANIZER)
require_participant = require_role(UserRole.PARTICIPANT)
require_admin = require_role(UserRole.ADMIN)


def get_payment_gateway() -> PaymentGateway:
    """The process-wide gateway; tests override this dependency with a fake."""
    return stripe_gateway
