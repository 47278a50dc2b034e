"""
MedCare Backend: Session Route Handlers
=========================================

What:  POST /auth/jwt issues the session cookie; POST /auth/logout clears it.
Who:   Called by the frontend right after identity-provider sign-in and on sign-out.

Cookie attributes:
    httpOnly always (scripts never read the token)
    Secure / SameSite from settings; a frontend on another site needs
    COOKIE_SECURE=true and COOKIE_SAMESITE=none
"""

import logging

from fastapi import APIRouter, Response

from medcare.config import settings
from medcare.schemas.common import MessageResponse
from medcare.schemas.user import TokenRequest
from medcare.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/jwt",
    response_model=MessageResponse,
    summary="Issue a session cookie",
)
async def issue_session(payload: TokenRequest, response: Response) -> MessageResponse:
    token = auth_service.issue_token(payload.email)
    response.set_cookie(
        key=settings.token_cookie_name,
        value=token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    logger.info("Issued session for %s", payload.email)
    return MessageResponse(message="Session started")


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Clear the session cookie",
)
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(
        key=settings.token_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
    )
    return MessageResponse(message="Logged out")
