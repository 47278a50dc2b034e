"""
MedCare Backend: Request Timeout Middleware
=============================================

What:  Bounds the wall-clock time of each request.
Why:   Neither the database driver nor the Stripe SDK guarantees a deadline;
       a hung upstream call must not hold the client forever.
How:   Runs the downstream app under asyncio.wait_for and answers 504 when
       settings.request_timeout elapses. The handler coroutine is cancelled,
       which rolls back its open transaction.
"""

import asyncio
import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from medcare.config import settings
from medcare.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.request_timeout)
        except asyncio.TimeoutError:
            rid = request_id_var.get("")
            logger.error(
                "[%s] %s %s exceeded %.1fs timeout",
                rid,
                request.method,
                request.url.path,
                settings.request_timeout,
            )
            return JSONResponse(
                status_code=504,
                content={
                    "error": "request_timeout",
                    "message": "The request took too long to complete. Please try again.",
                    "request_id": rid,
                },
            )
