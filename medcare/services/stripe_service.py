"""
MedCare Backend: Stripe Payment Gateway
=========================================

What:  PaymentGateway implementation backed by the Stripe PaymentIntents API.
Why:   The frontend completes card payments client-side with Stripe Elements;
       the backend only needs to create the intent and hand back its secret.
How:   Calls stripe.PaymentIntent.create in a worker thread, wrapped in
       tenacity retries and a circuit breaker.

Resilience Strategy:
    1. Tenacity retry with exponential backoff + jitter, only for transient
       Stripe errors (network, rate limit, Stripe-side 5xx)
    2. Circuit breaker: after N consecutive failed calls, reject instantly
       for M seconds
    3. Card and request errors are not retried; they fail on the first attempt
"""

import asyncio
import logging
import time
from typing import Optional

import stripe
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from medcare.config import settings
from medcare.exceptions import CircuitBreakerOpenError, PaymentGatewayError
from medcare.services.payment_base import PaymentGateway

logger = logging.getLogger(__name__)

# Errors that may succeed on a later attempt
TRANSIENT_STRIPE_ERRORS = (
    stripe.APIConnectionError,
    stripe.RateLimitError,
    stripe.APIError,
)


class CircuitBreaker:
    """
    Circuit breaker guarding the payment gateway.

    State Machine:
        CLOSED → failure_count reaches threshold → OPEN
        OPEN → recovery_timeout elapses → HALF_OPEN (one trial call)
        HALF_OPEN → success → CLOSED; failure → OPEN

    Not thread-safe; all callers share one event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info("Circuit breaker transitioning to HALF_OPEN after %.1fs", elapsed)
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (gateway recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (trial call failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


class StripeGateway(PaymentGateway):
    """Creates Stripe PaymentIntents for camp fees."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

    async def create_payment_intent(self, amount_minor: int, currency: str) -> str:
        """
        Create a card PaymentIntent and return its client secret.

        Flow:
            1. Check circuit breaker → may raise CircuitBreakerOpenError
            2. Call Stripe with retry (transient errors only)
            3. Record success/failure in circuit breaker
        """
        self.circuit_breaker.can_execute()

        try:
            intent = await self._create_with_retry(amount_minor, currency)
        except RetryError as e:
            self.circuit_breaker.record_failure()
            last = e.last_attempt.exception() if e.last_attempt else None
            logger.error("All Stripe retries exhausted: %s", last)
            raise PaymentGatewayError(
                message="Payment service failed after multiple attempts. Please try again later.",
                retry_after=self.circuit_breaker.recovery_timeout,
                context={"attempts": settings.retry_max_attempts},
            )
        except stripe.StripeError as e:
            self.circuit_breaker.record_failure()
            logger.error("Stripe rejected payment intent: %s", e.user_message or str(e))
            raise PaymentGatewayError(
                message=e.user_message or "The payment could not be created.",
                context={"error_type": type(e).__name__},
            )

        self.circuit_breaker.record_success()
        secret = getattr(intent, "client_secret", None) or intent["client_secret"]
        logger.info("Created payment intent for %d %s", amount_minor, currency)
        return secret

    @retry(
        retry=retry_if_exception_type(TRANSIENT_STRIPE_ERRORS),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_min_wait,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        )
        + wait_random(0, 1),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=False,
    )
    async def _create_with_retry(self, amount_minor: int, currency: str):
        # The Stripe SDK is blocking; keep it off the event loop
        start_time = time.time()
        try:
            return await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=amount_minor,
                currency=currency,
                payment_method_types=["card"],
                api_key=self.api_key,
            )
        except Exception as e:
            logger.warning(
                "Stripe call failed after %.0fms: %s",
                (time.time() - start_time) * 1000,
                str(e),
            )
            raise

    def status(self) -> str:
        if self.circuit_breaker.state == CircuitBreaker.OPEN:
            return "circuit_open"
        if not self.api_key:
            return "unconfigured"
        return "available"


stripe_gateway = StripeGateway()
