"""
MedCare Backend: Stripe Gateway Unit Tests (Mocked)
=====================================================

What:  Tests for StripeGateway with stripe.PaymentIntent.create patched out.
Why:   Tests must not reach the Stripe API.

What we test:
    ✅ Successful intent creation returns the client secret
    ✅ Transient errors are retried, card errors are not
    ✅ Exhausted retries surface as PaymentGatewayError
    ✅ Circuit breaker opens after consecutive failures and blocks calls
    ❌ Real API calls (use Stripe test mode manually for that)
"""

import time
from unittest.mock import MagicMock, patch

import pytest
import stripe
from tenacity import RetryCallState

from medcare.config import settings
from medcare.exceptions import CircuitBreakerOpenError, PaymentGatewayError
from medcare.services.stripe_service import CircuitBreaker, StripeGateway


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        assert cb.state == "closed"
        assert cb.failure_count == 0
        assert cb.can_execute() is True

    def test_stays_closed_under_threshold(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == "closed"
        cb.can_execute()

    def test_opens_at_threshold_and_rejects_calls(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=60)
        for _ in range(3):
            cb.record_failure()

        assert cb.state == "open"
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert 0 < exc_info.value.recovery_time <= 60

    def test_half_open_after_recovery_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0)
        cb.record_failure()
        time.sleep(0.01)

        assert cb.can_execute() is True
        assert cb.state == "half_open"

    def test_half_open_failure_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=0)
        cb.state = CircuitBreaker.HALF_OPEN

        cb.record_failure()

        assert cb.state == "open"

    def test_success_resets(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        cb.record_failure()
        cb.record_failure()

        cb.record_success()

        assert cb.failure_count == 0
        assert cb.state == "closed"


def _intent(secret: str = "pi_123_secret_abc") -> MagicMock:
    intent = MagicMock()
    intent.client_secret = secret
    return intent


class TestStripeGatewayMocked:

    @pytest.mark.asyncio
    async def test_create_payment_intent_success(self):
        gateway = StripeGateway(api_key="sk_test_abc")

        with patch.object(stripe.PaymentIntent, "create", return_value=_intent()) as mock_create:
            secret = await gateway.create_payment_intent(2500, "usd")

        assert secret == "pi_123_secret_abc"
        mock_create.assert_called_once_with(
            amount=2500,
            currency="usd",
            payment_method_types=["card"],
            api_key="sk_test_abc",
        )
        assert gateway.circuit_breaker.failure_count == 0

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self):
        gateway = StripeGateway(api_key="sk_test_abc")
        side_effect = [stripe.APIConnectionError("connection reset"), _intent("pi_retry_secret")]

        with patch.object(stripe.PaymentIntent, "create", side_effect=side_effect) as mock_create:
            secret = await gateway.create_payment_intent(1000, "usd")

        assert secret == "pi_retry_secret"
        assert mock_create.call_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_gateway_error(self):
        gateway = StripeGateway(api_key="sk_test_abc")

        with patch.object(
            stripe.PaymentIntent, "create", side_effect=stripe.APIConnectionError("down")
        ) as mock_create:
            with pytest.raises(PaymentGatewayError) as exc_info:
                await gateway.create_payment_intent(1000, "usd")

        # RETRY_MAX_ATTEMPTS is 2 in the test environment
        assert mock_create.call_count == 2
        assert exc_info.value.retry_after == gateway.circuit_breaker.recovery_timeout
        assert gateway.circuit_breaker.failure_count == 1

    @pytest.mark.asyncio
    async def test_card_error_is_not_retried(self):
        gateway = StripeGateway(api_key="sk_test_abc")
        error = stripe.CardError("Your card was declined.", param="card", code="card_declined")

        with patch.object(stripe.PaymentIntent, "create", side_effect=error) as mock_create:
            with pytest.raises(PaymentGatewayError) as exc_info:
                await gateway.create_payment_intent(1000, "usd")

        assert mock_create.call_count == 1
        assert exc_info.value.message == "Your card was declined."

    @pytest.mark.asyncio
    async def test_open_circuit_blocks_without_calling_stripe(self):
        gateway = StripeGateway(api_key="sk_test_abc")
        gateway.circuit_breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        gateway.circuit_breaker.record_failure()

        with patch.object(stripe.PaymentIntent, "create") as mock_create:
            with pytest.raises(CircuitBreakerOpenError):
                await gateway.create_payment_intent(1000, "usd")

        mock_create.assert_not_called()

    def test_status(self):
        assert StripeGateway(api_key="").status() == "unconfigured"

        gateway = StripeGateway(api_key="sk_test_abc")
        assert gateway.status() == "available"

        gateway.circuit_breaker.state = CircuitBreaker.OPEN
        assert gateway.status() == "circuit_open"

    def test_retry_wait_stays_within_configured_bounds(self):
        wait = StripeGateway._create_with_retry.retry.wait
        state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})

        for attempt in (1, 3, 10):
            state.attempt_number = attempt
            assert 0 <= wait(state) <= settings.retry_max_wait + 1
