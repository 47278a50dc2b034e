"""
MedCare Backend: Abstract Payment Gateway Interface
=====================================================

What:  Abstract base class for the remote service that creates charges.
Why:   Routes and services depend on this contract, not on Stripe, so tests
       can substitute a fake gateway and the provider can change later.
How:   Concrete implementations inherit from PaymentGateway.
"""

from abc import ABC, abstractmethod


class PaymentGateway(ABC):
    """
    Contract:
        - create_payment_intent() returns a client secret for a client-side charge
        - Implementations handle their own retries and wrap provider errors
          in PaymentGatewayError
    """

    @abstractmethod
    async def create_payment_intent(self, amount_minor: int, currency: str) -> str:
        """
        Create a payment intent on the provider.

        Args:
            amount_minor: Amount in the currency's minor unit (cents for USD)
            currency: ISO currency code, lowercase

        Returns:
            The intent's client secret.

        Raises:
            PaymentGatewayError: Provider failed after all retries
            CircuitBreakerOpenError: Too many recent failures
        """
        ...

    @abstractmethod
    def status(self) -> str:
        """Cheap, local availability report for the health endpoint."""
        ...
