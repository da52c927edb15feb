"""Payment gateway collaborator.

The core only depends on ``PaymentGateway.charge(GatewayRequest) -> GatewayResult``.
``SimulatedGateway`` stands in for the card/USSD provider: it waits a
configurable latency and declines a configurable share of charges.
"""
import logging
import random
import string
import time
from dataclasses import dataclass
from typing import Optional

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayRequest:
    amount: int
    customer_email: str
    customer_phone: str
    customer_name: str
    narrative: str
    currency: str = "NGN"


@dataclass(frozen=True)
class GatewayResult:
    success: bool
    transaction_id: str = ""
    failure_reason: Optional[str] = None


class PaymentGateway:
    def charge(self, request: GatewayRequest) -> GatewayResult:
        raise NotImplementedError


class SimulatedGateway(PaymentGateway):
    DECLINE_MESSAGE = "Payment was declined. Please try again with a different payment method."

    def __init__(self, latency_seconds: float = 0.0, decline_rate: float = 0.0, rng: Optional[random.Random] = None):
        self.latency_seconds = latency_seconds
        self.decline_rate = decline_rate
        self.rng = rng or random.Random()

    def charge(self, request: GatewayRequest) -> GatewayResult:
        if self.latency_seconds:
            time.sleep(self.latency_seconds)

        if self.rng.random() < self.decline_rate:
            logger.info("Simulated gateway declined %s charge of %d", request.currency, request.amount)
            return GatewayResult(success=False, failure_reason=self.DECLINE_MESSAGE)

        suffix = "".join(self.rng.choices(string.ascii_lowercase + string.digits, k=9))
        transaction_id = f"flw_{int(time.time() * 1000)}_{suffix}"
        logger.info("Simulated gateway approved %s charge of %d as %s", request.currency, request.amount, transaction_id)
        return GatewayResult(success=True, transaction_id=transaction_id)


def build_gateway() -> PaymentGateway:
    return SimulatedGateway(
        latency_seconds=settings.GATEWAY_LATENCY_SECONDS,
        decline_rate=settings.GATEWAY_DECLINE_RATE,
    )
