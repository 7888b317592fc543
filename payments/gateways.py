"""
In-process payment providers.

They issue provider-shaped identifiers (Stripe payment intents, PayPal
orders) and check the confirmation details a client sends back, without
talking to the real services.
"""
import logging
import uuid
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    pass


@dataclass
class PaymentIntent:
    transaction_id: str
    client_secret: str = ""
    redirect_url: str = ""


class PaymentGateway:
    name = ""

    def create_intent(self, payment) -> PaymentIntent:
        raise NotImplementedError

    def verify(self, payment, details: dict) -> bool:
        raise NotImplementedError

    def refund(self, payment, amount) -> str:
        refund_id = f"re_{uuid.uuid4().hex[:24]}"
        logger.info(
            "Refund issued provider=%s payment_id=%s amount=%s refund_id=%s",
            self.name, payment.id, amount, refund_id,
        )
        return refund_id


class StripeGateway(PaymentGateway):
    name = "stripe"
    succeeded_statuses = {"succeeded"}

    def create_intent(self, payment) -> PaymentIntent:
        intent_id = f"pi_{uuid.uuid4().hex[:24]}"
        return PaymentIntent(
            transaction_id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid.uuid4().hex[:24]}",
        )

    def verify(self, payment, details: dict) -> bool:
        intent_id = details.get("paymentIntentId")
        if intent_id and intent_id != payment.transaction_id:
            return False
        status = details.get("status")
        return status is None or status in self.succeeded_statuses


class PayPalGateway(PaymentGateway):
    name = "paypal"
    approve_url = "https://www.paypal.com/checkoutnow?token={order_id}"
    succeeded_statuses = {"COMPLETED", "APPROVED"}

    def create_intent(self, payment) -> PaymentIntent:
        order_id = f"PAYPAL-{uuid.uuid4().hex[:16].upper()}"
        return PaymentIntent(
            transaction_id=order_id,
            redirect_url=self.approve_url.format(order_id=order_id),
        )

    def verify(self, payment, details: dict) -> bool:
        order_id = details.get("orderId")
        if order_id and order_id != payment.transaction_id:
            return False
        status = details.get("status")
        return status is None or str(status).upper() in self.succeeded_statuses


GATEWAYS = {
    StripeGateway.name: StripeGateway(),
    PayPalGateway.name: PayPalGateway(),
}


def get_gateway(provider: str) -> PaymentGateway:
    try:
        return GATEWAYS[provider]
    except KeyError:
        raise GatewayError(f"Unsupported payment provider '{provider}'.")
