import hashlib
import hmac
import logging
import uuid
from datetime import datetime
from decimal import Decimal

import requests
from flask import current_app

from smart_train.extensions import db
from smart_train.models.ticket import STATUS_AVAILABLE, STATUS_SOLD
from smart_train.models.ticket_payment import (
    TicketPayment,
    PAYMENT_PENDING,
    PAYMENT_SUCCESS,
    PAYMENT_FAILED,
    PAYMENT_UNFULFILLED,
)
from smart_train.services.escrow_service import purchase_ticket
from smart_train.services.ticket_service import get_ticket
from smart_train.utils.exceptions import (
    PaymentNotFound,
    PaymentProviderError,
    TicketUnavailable,
)

logger = logging.getLogger(__name__)

TICKET_PURCHASE = "ticket_purchase"


def to_minor_units(amount):
    return int((Decimal(amount) * 100).to_integral_value())


class PaystackClient:
    """Thin wrapper over the Paystack transaction API."""

    def __init__(self, secret_key, base_url="https://api.paystack.co", timeout=10):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_config(cls, config):
        return cls(
            secret_key=config["PAYSTACK_SECRET_KEY"],
            base_url=config.get("PAYSTACK_BASE_URL", "https://api.paystack.co"),
            timeout=config.get("PAYSTACK_TIMEOUT", 10),
        )

    def initialize_transaction(self, email, amount, currency, reference, callback_url=None, metadata=None):
        payload = {
            "email": email,
            "amount": to_minor_units(amount),
            "currency": currency,
            "reference": reference,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url

        try:
            res = requests.post(
                f"{self.base_url}/transaction/initialize",
                json=payload,
                headers={"Authorization": f"Bearer {self.secret_key}"},
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise PaymentProviderError("Payment provider timed out")
        except requests.RequestException as e:
            logger.warning("Paystack initialize failed: %s", e)
            raise PaymentProviderError("Payment provider unreachable")

        try:
            result = res.json()
        except ValueError:
            raise PaymentProviderError("Unexpected payment provider response", {"http_status": res.status_code})

        if res.status_code >= 400 or not result.get("status"):
            raise PaymentProviderError(
                "Could not create payment session",
                {"provider_message": result.get("message")},
            )
        return result["data"]

    def verify_signature(self, body, signature):
        if not signature:
            return False
        computed = hmac.new(self.secret_key.encode(), body, hashlib.sha512).hexdigest()
        return hmac.compare_digest(computed, signature)


def get_payment_client():
    return PaystackClient.from_config(current_app.config)


def customer_email(user):
    return f"{user.national_id}@{current_app.config['PAYSTACK_EMAIL_DOMAIN']}"


def create_payment_session(ticket_id, buyer, client=None):
    """Open a checkout for ``ticket_id`` and return the provider redirect URL.

    The ticket stays ``available`` until the provider confirms the charge.
    """
    ticket = get_ticket(ticket_id)
    if ticket.status != STATUS_AVAILABLE:
        raise TicketUnavailable(ticket_id)

    client = client or get_payment_client()
    currency = current_app.config["CURRENCY"]
    reference = f"tkt_{ticket.id}_{uuid.uuid4().hex[:8]}"

    data = client.initialize_transaction(
        email=customer_email(buyer),
        amount=ticket.price,
        currency=currency,
        reference=reference,
        callback_url=current_app.config.get("PAYSTACK_CALLBACK_URL"),
        metadata={
            "type": TICKET_PURCHASE,
            "ticket_id": ticket.id,
            "buyer_id": buyer.id,
        },
    )

    payment = TicketPayment(
        ticket_id=ticket.id,
        buyer_id=buyer.id,
        reference=reference,
        authorization_url=data.get("authorization_url"),
        amount=ticket.price,
        currency=currency,
        status=PAYMENT_PENDING,
    )
    db.session.add(payment)
    db.session.commit()

    return {
        "payment_id": payment.id,
        "reference": reference,
        "authorization_url": payment.authorization_url,
        "amount": payment.amount,
        "currency": currency,
    }


def charge_mismatch(payment, data):
    """Reason the charge does not match the payment, or None."""
    if data.get("amount") is not None:
        try:
            charged = int(data["amount"])
        except (TypeError, ValueError):
            return f"non-numeric amount {data['amount']!r}"
        if charged != to_minor_units(payment.amount):
            return f"amount {charged} expected {to_minor_units(payment.amount)}"

    currency = data.get("currency")
    if currency is not None and str(currency).upper() != (payment.currency or "").upper():
        return f"currency {currency} expected {payment.currency}"
    return None


def handle_charge_success(data):
    """Apply a confirmed charge: the ticket is sold only now.

    Idempotent per reference; a repeated webhook is a no-op.
    """
    reference = data.get("reference")
    payment = TicketPayment.query.filter_by(reference=reference).first()
    if not payment:
        raise PaymentNotFound(reference)

    if payment.status != PAYMENT_PENDING:
        return payment

    mismatch = charge_mismatch(payment, data)
    if mismatch:
        logger.warning("Rejecting charge for payment %s: %s", payment.id, mismatch)
        payment.status = PAYMENT_FAILED
        db.session.commit()
        return payment

    try:
        purchase_ticket(payment.ticket_id, payment.buyer_id)
        payment.status = PAYMENT_SUCCESS
    except TicketUnavailable:
        ticket = get_ticket(payment.ticket_id)
        if ticket.status == STATUS_SOLD and ticket.buyer_id == payment.buyer_id:
            payment.status = PAYMENT_SUCCESS
        else:
            logger.warning("Ticket %s sold before payment %s was confirmed", payment.ticket_id, payment.id)
            payment.status = PAYMENT_UNFULFILLED

    payment.paid_at = datetime.utcnow()
    db.session.commit()
    return payment
