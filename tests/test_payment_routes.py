import hashlib
import hmac
import json
from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from smart_train.extensions import db
from smart_train.models.ticket import Ticket
from smart_train.models.ticket_payment import TicketPayment
from smart_train.services import payment_service
from smart_train.utils.exceptions import NotFound

SECRET = "sk_test_secret"


def _paystack_ok(reference="ignored"):
    res = Mock(status_code=200)
    res.json.return_value = {
        "status": True,
        "message": "Authorization URL created",
        "data": {
            "authorization_url": "https://checkout.paystack.com/abc123",
            "access_code": "abc123",
            "reference": reference,
        },
    }
    return res


@pytest.fixture
def paystack(monkeypatch):
    post = Mock(return_value=_paystack_ok())
    monkeypatch.setattr(payment_service.requests, "post", post)
    return post


def _signed_post(client, payload, secret=SECRET):
    body = json.dumps(payload).encode()
    signature = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
    return client.post(
        "/api/v1/payments/webhook",
        data=body,
        headers={"x-paystack-signature": signature, "Content-Type": "application/json"},
    )


def _charge_success(payment, amount=None):
    return {
        "event": "charge.success",
        "data": {
            "reference": payment.reference,
            "amount": amount if amount is not None else int(payment.amount * 100),
            "metadata": {
                "type": "ticket_purchase",
                "ticket_id": payment.ticket_id,
                "buyer_id": payment.buyer_id,
            },
        },
    }


def _checkout(client, ticket, buyer, auth_headers):
    return client.post("/api/v1/payments/checkout", json={"ticket_id": ticket.id}, headers=auth_headers(buyer))


def test_checkout_returns_redirect_without_selling(client, paystack, make_user, make_ticket, auth_headers):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, price="120")

    res = _checkout(client, ticket, buyer, auth_headers)

    assert res.status_code == 201
    body = res.get_json()
    assert body["authorization_url"] == "https://checkout.paystack.com/abc123"
    assert body["amount"] == "120.00"

    sent = paystack.call_args.kwargs
    assert sent["json"]["amount"] == 12000
    assert sent["json"]["metadata"]["ticket_id"] == ticket.id
    assert sent["headers"]["Authorization"] == f"Bearer {SECRET}"
    assert sent["timeout"] == 10

    db.session.expire_all()
    assert db.session.get(Ticket, ticket.id).status == "available"
    assert TicketPayment.query.filter_by(reference=body["reference"]).one().status == "pending"


def test_checkout_timeout_leaves_ticket_untouched(client, monkeypatch, make_user, make_ticket, auth_headers):
    monkeypatch.setattr(payment_service.requests, "post", Mock(side_effect=requests.Timeout()))
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller)

    res = _checkout(client, ticket, buyer, auth_headers)

    assert res.status_code == 502
    assert res.get_json()["error"]["code"] == "PAYMENT_PROVIDER_ERROR"
    assert TicketPayment.query.count() == 0
    assert db.session.get(Ticket, ticket.id).status == "available"


def test_checkout_provider_rejection(client, monkeypatch, make_user, make_ticket, auth_headers):
    rejected = Mock(status_code=400)
    rejected.json.return_value = {"status": False, "message": "Invalid key"}
    monkeypatch.setattr(payment_service.requests, "post", Mock(return_value=rejected))
    seller, buyer = make_user(), make_user()

    res = _checkout(client, make_ticket(seller), buyer, auth_headers)

    assert res.status_code == 502
    assert res.get_json()["error"]["details"]["provider_message"] == "Invalid key"


def test_checkout_sold_ticket(client, paystack, make_user, make_ticket, auth_headers):
    seller, first, second = make_user(), make_user(), make_user()
    ticket = make_ticket(seller)
    client.post(f"/api/v1/tickets/{ticket.id}/buy", headers=auth_headers(first))

    res = _checkout(client, ticket, second, auth_headers)

    assert res.status_code == 409
    paystack.assert_not_called()


def test_webhook_rejects_bad_signature(client):
    res = _signed_post(client, {"event": "charge.success", "data": {}}, secret="wrong")
    assert res.status_code == 401


def test_webhook_confirms_purchase_once(client, paystack, make_user, make_ticket, auth_headers, wallet_of):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, price="100")
    reference = _checkout(client, ticket, buyer, auth_headers).get_json()["reference"]
    payment = TicketPayment.query.filter_by(reference=reference).one()

    first = _signed_post(client, _charge_success(payment))
    again = _signed_post(client, _charge_success(payment))

    assert first.status_code == 200
    assert again.status_code == 200

    db.session.expire_all()
    sold = db.session.get(Ticket, ticket.id)
    assert sold.status == "sold"
    assert sold.buyer_id == buyer.id
    assert db.session.get(TicketPayment, payment.id).status == "success"
    assert wallet_of(seller).locked_balance == Decimal("90")


def test_webhook_for_ticket_sold_meanwhile(client, paystack, make_user, make_ticket, auth_headers, wallet_of):
    seller, buyer, rival = make_user(), make_user(), make_user()
    ticket = make_ticket(seller, price="100")
    reference = _checkout(client, ticket, buyer, auth_headers).get_json()["reference"]
    client.post(f"/api/v1/tickets/{ticket.id}/buy", headers=auth_headers(rival))
    payment = TicketPayment.query.filter_by(reference=reference).one()

    res = _signed_post(client, _charge_success(payment))

    assert res.status_code == 200
    db.session.expire_all()
    assert db.session.get(TicketPayment, payment.id).status == "unfulfilled"
    assert db.session.get(Ticket, ticket.id).buyer_id == rival.id
    assert wallet_of(seller).locked_balance == Decimal("90")


def test_webhook_amount_mismatch_fails_payment(client, paystack, make_user, make_ticket, auth_headers):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, price="100")
    reference = _checkout(client, ticket, buyer, auth_headers).get_json()["reference"]
    payment = TicketPayment.query.filter_by(reference=reference).one()

    _signed_post(client, _charge_success(payment, amount=100))

    db.session.expire_all()
    assert db.session.get(TicketPayment, payment.id).status == "failed"
    assert db.session.get(Ticket, ticket.id).status == "available"


def test_webhook_unknown_reference(client):
    payload = {
        "event": "charge.success",
        "data": {"reference": "tkt_missing", "metadata": {"type": "ticket_purchase"}},
    }
    assert _signed_post(client, payload).status_code == 404


def test_webhook_ignores_other_events(client):
    assert _signed_post(client, {"event": "transfer.success", "data": {}}).status_code == 200


def test_webhook_non_numeric_amount_fails_payment(client, paystack, make_user, make_ticket, auth_headers):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, price="100")
    reference = _checkout(client, ticket, buyer, auth_headers).get_json()["reference"]
    payment = TicketPayment.query.filter_by(reference=reference).one()

    res = _signed_post(client, _charge_success(payment, amount="ten thousand"))

    assert res.status_code == 200
    db.session.expire_all()
    assert db.session.get(TicketPayment, payment.id).status == "failed"
    assert db.session.get(Ticket, ticket.id).status == "available"


def test_webhook_currency_mismatch_fails_payment(client, paystack, make_user, make_ticket, auth_headers):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, price="100")
    reference = _checkout(client, ticket, buyer, auth_headers).get_json()["reference"]
    payment = TicketPayment.query.filter_by(reference=reference).one()
    payload = _charge_success(payment)
    payload["data"]["currency"] = "USD"

    _signed_post(client, payload)

    db.session.expire_all()
    assert db.session.get(TicketPayment, payment.id).status == "failed"
    assert db.session.get(Ticket, ticket.id).status == "available"


def test_webhook_missing_seller_wallet_is_not_reported_as_unknown_payment(
    client, monkeypatch, paystack, make_user, make_ticket, auth_headers
):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, price="100")
    reference = _checkout(client, ticket, buyer, auth_headers).get_json()["reference"]
    payment = TicketPayment.query.filter_by(reference=reference).one()

    def no_wallet(ticket_id, buyer_id):
        raise NotFound("Seller wallet not found")

    monkeypatch.setattr(payment_service, "purchase_ticket", no_wallet)

    res = _signed_post(client, _charge_success(payment))

    assert res.status_code == 404
    assert res.get_json()["error"]["message"] == "Seller wallet not found"
    db.session.expire_all()
    # left pending so the provider's retry can complete it
    assert db.session.get(TicketPayment, payment.id).status == "pending"
