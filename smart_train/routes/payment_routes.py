from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from smart_train.extensions import db
from smart_train.models.user import User
from smart_train.services.payment_service import (
    create_payment_session,
    get_payment_client,
    handle_charge_success,
    TICKET_PURCHASE,
)
from smart_train.utils.exceptions import PaymentNotFound
from smart_train.utils.response_formatter import success_response, error_response

bp = Blueprint("payments", __name__, url_prefix="/api/v1/payments")


@bp.route("/checkout", methods=["POST"])
@jwt_required()
def checkout():
    uid = get_jwt_identity()
    data = request.get_json(silent=True) or {}

    ticket_id = data.get("ticket_id")
    if not ticket_id:
        return error_response("VALIDATION_ERROR", "ticket_id is required", {"field": "ticket_id"})

    buyer = db.session.get(User, uid)
    if not buyer:
        return error_response("NOT_FOUND", "User not found", status=404)

    session = create_payment_session(ticket_id, buyer)
    return success_response({
        "payment_id": session["payment_id"],
        "reference": session["reference"],
        "authorization_url": session["authorization_url"],
        "amount": str(session["amount"]),
        "currency": session["currency"],
    }, status=201)


@bp.route("/webhook", methods=["POST"])
def paystack_webhook():
    client = get_payment_client()
    body = request.get_data()

    if not client.verify_signature(body, request.headers.get("x-paystack-signature")):
        return "Invalid signature", 401

    payload = request.get_json(silent=True) or {}
    if payload.get("event") != "charge.success":
        return "OK", 200

    data = payload.get("data") or {}
    if (data.get("metadata") or {}).get("type") != TICKET_PURCHASE:
        return "OK", 200

    try:
        payment = handle_charge_success(data)
    except PaymentNotFound:
        current_app.logger.warning("Webhook for unknown reference %s", data.get("reference"))
        return "Payment not found", 404

    current_app.logger.info("Payment %s for ticket %s is %s", payment.id, payment.ticket_id, payment.status)
    return "OK", 200
