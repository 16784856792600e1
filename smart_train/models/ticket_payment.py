from smart_train.extensions import db
from datetime import datetime
import uuid

PAYMENT_PENDING = "pending"
PAYMENT_SUCCESS = "success"
PAYMENT_FAILED = "failed"
# charge succeeded but the ticket was sold to someone else first
PAYMENT_UNFULFILLED = "unfulfilled"


def gen_payment_id():
    return f"PAY-{str(uuid.uuid4())[:10]}"


class TicketPayment(db.Model):
    __tablename__ = "ticket_payments"

    __table_args__ = (
        db.Index("idx_ticket_payments_ticket_id", "ticket_id"),
        db.Index("idx_ticket_payments_status", "status"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_payment_id)
    ticket_id = db.Column(db.String(50), db.ForeignKey("tickets.id"), nullable=False)
    buyer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False)

    gateway = db.Column(db.String(50), default="paystack")
    reference = db.Column(db.String(255), unique=True, nullable=False)
    authorization_url = db.Column(db.String(1024))

    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), default="EGP")
    status = db.Column(db.String(30), default=PAYMENT_PENDING)

    paid_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    ticket = db.relationship("Ticket", backref="payments")
