from smart_train.extensions import db
from sqlalchemy.sql import func
import uuid

STATUS_AVAILABLE = "available"
STATUS_SOLD = "sold"


def gen_ticket_id():
    return f"TKT-{uuid.uuid4().hex[:10]}"


class Ticket(db.Model):
    __tablename__ = "tickets"

    __table_args__ = (
        db.Index("idx_tickets_status_released", "status", "payment_released"),
        db.CheckConstraint("price > 0", name="ck_tickets_price_positive"),
        db.CheckConstraint("trip_duration_minutes > 0", name="ck_tickets_duration_positive"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_ticket_id)

    seller_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=False, index=True)
    buyer_id = db.Column(db.String(50), db.ForeignKey("users.id"), nullable=True, index=True)

    from_station = db.Column(db.String(255), nullable=False)
    to_station = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    type = db.Column(db.String(50))
    image_url = db.Column(db.String(1024), nullable=False)

    trip_start = db.Column(db.DateTime(timezone=True), nullable=False)
    trip_duration_minutes = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=STATUS_AVAILABLE)
    payment_released = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    seller = db.relationship("User", foreign_keys=[seller_id], backref="listed_tickets", lazy=True)
    buyer = db.relationship("User", foreign_keys=[buyer_id], backref="purchased_tickets", lazy=True)
