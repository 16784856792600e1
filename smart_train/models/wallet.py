from smart_train.extensions import db
from sqlalchemy.sql import func
import uuid


def gen_wallet_id():
    return f"wal_{uuid.uuid4().hex[:12]}"


class Wallet(db.Model):
    __tablename__ = "wallets"

    __table_args__ = (
        db.CheckConstraint("available_balance >= 0", name="ck_wallets_available_non_negative"),
        db.CheckConstraint("locked_balance >= 0", name="ck_wallets_locked_non_negative"),
    )

    id = db.Column(db.String(50), primary_key=True, default=gen_wallet_id)
    user_id = db.Column(db.String(50), db.ForeignKey("users.id"), unique=True, nullable=False)

    available_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    locked_balance = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    currency = db.Column(db.String(10), default="EGP")

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now())

    user = db.relationship("User", backref=db.backref("wallet", uselist=False))
