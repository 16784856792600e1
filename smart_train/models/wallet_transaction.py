from smart_train.extensions import db
from sqlalchemy.sql import func
import uuid

ESCROW_LOCK = "escrow_lock"
ESCROW_RELEASE = "escrow_release"


def gen_tx_id():
    return f"tx_{uuid.uuid4().hex[:12]}"


class WalletTransaction(db.Model):
    __tablename__ = "wallet_transactions"

    id = db.Column(db.String(50), primary_key=True, default=gen_tx_id)
    wallet_id = db.Column(db.String(50), db.ForeignKey("wallets.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    type = db.Column(db.String(50), nullable=False)

    reference_type = db.Column(db.String(50))
    reference_id = db.Column(db.String(50))

    description = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=func.now())

    wallet = db.relationship("Wallet", backref=db.backref("transactions", lazy="dynamic"))
