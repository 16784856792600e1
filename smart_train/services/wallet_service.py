from decimal import Decimal
from sqlalchemy import update
from smart_train.extensions import db
from smart_train.models.wallet import Wallet
from smart_train.models.wallet_transaction import WalletTransaction, ESCROW_LOCK, ESCROW_RELEASE
from smart_train.utils.exceptions import NotFound


def create_wallet(user_id, currency="EGP"):
    wallet = Wallet(
        user_id=user_id,
        currency=currency,
        available_balance=Decimal("0.00"),
        locked_balance=Decimal("0.00"),
    )
    db.session.add(wallet)
    db.session.flush()
    return wallet


def get_wallet(user_id):
    return Wallet.query.filter_by(user_id=user_id).first()


def get_wallet_balance(user_id, currency="EGP"):
    wallet = get_wallet(user_id)
    if not wallet:
        return {
            "available_balance": Decimal("0.00"),
            "locked_balance": Decimal("0.00"),
            "currency": currency,
        }
    return wallet


def lock_funds(user_id, amount, ticket_id):
    """Add ``amount`` to the user's locked balance and record it.

    Runs inside the caller's transaction; nothing is committed here.
    """
    amount = Decimal(amount)

    result = db.session.execute(
        update(Wallet)
        .where(Wallet.user_id == user_id)
        .values(locked_balance=Wallet.locked_balance + amount)
    )
    if result.rowcount != 1:
        raise NotFound("Seller wallet not found")

    wallet_id = db.session.query(Wallet.id).filter(Wallet.user_id == user_id).scalar()
    tx = WalletTransaction(
        wallet_id=wallet_id,
        amount=amount,
        type=ESCROW_LOCK,
        reference_type="ticket",
        reference_id=ticket_id,
        description="Ticket sale proceeds held in escrow",
    )
    db.session.add(tx)
    return tx


def release_locked_funds(user_id, ticket_id):
    """Merge the whole locked balance into the available balance.

    Returns the amount moved. Runs inside the caller's transaction.
    """
    wallet = (
        Wallet.query
        .filter_by(user_id=user_id)
        .with_for_update()
        .first()
    )
    if not wallet:
        raise NotFound("Seller wallet not found")

    amount = Decimal(wallet.locked_balance or 0)

    db.session.execute(
        update(Wallet)
        .where(Wallet.id == wallet.id)
        .values(
            available_balance=Wallet.available_balance + Wallet.locked_balance,
            locked_balance=0,
        )
        .execution_options(synchronize_session="fetch")
    )

    if amount > 0:
        db.session.add(WalletTransaction(
            wallet_id=wallet.id,
            amount=amount,
            type=ESCROW_RELEASE,
            reference_type="ticket",
            reference_id=ticket_id,
            description="Escrow released after half of trip duration",
        ))
    return amount


def get_wallet_transactions(user_id, tx_type=None):
    wallet = get_wallet(user_id)
    if not wallet:
        return None

    q = WalletTransaction.query.filter_by(wallet_id=wallet.id)
    if tx_type:
        q = q.filter(WalletTransaction.type == tx_type)
    return q.order_by(WalletTransaction.created_at.desc(), WalletTransaction.id)
