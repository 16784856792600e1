from marshmallow import fields
from smart_train.extensions import ma

class WalletSchema(ma.Schema):
    available_balance = fields.Decimal(places=2, as_string=True)
    locked_balance = fields.Decimal(places=2, as_string=True)
    currency = fields.String()

class WalletTransactionSchema(ma.Schema):
    id = fields.String()
    type = fields.String()
    amount = fields.Decimal(places=2, as_string=True)
    reference_type = fields.String(allow_none=True)
    reference_id = fields.String(allow_none=True)
    description = fields.String(allow_none=True)
    created_at = fields.DateTime()

wallet_schema = WalletSchema()
wallet_transactions_schema = WalletTransactionSchema(many=True)
