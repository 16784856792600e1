from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from smart_train.schemas.wallet_schema import wallet_schema, wallet_transactions_schema
from smart_train.services.ticket_service import require_location
from smart_train.services.wallet_service import get_wallet_balance, get_wallet_transactions
from smart_train.utils.pagination import paginate_query, pagination_args
from smart_train.utils.response_formatter import success_response

bp = Blueprint("wallet", __name__, url_prefix="/api/v1")


@bp.route("/wallet", methods=["GET"])
@jwt_required()
def wallet_summary():
    uid = get_jwt_identity()
    wallet = get_wallet_balance(uid, currency=current_app.config["CURRENCY"])
    return success_response({"wallet": wallet_schema.dump(wallet)})


@bp.route("/wallet/transactions", methods=["GET"])
@jwt_required()
def wallet_transactions():
    uid = get_jwt_identity()
    page, limit = pagination_args(default_limit=20)

    q = get_wallet_transactions(uid, tx_type=request.args.get("type"))
    if q is None:
        return success_response({"transactions": [], "pagination": {}})

    items, meta = paginate_query(q, page, limit)
    return success_response({
        "transactions": wallet_transactions_schema.dump(items),
        "pagination": meta,
    })


@bp.route("/gps-check", methods=["POST"])
@jwt_required()
def gps_check():
    require_location(request.get_json(silent=True) or {})
    return success_response()
