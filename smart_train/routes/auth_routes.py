from flask import Blueprint, request, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from smart_train.extensions import db
from smart_train.models.user import User
from smart_train.services.auth_service import register_user, authenticate_user
from smart_train.utils.auth_utils import issue_access_token
from smart_train.utils.response_formatter import success_response, error_response

bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    user = register_user(data, currency=current_app.config["CURRENCY"])

    return success_response({
        "user": user.to_dict(),
        "access_token": issue_access_token(user),
    }, status=201)


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    user = authenticate_user(data.get("national_id"), data.get("password"))

    return success_response({
        "user": user.to_dict(),
        "access_token": issue_access_token(user),
    })


@bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    uid = get_jwt_identity()
    user = db.session.get(User, uid)
    if not user:
        return error_response("NOT_FOUND", "User not found", status=404)

    return success_response(user.to_dict())
