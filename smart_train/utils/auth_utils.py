from datetime import timedelta
from flask import current_app
from flask_jwt_extended import create_access_token
from smart_train.extensions import bcrypt


def hash_password(password: str) -> str:
    return bcrypt.generate_password_hash(password).decode("utf-8")


def check_password(password: str, hashed_password: str) -> bool:
    return bcrypt.check_password_hash(hashed_password, password)


def issue_access_token(user) -> str:
    """Session token carrying the user id as identity and the national id as a claim."""
    return create_access_token(
        identity=str(user.id),
        additional_claims={"national_id": user.national_id},
        expires_delta=timedelta(seconds=current_app.config.get("ACCESS_EXPIRES", 604800)),
    )
