import logging
from sqlalchemy.exc import IntegrityError
from smart_train.extensions import db
from smart_train.models.user import User
from smart_train.services.wallet_service import create_wallet
from smart_train.utils.auth_utils import hash_password, check_password
from smart_train.utils.exceptions import ValidationError, DuplicateUser, InvalidCredentials

logger = logging.getLogger(__name__)

NATIONAL_ID_LENGTH = 14
PASSWORD_LENGTH = 6


def validate_registration(data):
    full_name = (data.get("full_name") or "").strip()
    national_id = str(data.get("national_id") or "").strip()
    password = str(data.get("password") or "")

    if not full_name:
        raise ValidationError("Full name is required", {"field": "full_name"})

    if len(national_id) != NATIONAL_ID_LENGTH or not national_id.isdigit():
        raise ValidationError("National ID must be 14 digits", {"field": "national_id"})

    if len(password) != PASSWORD_LENGTH or not password.isdigit():
        raise ValidationError("Password must be 6 digits", {"field": "password"})

    if data.get("terms_accepted") is not True:
        raise ValidationError("Terms must be accepted", {"field": "terms_accepted"})

    return {
        "full_name": full_name,
        "national_id": national_id,
        "password": password,
        "mobile": data.get("mobile"),
        "address": data.get("address"),
    }


def register_user(data, currency="EGP"):
    """Create the user and its wallet in one transaction."""
    cleaned = validate_registration(data)

    if User.query.filter_by(national_id=cleaned["national_id"]).first():
        raise DuplicateUser(details={"field": "national_id"})

    user = User(
        full_name=cleaned["full_name"],
        national_id=cleaned["national_id"],
        password_hash=hash_password(cleaned["password"]),
        mobile=cleaned["mobile"],
        address=cleaned["address"],
        terms_accepted=True,
    )
    db.session.add(user)

    try:
        db.session.flush()
        create_wallet(user.id, currency=currency)
        db.session.commit()
    except IntegrityError:
        # lost a race against a concurrent registration
        db.session.rollback()
        raise DuplicateUser(details={"field": "national_id"})

    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(national_id, password):
    user = User.query.filter_by(national_id=str(national_id or "")).first()
    if not user or not check_password(str(password or ""), user.password_hash):
        raise InvalidCredentials()
    return user
