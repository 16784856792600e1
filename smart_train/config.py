import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///smart_train.db")

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    ACCESS_EXPIRES = int(os.getenv("ACCESS_EXPIRES", 7 * 86400))

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # escrow
    PLATFORM_FEE = Decimal(os.getenv("PLATFORM_FEE", "10"))
    CURRENCY = os.getenv("CURRENCY", "EGP")
    RELEASE_SWEEP_INTERVAL = int(os.getenv("RELEASE_SWEEP_INTERVAL", 60))
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", True)
    ALLOW_DIRECT_PURCHASE = _env_bool("ALLOW_DIRECT_PURCHASE", True)
    MAX_TICKETS_PER_LISTING = int(os.getenv("MAX_TICKETS_PER_LISTING", 50))

    # paystack
    PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY", "")
    PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
    PAYSTACK_CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL")
    PAYSTACK_TIMEOUT = float(os.getenv("PAYSTACK_TIMEOUT", 10))
    PAYSTACK_EMAIL_DOMAIN = os.getenv("PAYSTACK_EMAIL_DOMAIN", "customers.smarttrain.eg")


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False
    ALLOW_DIRECT_PURCHASE = _env_bool("ALLOW_DIRECT_PURCHASE", False)


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    SCHEDULER_ENABLED = False
    ALLOW_DIRECT_PURCHASE = True
    PLATFORM_FEE = Decimal("10")
    PAYSTACK_SECRET_KEY = "sk_test_secret"
    PAYSTACK_CALLBACK_URL = "http://localhost/payments/callback"
    BCRYPT_LOG_ROUNDS = 4


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
