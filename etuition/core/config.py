import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./etuition.db")
DB_CONNECT_TIMEOUT = int(os.getenv("DB_CONNECT_TIMEOUT", "30"))
DB_POOL_TIMEOUT = int(os.getenv("DB_POOL_TIMEOUT", "30"))
DB_ECHO = _get_bool(os.getenv("DB_ECHO"), default=False)

CLIENT_DOMAIN = os.getenv("CLIENT_DOMAIN", "")
CORS_ORIGINS = _get_list(
    os.getenv("CORS_ORIGINS"),
    [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:5174",
    ],
)
if CLIENT_DOMAIN and CLIENT_DOMAIN not in CORS_ORIGINS:
    CORS_ORIGINS.append(CLIENT_DOMAIN)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_API_BASE = os.getenv("STRIPE_API_BASE", "https://api.stripe.com/v1")
STRIPE_TIMEOUT_SECONDS = float(os.getenv("STRIPE_TIMEOUT_SECONDS", "15"))
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "bdt").lower()
CHECKOUT_SUCCESS_URL = os.getenv(
    "CHECKOUT_SUCCESS_URL",
    f"{CLIENT_DOMAIN or 'http://localhost:5173'}/dashboard/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
)
CHECKOUT_CANCEL_URL = os.getenv(
    "CHECKOUT_CANCEL_URL",
    f"{CLIENT_DOMAIN or 'http://localhost:5173'}/dashboard/payment-cancelled",
)

TUTORS_PAGE_SIZE = int(os.getenv("TUTORS_PAGE_SIZE", "8"))
TUITIONS_PAGE_SIZE = int(os.getenv("TUITIONS_PAGE_SIZE", "9"))
NOTIFICATIONS_LIMIT = int(os.getenv("NOTIFICATIONS_LIMIT", "20"))


def is_production() -> bool:
    return APP_ENV.lower() == "production"


def validate_runtime_config() -> None:
    if is_production() and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
