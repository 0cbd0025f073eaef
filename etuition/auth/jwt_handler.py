from datetime import datetime, timedelta, timezone

import jwt

from etuition.core import config


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {"sub": subject, "email": subject, "exp": expire, "iat": datetime.now(timezone.utc)}
    if config.JWT_AUDIENCE:
        payload["aud"] = config.JWT_AUDIENCE
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        audience=config.JWT_AUDIENCE,
    )


def verified_email(token: str) -> str | None:
    """Return the lower-cased email a valid token was issued for."""
    payload = decode_access_token(token)
    email = payload.get("email") or payload.get("sub")
    if not email:
        return None
    return email.strip().lower()
