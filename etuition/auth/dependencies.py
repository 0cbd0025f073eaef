import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from etuition.auth import jwt_handler
from etuition.database import get_db
from etuition.models.user import ROLE_ADMIN, ROLE_STUDENT, ROLE_TUTOR, User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_verified_email(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access: No token provided",
        )
    try:
        email = jwt_handler.verified_email(credentials.credentials)
    except Exception as exc:
        logger.warning("Token verification failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access: Invalid token",
        ) from exc

    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized access: Invalid token subject",
        )
    return email


def check_role(db: Session, email: str, role: str) -> User:
    """Fetch the caller and require that their stored role is ``role``."""
    user = db.query(User).filter(User.email == email).first()
    if user is None or user.role != role:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Forbidden: {role.capitalize()} access required",
        )
    return user


def require_role(role: str):
    def dependency(
        email: str = Depends(get_verified_email),
        db: Session = Depends(get_db),
    ) -> User:
        return check_role(db, email, role)

    dependency.__name__ = f"require_{role}"
    return dependency


require_student = require_role(ROLE_STUDENT)
require_tutor = require_role(ROLE_TUTOR)
require_admin = require_role(ROLE_ADMIN)
