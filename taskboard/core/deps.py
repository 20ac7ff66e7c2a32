from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from taskboard.core.config import settings
from taskboard.core.database import get_db
from taskboard.core.security import decode_token
from taskboard.models.user import User
from taskboard.services.directory_service import UserDirectory
from taskboard.services.notification_service import DatabaseNotifier


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None)
) -> User:
    # Check token
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    token = authorization.replace("Bearer ", "")
    email = decode_token(token)

    if not email:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")

    # L'approbation est décidée ailleurs, on fait confiance au flag
    if not user.approved:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User not approved")

    return user


def require_manager(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in ("admin", "manager"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin or Manager access required")
    return current_user


def require_cron_secret(x_cron_secret: Optional[str] = Header(None)) -> None:
    if settings.CRON_SECRET and x_cron_secret != settings.CRON_SECRET:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret")


def get_directory(db: Session = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


def get_notifier() -> DatabaseNotifier:
    return DatabaseNotifier()
