import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from . import crud, models
from .config import Settings
from .db import get_db

logger = logging.getLogger(__name__)

KITCHEN_POSITIONS = [
    "Küchenchef",
    "Sous-Chef",
    "Koch",
    "Früh-Koch",
    "Lehrling",
    "Abwasch",
    "Küchenhilfe",
    "Patissier",
    "Commis",
]

# Roles with permission levels
ROLE_PERMISSIONS = {
    "admin": 100,
    "souschef": 80,
    "koch": 60,
    "fruehkoch": 50,
    "lehrling": 30,
    "abwasch": 20,
    "guest": 10,
}

SESSION_USER_KEY = "user_id"


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return check_password_hash(password_hash, password)


def sign_in(request: Request, user: models.User):
    request.session[SESSION_USER_KEY] = user.id


def sign_out(request: Request):
    request.session.clear()


def current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Nicht angemeldet")
    user = crud.get_user(db, user_id)
    if not user:
        sign_out(request)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Benutzer nicht gefunden")
    if not user.is_approved:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Keine Berechtigung")
    return user


def require_admin(user: models.User = Depends(current_user)) -> models.User:
    if user.role != "admin":
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Keine Berechtigung")
    return user


def bootstrap_admin(db: Session, settings: Settings):
    """Create the configured admin account once."""
    if not (settings.admin_email and settings.admin_password):
        return None
    if crud.get_user_by_email(db, settings.admin_email):
        return None
    user = crud.create_user(
        db,
        email=settings.admin_email,
        password=hash_password(settings.admin_password),
        name="Administrator",
        position="Admin",
        role="admin",
        is_approved=True,
    )
    logger.info("created admin account %s", user.email)
    return user
