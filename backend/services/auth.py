import logging
import secrets
from datetime import datetime, timedelta

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from backend.config import settings
from backend.models.user import AdminSession, AdminUser

logger = logging.getLogger(__name__)

# pbkdf2_sha256 avoids native bcrypt backend incompatibilities across environments.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def authenticate(db: Session, username: str, password: str) -> AdminUser | None:
    user = db.query(AdminUser).filter(AdminUser.username == username).first()
    if not user:
        # keep timing comparable to a real verify
        pwd_context.dummy_verify()
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def create_session(db: Session, user_id: str) -> AdminSession:
    token = secrets.token_urlsafe(32)
    now = datetime.utcnow()
    session = AdminSession(
        id=token,
        user_id=user_id,
        created_at=now,
        expires_at=now + timedelta(hours=settings.session_ttl_hours),
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_user_from_token(db: Session, token: str) -> AdminUser | None:
    session = db.query(AdminSession).filter(AdminSession.id == token).first()
    if not session:
        return None
    if session.expires_at < datetime.utcnow():
        db.delete(session)
        db.commit()
        return None
    return db.query(AdminUser).filter(AdminUser.id == session.user_id).first()


def revoke_session(db: Session, token: str) -> None:
    session = db.query(AdminSession).filter(AdminSession.id == token).first()
    if session:
        db.delete(session)
        db.commit()


def ensure_admin_user(db: Session) -> AdminUser | None:
    """Create the configured admin account if no admin exists yet."""
    existing = db.query(AdminUser).first()
    if existing:
        return existing
    if not settings.admin_password:
        logger.warning("No admin user exists and ADMIN_PASSWORD is not set; login is disabled")
        return None
    user = AdminUser(username=settings.admin_username, password_hash=hash_password(settings.admin_password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Seeded admin user %s", user.username)
    return user
