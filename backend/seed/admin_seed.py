from backend.database import session_scope
from backend.services.auth import ensure_admin_user


def seed_admin():
    with session_scope() as db:
        ensure_admin_user(db)
