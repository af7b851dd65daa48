"""
Creates the first administrator account.

Usage::

    ADMIN_USERNAME=... ADMIN_EMAIL=... ADMIN_PASSWORD=... python -m blogapi.scripts.seed_admin
"""
import os

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from blogapi.database import Base, SessionLocal, db
from blogapi.models import refresh_token_model  # noqa: F401
from blogapi.models.user_model import User
from blogapi.utils.auth import generate_password
from blogapi.utils.logger import get_logger

logger = get_logger(__name__)


def create_admin(session: Session, username: str, email: str, password: str,
                 first_name: str = "Admin", last_name: str = "Admin") -> User:
    """Creates the admin account, or promotes the existing account with that username or email."""
    user = session.query(User).filter(
        or_(User.username == username, func.lower(User.email) == func.lower(email))
    ).first()

    if user is None:
        salt, password_hash = generate_password(password)
        user = User(
            username=username,
            email=email,
            salt=salt,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
        )
        session.add(user)

    user.is_admin = True
    user.is_verified_author = True
    session.commit()
    session.refresh(user)
    logger.info("admin_seeded", user_id=user.id)
    return user


if __name__ == "__main__":
    Base.metadata.create_all(bind=db)
    session = SessionLocal()
    try:
        create_admin(
            session,
            username=os.environ["ADMIN_USERNAME"],
            email=os.environ["ADMIN_EMAIL"],
            password=os.environ["ADMIN_PASSWORD"],
        )
    finally:
        session.close()
