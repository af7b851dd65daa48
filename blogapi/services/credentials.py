from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from blogapi.models.user_model import User
from blogapi.utils.auth import check_password_validity


class CredentialVerifier:
    def __init__(self, db: Session):
        self.db = db

    def find_user(self, identifier: str) -> Optional[User]:
        # Usernames never contain "@", so an identifier with one is always an email
        if "@" in identifier:
            return self.db.query(User).filter(func.lower(User.email) == func.lower(identifier)).first()
        return self.db.query(User).filter(User.username == identifier).first()

    def verify(self, identifier: str, password: str) -> Optional[User]:
        """Returns the matching user, or None for an unknown identifier or a wrong password."""
        user = self.find_user(identifier)
        if user is None:
            return None
        if not check_password_validity(password, user.password_hash, user.salt):
            return None
        return user
