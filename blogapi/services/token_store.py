from typing import Optional

from sqlalchemy.orm import Session

from blogapi.models.refresh_token_model import RefreshToken
from blogapi.models.user_model import User


class TokenStore:
    """Refresh tokens currently valid for each user. Membership is the revocation signal."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, user_id: int, token: str) -> None:
        self.db.add(RefreshToken(user_id=user_id, token=token))
        self.db.commit()

    def find_owner(self, token: str) -> Optional[User]:
        return self.db.query(User).join(User.refresh_tokens).filter(RefreshToken.token == token).first()

    def is_active(self, token: str) -> bool:
        return self.find_owner(token) is not None

    def revoke(self, token: str) -> Optional[User]:
        owner = self.find_owner(token)
        if owner is None:
            return None

        self.db.query(RefreshToken).filter(RefreshToken.token == token).delete(synchronize_session="fetch")
        self.db.commit()
        self.db.expire(owner, ["refresh_tokens"])
        return owner
