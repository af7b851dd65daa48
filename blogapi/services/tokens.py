from datetime import timedelta

from blogapi.config import ACCESS_TOKEN_LIFETIME, REFRESH_TOKEN_LIFETIME, read_key
from blogapi.models.user_model import User
from blogapi.utils.auth import sign_token, decode_token


def user_claims(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "is_admin": bool(user.is_admin),
        "is_verified_author": bool(user.is_verified_author),
    }


class TokenIssuer:
    """
    Mints and decodes the two kinds of tokens.

    Access tokens carry a snapshot of the user's profile and roles so they can
    authorize requests on their own; refresh tokens only carry the subject.
    Each kind is signed with its own key pair.
    """

    def __init__(self, access_private_key: str, access_public_key: str,
                 refresh_private_key: str, refresh_public_key: str,
                 access_lifetime: timedelta = ACCESS_TOKEN_LIFETIME,
                 refresh_lifetime: timedelta = REFRESH_TOKEN_LIFETIME):
        self.access_private_key = access_private_key
        self.access_public_key = access_public_key
        self.refresh_private_key = refresh_private_key
        self.refresh_public_key = refresh_public_key
        self.access_lifetime = access_lifetime
        self.refresh_lifetime = refresh_lifetime

    @classmethod
    def from_env(cls) -> "TokenIssuer":
        return cls(
            access_private_key=read_key("PRIV_ACCESS_KEY"),
            access_public_key=read_key("PUB_ACCESS_KEY"),
            refresh_private_key=read_key("PRIV_REFRESH_KEY"),
            refresh_public_key=read_key("PUB_REFRESH_KEY"),
        )

    def issue_access(self, user: User, is_new_login: bool = True) -> str:
        claims = {
            "sub": str(user.id),
            "user": user_claims(user),
            "flag": "login" if is_new_login else "refresh",
        }
        return sign_token(claims, self.access_private_key, self.access_lifetime)

    def issue_refresh(self, user: User) -> str:
        return sign_token({"sub": str(user.id)}, self.refresh_private_key, self.refresh_lifetime)

    def decode_access(self, token: str) -> dict:
        return decode_token(token, self.access_public_key)

    def decode_refresh(self, token: str, verify_exp: bool = True) -> dict:
        return decode_token(token, self.refresh_public_key, verify_exp=verify_exp)
