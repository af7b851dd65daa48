import secrets
from uuid import uuid4
from datetime import datetime, timezone, timedelta

from jose import jwt
from passlib.crypto.digest import pbkdf2_hmac
from passlib.utils import consteq

from blogapi.config import JWT_ALGORITHM
from blogapi.exceptions import IntegrityError

PBKDF2_DIGEST = "sha512"
PBKDF2_ROUNDS = 10000
PBKDF2_KEY_LENGTH = 64
SALT_BYTES = 32


def _derive(password: str, salt: str) -> str:
    return pbkdf2_hmac(PBKDF2_DIGEST, password.encode("utf-8"), salt.encode("utf-8"),
                       PBKDF2_ROUNDS, PBKDF2_KEY_LENGTH).hex()


def generate_password(password: str) -> tuple[str, str]:
    """Returns a fresh ``(salt, hash)`` pair to store in place of the plain password."""
    salt = secrets.token_hex(SALT_BYTES)
    return salt, _derive(password, salt)


def check_password_validity(password: str, password_hash: str, salt: str) -> bool:
    if not salt or not password_hash or len(password_hash) != PBKDF2_KEY_LENGTH * 2:
        raise IntegrityError()
    try:
        bytes.fromhex(password_hash)
    except ValueError:
        raise IntegrityError()

    return consteq(_derive(password, salt), password_hash.lower())


def sign_token(claims: dict, private_key: str, expires_delta: timedelta) -> str:
    to_encode = claims.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": str(uuid4()),
    })
    return jwt.encode(to_encode, private_key, algorithm=JWT_ALGORITHM)


def decode_token(token: str, public_key: str, verify_exp: bool = True) -> dict:
    return jwt.decode(token, public_key, algorithms=[JWT_ALGORITHM], options={"verify_exp": verify_exp})
