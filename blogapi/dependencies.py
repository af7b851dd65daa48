from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from blogapi.database import get_db
from blogapi.exceptions import AuthorizationError, MissingTokenError, NotFoundError, TokenInvalidError
from blogapi.models.user_model import User
from blogapi.services.credentials import CredentialVerifier
from blogapi.services.session import SessionController
from blogapi.services.token_store import TokenStore
from blogapi.services.tokens import TokenIssuer

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class RequestContext:
    """Identity of the caller, passed explicitly to every handler that needs it."""
    user: User
    claims: dict = field(default_factory=dict)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer.from_env()


def get_session_controller(db: Session = Depends(get_db),
                           issuer: TokenIssuer = Depends(get_token_issuer)) -> SessionController:
    return SessionController(verifier=CredentialVerifier(db), issuer=issuer, store=TokenStore(db))


def get_request_context(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
                        db: Session = Depends(get_db),
                        issuer: TokenIssuer = Depends(get_token_issuer)) -> RequestContext:
    if credentials is None:
        raise MissingTokenError(headers={"WWW-Authenticate": "Bearer"})

    try:
        claims = issuer.decode_access(credentials.credentials)
        user_id = int(claims.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise TokenInvalidError("Access token is expired or has been revoked")

    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError()
    return RequestContext(user=user, claims=claims)


def require_admin(context: RequestContext = Depends(get_request_context)) -> RequestContext:
    if not context.user.is_admin:
        raise AuthorizationError()
    return context
