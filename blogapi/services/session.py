"""
Login, refresh and logout.

Every flow is an ordered ``Pipeline`` of named stages sharing one context
object. A stage either returns, handing the context to the next stage, or
raises one of the ``blogapi.exceptions`` errors to stop the flow.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from jose import JWTError

from blogapi.exceptions import CredentialsError, MissingTokenError, TokenInvalidError, TokenExpiredError
from blogapi.models.user_model import User
from blogapi.services.credentials import CredentialVerifier
from blogapi.services.token_store import TokenStore
from blogapi.services.tokens import TokenIssuer
from blogapi.utils.logger import get_logger

logger = get_logger(__name__)


class Pipeline:
    def __init__(self, name: str, *stages: Callable):
        self.name = name
        self.stages = stages

    def run(self, context):
        for stage in self.stages:
            logger.debug("pipeline_stage", pipeline=self.name, stage=stage.__name__)
            stage(context)
        return context


@dataclass
class LoginContext:
    identifier: str
    password: str
    user: Optional[User] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


@dataclass
class RefreshContext:
    refresh_token: Optional[str]
    owner: Optional[User] = None
    claims: Optional[dict] = None
    access_token: Optional[str] = None


class SessionController:
    def __init__(self, verifier: CredentialVerifier, issuer: TokenIssuer, store: TokenStore):
        self.verifier = verifier
        self.issuer = issuer
        self.store = store

        self.login_pipeline = Pipeline("login", self.verify_credentials, self.issue_tokens,
                                       self.record_refresh_token)
        self.refresh_pipeline = Pipeline("refresh", self.require_token, self.check_store,
                                         self.check_expiry, self.issue_access)

    def login(self, identifier: str, password: str) -> LoginContext:
        return self.login_pipeline.run(LoginContext(identifier=identifier, password=password))

    def refresh(self, refresh_token: Optional[str]) -> RefreshContext:
        return self.refresh_pipeline.run(RefreshContext(refresh_token=refresh_token))

    def logout(self, refresh_token: Optional[str]) -> bool:
        """Revokes the token. Returns False when there was nothing to revoke."""
        if not refresh_token:
            return False

        owner = self.store.revoke(refresh_token)
        if owner is None:
            logger.info("logout_without_session")
            return False

        logger.info("logout_completed", user_id=owner.id)
        return True

    # login stages

    def verify_credentials(self, context: LoginContext) -> None:
        user = self.verifier.verify(context.identifier, context.password)
        if user is None:
            logger.info("login_failed")
            raise CredentialsError()
        context.user = user

    def issue_tokens(self, context: LoginContext) -> None:
        context.access_token = self.issuer.issue_access(context.user, is_new_login=True)
        context.refresh_token = self.issuer.issue_refresh(context.user)

    def record_refresh_token(self, context: LoginContext) -> None:
        context.user.last_login = datetime.now(timezone.utc)
        self.store.record(context.user.id, context.refresh_token)
        logger.info("login_succeeded", user_id=context.user.id)

    # refresh stages

    def require_token(self, context: RefreshContext) -> None:
        if not context.refresh_token:
            raise MissingTokenError("Refresh token is missing")

    def check_store(self, context: RefreshContext) -> None:
        owner = self.store.find_owner(context.refresh_token)
        if owner is None:
            logger.info("refresh_rejected", reason="not_in_store")
            raise TokenInvalidError()
        context.owner = owner

    def check_expiry(self, context: RefreshContext) -> None:
        try:
            claims = self.issuer.decode_refresh(context.refresh_token, verify_exp=False)
        except JWTError:
            logger.info("refresh_rejected", reason="malformed_or_forged", user_id=context.owner.id)
            raise TokenInvalidError()

        expires_at = claims.get("exp")
        if expires_at is not None and expires_at < datetime.now(timezone.utc).timestamp():
            self.store.revoke(context.refresh_token)
            logger.info("expired_refresh_token_removed", user_id=context.owner.id)
            raise TokenExpiredError()

    def issue_access(self, context: RefreshContext) -> None:
        try:
            claims = self.issuer.decode_refresh(context.refresh_token)
        except JWTError:
            logger.info("refresh_rejected", reason="verification_failed", user_id=context.owner.id)
            raise TokenInvalidError()

        if claims.get("sub") != str(context.owner.id):
            logger.warning("refresh_rejected", reason="subject_mismatch", user_id=context.owner.id)
            raise TokenInvalidError()

        context.claims = claims
        context.access_token = self.issuer.issue_access(context.owner, is_new_login=False)
        logger.info("access_token_refreshed", user_id=context.owner.id)
