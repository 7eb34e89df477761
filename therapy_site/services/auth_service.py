import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Request, Response
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from therapy_site.config.settings import Config, config
from therapy_site.models.database import AdminPasswordReset, AdminSession, AdminUser
from therapy_site.utils.hash import sha256_hex

logger = logging.getLogger(__name__)

# Used only when no SESSION_SECRET / encryption secret is configured
_PROCESS_SECRET = secrets.token_hex(32)


class AuthService:
    """Admin credentials, cookie-backed sessions and password reset tokens"""

    def __init__(self, cfg: Config):
        self.config = cfg
        self.auth = cfg.auth
        self.pwd_context = CryptContext(
            schemes=["pbkdf2_sha512"],
            pbkdf2_sha512__default_rounds=cfg.auth.password_rounds,
        )
        self.session_secret = cfg.auth.session_secret or cfg.auth.encryption_secret
        if not self.session_secret:
            logging.warning("No SESSION_SECRET configured; sessions will not survive a restart.")
            self.session_secret = _PROCESS_SECRET

    # Passwords

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, stored_hash: Optional[str]) -> bool:
        if not stored_hash:
            return False
        try:
            return self.pwd_context.verify(password, stored_hash)
        except (ValueError, TypeError):
            return False

    # Tokens

    @staticmethod
    def create_session_token() -> str:
        return secrets.token_hex(32)

    @staticmethod
    def create_reset_token() -> str:
        return secrets.token_hex(32)

    @staticmethod
    def hash_reset_token(token: str) -> str:
        return sha256_hex(token)

    def sign_session_token(self, token: str, expires_at: datetime) -> str:
        return jwt.encode(
            {"sid": token, "exp": expires_at},
            self.session_secret,
            algorithm=self.auth.algorithm,
        )

    def read_session_cookie(self, request: Request) -> Optional[str]:
        cookie = request.cookies.get(self.auth.session_cookie_name)
        if not cookie:
            return None
        try:
            claims = jwt.decode(cookie, self.session_secret, algorithms=[self.auth.algorithm])
        except JWTError:
            return None
        return claims.get("sid")

    def _set_session_cookie(self, response: Response, value: str, max_age: int) -> None:
        response.set_cookie(
            self.auth.session_cookie_name,
            value,
            max_age=max_age,
            path="/",
            httponly=True,
            secure=self.config.api.is_production,
            samesite="lax",
        )

    def _clear_session_cookie(self, response: Response) -> None:
        response.delete_cookie(
            self.auth.session_cookie_name,
            path="/",
            httponly=True,
            secure=self.config.api.is_production,
            samesite="lax",
        )

    # Sessions

    def create_admin_session(
        self,
        db: Session,
        response: Response,
        admin_id: int,
        remember_me: bool = False,
    ) -> AdminSession:
        ttl_days = self.auth.session_remember_ttl_days if remember_me else self.auth.session_ttl_days
        expires_at = datetime.utcnow() + timedelta(days=ttl_days)
        session = AdminSession(
            token=self.create_session_token(),
            admin_id=admin_id,
            expires_at=expires_at,
        )
        db.add(session)
        db.commit()

        self._set_session_cookie(
            response,
            self.sign_session_token(session.token, expires_at),
            max_age=ttl_days * 24 * 60 * 60,
        )
        return session

    def get_admin_from_session(
        self,
        db: Session,
        request: Request,
        response: Optional[Response] = None,
    ) -> Optional[AdminUser]:
        token = self.read_session_cookie(request)
        if not token:
            return None

        session = db.get(AdminSession, token)
        if not session:
            return None

        if session.expires_at < datetime.utcnow():
            db.delete(session)
            db.commit()
            if response is not None:
                self._clear_session_cookie(response)
            return None

        return session.admin

    def destroy_admin_session(self, db: Session, request: Request, response: Response) -> None:
        token = self.read_session_cookie(request)
        if token:
            db.query(AdminSession).filter(AdminSession.token == token).delete()
            db.commit()
        self._clear_session_cookie(response)

    # Password reset

    def issue_reset_token(self, db: Session, admin: AdminUser) -> str:
        """
        Replace any previous reset row for the admin and return the raw token.
        Delete and insert share one transaction; the unique admin_id column
        rejects a concurrent second insert with IntegrityError.
        """
        raw_token = self.create_reset_token()
        db.query(AdminPasswordReset).filter(AdminPasswordReset.admin_id == admin.id).delete()
        db.add(
            AdminPasswordReset(
                admin_id=admin.id,
                token_hash=self.hash_reset_token(raw_token),
                expires_at=datetime.utcnow() + timedelta(minutes=self.auth.reset_token_ttl_minutes),
            )
        )
        db.commit()
        return raw_token

    def consume_reset_token(self, db: Session, raw_token: str, new_password: str) -> bool:
        """
        Set a new password if the token is unused and unexpired.
        Marks the token used, replaces the hash and drops every session of the
        admin in one transaction. Any failure cause yields False.
        """
        now = datetime.utcnow()
        reset = (
            db.query(AdminPasswordReset)
            .filter(AdminPasswordReset.token_hash == self.hash_reset_token(raw_token))
            .first()
        )
        if not reset or reset.used_at is not None or reset.expires_at <= now:
            return False

        claimed = (
            db.query(AdminPasswordReset)
            .filter(AdminPasswordReset.id == reset.id, AdminPasswordReset.used_at.is_(None))
            .update({AdminPasswordReset.used_at: now}, synchronize_session=False)
        )
        if claimed != 1:
            db.rollback()
            return False

        db.query(AdminUser).filter(AdminUser.id == reset.admin_id).update(
            {AdminUser.password_hash: self.hash_password(new_password)},
            synchronize_session=False,
        )
        db.query(AdminSession).filter(AdminSession.admin_id == reset.admin_id).delete(
            synchronize_session=False
        )
        db.commit()
        return True


auth_service = AuthService(config)


def get_auth_service() -> AuthService:
    return auth_service
