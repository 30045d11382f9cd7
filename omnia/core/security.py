import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from omnia.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_admin_credentials(email: str, password: str) -> bool:
    if not settings.ADMIN_PASSWORD_HASH:
        logger.warning("ADMIN_PASSWORD_HASH is not set, admin login is disabled")
        return False
    if email.strip().lower() != settings.ADMIN_EMAIL.lower():
        return False
    try:
        return verify_password(password, settings.ADMIN_PASSWORD_HASH)
    except ValueError as e:
        logger.error(f"ADMIN_PASSWORD_HASH is not a valid bcrypt hash: {str(e)}")
        return False


class SessionVerifier(Protocol):
    async def has_valid_session(self, request: Request) -> bool:
        ...


class CookieSessionVerifier:
    """Accepts requests carrying a signed, unexpired session cookie."""

    def __init__(self, cookie_name: str = settings.SESSION_COOKIE_NAME):
        self.cookie_name = cookie_name

    async def has_valid_session(self, request: Request) -> bool:
        token = request.cookies.get(self.cookie_name)
        if not token:
            return False
        try:
            payload = decode_access_token(token)
        except JWTError as e:
            logger.debug(f"Rejected session cookie: {str(e)}")
            return False
        return bool(payload.get("sub"))


if __name__ == "__main__":
    import getpass

    # Prints a value for ADMIN_PASSWORD_HASH
    print(get_password_hash(getpass.getpass("Admin password: ")))
