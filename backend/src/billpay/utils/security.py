"""Password hashing and one-time tokens for customer and agent credentials."""
import secrets

from passlib.context import CryptContext

from billpay.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.password_hash_rounds)

RESET_TOKEN_BYTES = 32


def hash_password(password: str) -> str:
    """Hash password."""
    return str(pwd_context.hash(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password."""
    return bool(pwd_context.verify(plain_password, hashed_password))


def generate_reset_token() -> str:
    """Random hex token for a password reset link."""
    return secrets.token_hex(RESET_TOKEN_BYTES)
