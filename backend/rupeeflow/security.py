"""Password hashing and purpose-scoped JWTs."""
import hashlib
import hmac
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from rupeeflow.errors import InvalidTokenError


ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 100_000
SALT_BYTES = 16

ACCESS = "access"
VERIFY = "verify"
RESET = "reset"


def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, ITERATIONS)


def hash_password(password: str) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = _pbkdf2_hash(password, salt)
    return f"{ALGORITHM}${salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    if not stored:
        return False
    try:
        algorithm, salt_hex, hash_hex = stored.strip().split("$")
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    if algorithm != ALGORITHM:
        return False
    return hmac.compare_digest(_pbkdf2_hash(password, salt), expected)


class TokenService:
    """Issues and checks JWTs whose ``purpose`` claim limits where they are accepted."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def create(self, subject: str, purpose: str, expires_minutes: int, **claims: Any) -> str:
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=expires_minutes)
        to_encode: Dict[str, Any] = dict(claims)
        to_encode.update({
            "sub": subject,
            "purpose": purpose,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        })
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def decode(self, token: str, purpose: str) -> Dict[str, Any]:
        """
        Decode a token and check its purpose.

        Raises:
            InvalidTokenError: expired, malformed, or issued for another purpose
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidTokenError("Token expired")
        except JWTError:
            raise InvalidTokenError("Invalid token")
        if payload.get("purpose") != purpose or not payload.get("sub"):
            raise InvalidTokenError("Invalid token")
        return payload
