"""
Credential primitives: password hashing, one-time codes and session tokens.

Nothing here touches the document store. ``SessionIssuer`` takes its clock
as a constructor argument so expiry can be tested deterministically.
"""
import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from studyhub.core.config import settings
from studyhub.helpers.clock import Clock, utcnow

TOKEN_TYPE_ACCESS = "access"
RESET_CODE_LENGTH = 6


# =====================================================
# Password hashing
# =====================================================
def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """Hash a plain-text password with bcrypt."""
    if not password:
        raise ValueError("Password cannot be empty")
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        # malformed hash or password longer than bcrypt accepts
        return False


# =====================================================
# One-time codes
# =====================================================
def generate_otp(length: int = RESET_CODE_LENGTH) -> str:
    """Uniformly random numeric code, zero padded."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def hash_otp(code: str, secret: Optional[str] = None) -> str:
    """
    Keyed digest of a one-time code.

    Deterministic, so a stored request can still be matched with an exact
    equality lookup, but the plaintext code never reaches the store.
    """
    key = (secret or settings.SECRET_KEY).encode("utf-8")
    return hmac.new(key, code.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_otp(code: str, code_hash: str, secret: Optional[str] = None) -> bool:
    return hmac.compare_digest(hash_otp(code, secret), code_hash)


# =====================================================
# Session tokens
# =====================================================
@dataclass(frozen=True)
class Identity:
    """Claims carried by a verified bearer token."""
    user_id: str
    email: str


class SessionIssuer:
    """
    Issues and verifies signed, time-limited bearer tokens.

    Usage:
        issuer = SessionIssuer(settings.SECRET_KEY)
        token = issuer.issue(user.id, user.email)
        identity = issuer.verify(token)  # Identity or None
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
        clock: Clock = utcnow,
    ):
        if not secret:
            raise ValueError("SessionIssuer requires a non-empty secret")
        self._secret = secret
        self._algorithm = algorithm
        self.ttl = ttl
        self._clock = clock

    def issue(self, user_id: str, email: str) -> str:
        now = self._clock()
        claims = {
            "sub": str(user_id),
            "email": email,
            "type": TOKEN_TYPE_ACCESS,
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> Optional[Identity]:
        """
        Return the token's identity, or None when the token is malformed,
        signed with another secret, of another type, or past its window.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError:
            return None

        if payload.get("type") != TOKEN_TYPE_ACCESS:
            return None

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or self._clock().timestamp() >= exp:
            return None

        user_id = payload.get("sub")
        email = payload.get("email")
        if not user_id or not email:
            return None
        return Identity(user_id=str(user_id), email=str(email))


def build_session_issuer() -> SessionIssuer:
    return SessionIssuer(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        ttl=timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
    )
