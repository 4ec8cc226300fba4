"""Password hashing and session token issuance."""

import logging
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

from campus_bites.exceptions import InputValidationError
from campus_bites.models.fields import MAX_PASSWORD_BYTES

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    """Hash a password with a fresh bcrypt salt.

    Raises:
        InputValidationError: Password is longer than bcrypt accepts
    """
    secret = password.encode("utf-8")
    if len(secret) > MAX_PASSWORD_BYTES:
        raise InputValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class TokenIssuer:
    """Issues and verifies signed, time-limited session tokens.

    Tokens are HS256 JWTs whose ``sub`` claim is the identity id.
    """

    def __init__(self, secret: str, expires_in: timedelta = timedelta(days=30)) -> None:
        """Initialize the issuer.

        Args:
            secret: Signing secret
            expires_in: Token lifetime

        Raises:
            ValueError: If the secret is empty
        """
        if not secret:
            raise ValueError("A token signing secret must be provided")

        self.secret = secret
        self.expires_in = expires_in

    def issue(self, user_id: str) -> str:
        """Issue a token for an identity.

        Args:
            user_id: Identity the token is for

        Returns:
            str: Encoded token
        """
        now = datetime.now(UTC)
        payload = {"sub": user_id, "iat": now, "exp": now + self.expires_in}
        return jwt.encode(payload, self.secret, algorithm=TOKEN_ALGORITHM)

    def verify(self, token: str) -> str | None:
        """Verify a token and return its subject.

        Args:
            token: Encoded token

        Returns:
            The identity id if the token is valid and unexpired, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.PyJWTError as e:
            logger.info(f"Rejected session token: {e}")
            return None

        subject = payload.get("sub")
        return subject if isinstance(subject, str) and subject else None
