from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from notekeeper.api import config
from notekeeper.api.errors import InvalidToken

# Setup password hashing; bcrypt salts every hash individually
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    """Hash a plaintext password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


class TokenService:
    """
    Issues and verifies signed, expiring bearer tokens.

    Tokens are stateless: nothing is stored server-side, so there is no revocation.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_delta = timedelta(minutes=expires_minutes)

    def issue(self, user_id, expires_delta: Optional[timedelta] = None) -> str:
        """Create a signed JWT whose subject is the user id."""
        now = datetime.now(tz=timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self.expires_delta)
        to_encode = {"sub": str(user_id), "iat": now, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Return the user id carried by the token.

        Raises:
            InvalidToken on a bad signature, malformed token, missing subject or expiry.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidToken(str(exc)) from exc
        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            raise InvalidToken("Token has no subject")
        return subject


token_service = TokenService(
    config.SECRET_KEY,
    algorithm=config.ALGORITHM,
    expires_minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES,
)


# PUBLIC_INTERFACE
def get_token_service() -> TokenService:
    """Dependency returning the process-wide token service."""
    return token_service
