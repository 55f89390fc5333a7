import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from notekeeper.api.database import get_db
from notekeeper.api.errors import InvalidToken, Unauthenticated
from notekeeper.api.models import User
from notekeeper.api.security import TokenService, get_token_service
from notekeeper.api.users import CredentialStore

logger = logging.getLogger(__name__)

# OAuth2 bearer scheme - errors are raised by get_current_user so that each
# failure keeps its own message
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The resolved caller of a request. Never carries the password hash."""
    id: str
    name: str
    email: str
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(id=str(user.id), name=user.name, email=user.email, created_at=user.created_at)


def resolve_identity(
    token: Optional[str], tokens: TokenService, store: CredentialStore
) -> Identity:
    """
    Turn a bearer token into the caller's identity.

    Raises:
        Unauthenticated when the token is missing, invalid or expired,
        or when its user no longer exists.
    """
    if not token:
        raise Unauthenticated("Not authorized, no token provided")
    try:
        user_id = tokens.verify(token)
    except InvalidToken as exc:
        logger.info("Rejected token: %s", exc)
        raise Unauthenticated("Not authorized, token invalid or expired")
    if not user_id.isascii() or not user_id.isdigit():
        logger.info("Rejected token: subject is not a user id")
        raise Unauthenticated("Not authorized, token invalid or expired")
    user = store.find_by_id(user_id)
    if user is None:
        logger.info("Token subject %s no longer exists", user_id)
        raise Unauthenticated("User not found")
    return Identity.from_user(user)


# PUBLIC_INTERFACE
def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    """Dependency providing a credential store bound to the request session."""
    return CredentialStore(db)


# PUBLIC_INTERFACE
def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    store: CredentialStore = Depends(get_credential_store),
) -> Identity:
    """
    Dependency that returns the identity of the authenticated caller based on
    the `Authorization: Bearer <token>` header.

    Raises:
        401 if the token is missing, invalid or expired, or the user is gone.
    """
    return resolve_identity(token, tokens, store)
