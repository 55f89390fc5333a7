import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, undefer

from notekeeper.api.errors import DuplicateEmail, NotFound
from notekeeper.api.models import User
from notekeeper.api.security import get_password_hash, verify_password
from notekeeper.api.validation import MAX_ID, validate_email, validate_name, validate_password

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Persists users and their salted password hashes.

    Lookups leave the password hash unloaded unless with_password=True is passed.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, name: str, email: str, plain_password: str) -> User:
        """
        Validate and store a new user.

        Raises:
            ValidationError for a bad name, email or password.
            DuplicateEmail if the email is already registered.
        """
        name = validate_name(name)
        email = validate_email(email)
        plain_password = validate_password(plain_password)
        if self._email_taken(email):
            raise DuplicateEmail("Email already registered")
        user = User(name=name, email=email, password_hash=get_password_hash(plain_password))
        self.db.add(user)
        self._commit()
        self.db.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    def find_by_email(self, email: str, with_password: bool = False) -> Optional[User]:
        query = self.db.query(User).filter(User.email == email.strip().lower())
        if with_password:
            query = query.options(undefer(User.password_hash))
        return query.first()

    def find_by_id(self, user_id) -> Optional[User]:
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        if not 1 <= user_id <= MAX_ID:
            return None
        return self.db.query(User).filter(User.id == user_id).first()

    def verify_password(self, user: User, plain_password: str) -> bool:
        return verify_password(plain_password, user.password_hash)

    def authenticate(self, email: str, plain_password: str) -> Optional[User]:
        """Return the user if the credentials match, otherwise None."""
        user = self.find_by_email(email, with_password=True)
        if user is None or not self.verify_password(user, plain_password):
            return None
        return user

    def update_profile(
        self,
        user_id,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """
        Update the supplied profile fields only.

        The password hash is recomputed only when a new password is given.
        """
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")
        if name is not None:
            user.name = validate_name(name)
        if email is not None:
            email = validate_email(email)
            if email != user.email and self._email_taken(email):
                raise DuplicateEmail("Email already registered")
            user.email = email
        if password is not None:
            user.password_hash = get_password_hash(validate_password(password))
        self._commit()
        self.db.refresh(user)
        return user

    def _email_taken(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email).first() is not None

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateEmail("Email already registered")
