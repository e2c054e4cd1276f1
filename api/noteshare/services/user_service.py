from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import types
from typing import Optional, Tuple
import logging

import bcrypt
from passlib.context import CryptContext

from ..models.user import User, UserCreate, UserResponse
from ..auth.jwt_utils import create_access_token
from ..core.errors import DuplicateEmail, InvalidCredentials, NotFoundError
from ..config.settings import BCRYPT_ROUNDS

# passlib still reads bcrypt.__about__, which bcrypt 4.1 removed
if not hasattr(bcrypt, "__about__"):
    bcrypt.__about__ = types.SimpleNamespace(__version__=getattr(bcrypt, "__version__", ""))

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

MAX_PASSWORD_BYTES = 72

# Verified against when the email is unknown so both paths cost one bcrypt check
_DUMMY_HASH = pwd_context.hash("noteshare-timing-equalizer")


def _normalize_password(password: str) -> str:
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > MAX_PASSWORD_BYTES:
        logger.warning("Password exceeds bcrypt 72-byte limit; truncating")
        return password_bytes[:MAX_PASSWORD_BYTES].decode('utf-8', 'ignore')
    return password


def _issue_token(user: User) -> str:
    return create_access_token({"id": user.id, "email": user.email, "name": user.name})


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def register(self, user_data: UserCreate) -> Tuple[UserResponse, str]:
        """Create a new user and mint their first session token"""
        if self.get_user_by_email(user_data.email) is not None:
            raise DuplicateEmail()

        hashed_password = pwd_context.hash(_normalize_password(user_data.password))
        db_user = User(
            email=user_data.email,
            password=hashed_password,
            name=user_data.name,
            college=user_data.college,
        )

        try:
            self.db.add(db_user)
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            self.db.rollback()
            raise DuplicateEmail()
        self.db.refresh(db_user)

        logger.info(f"Registered user {db_user.id}")
        return UserResponse.model_validate(db_user), _issue_token(db_user)

    def login(self, email: str, password: str) -> Tuple[UserResponse, str]:
        """Check an email/password pair; never reveals which half was wrong"""
        user = self.get_user_by_email(email)
        if user is None:
            pwd_context.verify(_normalize_password(password), _DUMMY_HASH)
            logger.info("Login failed: unknown email")
            raise InvalidCredentials()

        if not self.verify_password(password, user.password):
            logger.info(f"Login failed for user {user.id}: bad password")
            raise InvalidCredentials()

        logger.info(f"Successful login for user {user.id}")
        return UserResponse.model_validate(user), _issue_token(user)

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Exact, case-sensitive email lookup"""
        return self.db.query(User).filter(User.email == email).first()

    def get_user(self, user_id: int) -> UserResponse:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFoundError("User not found")
        return UserResponse.model_validate(user)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return pwd_context.verify(_normalize_password(plain_password), hashed_password)
