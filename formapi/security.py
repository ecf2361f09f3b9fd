import datetime
import logging
from typing import Annotated, Literal, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from formapi.config import config
from formapi.database import database, user_table
from formapi.models.user import User

logging.getLogger('passlib').setLevel(logging.ERROR)
logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/user/login", auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"])


class Session(BaseModel):
    """Who is making the current request. Anonymous when ``user`` is None."""

    user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user_id(self, user_id: int) -> None:
        """Reject a signed-in caller acting on another user's data."""
        if self.user is not None and self.user.id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to access this resource",
            )


def create_unauthorized_exception(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def access_token_expire_minutes() -> int:
    return config.ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(email: str):
    logger.debug("Creating access token", extra={"email": email})
    expire = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
        minutes=access_token_expire_minutes()
    )
    jwt_data = {"sub": email, "exp": expire, "type": "access"}
    encoded_jwt = jwt.encode(jwt_data, key=config.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def get_subject_for_token_type(token: str, type: Literal["access"]) -> str:
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError as e:
        raise create_unauthorized_exception("Token has expired") from e
    except JWTError as e:
        raise create_unauthorized_exception("Invalid token") from e

    email = payload.get("sub")
    if email is None:
        raise create_unauthorized_exception("Token is missing 'sub' field")

    token_type = payload.get("type")
    if token_type is None or token_type != type:
        raise create_unauthorized_exception(
            f"Token has incorrect type, expected '{type}'"
        )

    return email


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


async def get_user(email: str) -> Optional[User]:
    logger.debug("Fetching user from the database", extra={"email": email})
    query = user_table.select().where(user_table.c.email == email)
    result = await database.fetch_one(query)
    if result:
        return User(
            id=result.id,
            name=result.name,
            email=result.email,
            password_hash=result.password_hash,
        )
    return None


async def authenticate_user(email: str, password: str) -> Optional[User]:
    """Return the user when the bcrypt hash matches, otherwise None."""
    logger.debug("Authenticating user", extra={"email": email})
    user = await get_user(email)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def get_session(token: Annotated[Optional[str], Depends(oauth2_scheme)]) -> Session:
    if not token:
        return Session()
    email = get_subject_for_token_type(token, "access")
    user = await get_user(email=email)
    if user is None:
        raise create_unauthorized_exception("Could not find user for this token")
    return Session(user=user)
