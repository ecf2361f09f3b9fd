import logging
import sqlite3

from fastapi import APIRouter, HTTPException, status
from formapi.models.user import LoginIn, UserIn
from formapi.security import (
    authenticate_user,
    create_access_token,
    get_password_hash,
    get_user,
)
from formapi.database import database, user_table

logger = logging.getLogger(__name__)
router = APIRouter()


def user_exists_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="User already exist",
    )


@router.post("/signup", status_code=201)
async def signup(user: UserIn):
    if await get_user(user.email) is not None:
        logger.debug("Signup rejected, email already registered", extra={"email": user.email})
        raise user_exists_exception()
    query = user_table.insert().values(
        name=user.name,
        email=user.email,
        password_hash=get_password_hash(user.password),
    )

    logger.debug(query)

    try:
        user_id = await database.execute(query)
    except sqlite3.IntegrityError as e:
        # a concurrent signup took the email between the check and the insert
        logger.debug("Signup lost the race for email", extra={"email": user.email})
        raise user_exists_exception() from e
    return {
        "message": "User created successfully",
        "success": True,
        "data": {"_id": user_id, "email": user.email, "name": user.name},
    }


@router.post("/login", status_code=200)
async def login(body: LoginIn):
    user = await authenticate_user(body.user_data.email, body.user_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials.",
        )
    return {
        "message": "Successfully logged in",
        "success": True,
        "data": user.public(),
        "access_token": create_access_token(user.email),
        "token_type": "bearer",
    }
