import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from formapi.errors import Conflict
from formapi.models.user import AuthOut, LoginIn, User, UserIn
from formapi.security import (
    authenticate_user,
    create_access_token,
    create_user,
    get_current_user,
    get_user,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=AuthOut, status_code=201)
async def register(user: UserIn):
    if await get_user(user.username) is not None:
        raise Conflict("Username already exists")

    new_user = await create_user(user.username, user.password, user.name)
    logger.info("Registered user", extra={"user_id": new_user.id})
    return AuthOut(token=create_access_token(new_user.id, new_user.username), user=new_user)


@router.post("/login", response_model=AuthOut, status_code=200)
async def login(credentials: LoginIn):
    user = await authenticate_user(credentials.username, credentials.password)
    logger.info("Login successful", extra={"user_id": user.id})
    return AuthOut(token=create_access_token(user.id, user.username), user=user)


@router.get("/user", response_model=User, status_code=200)
async def read_current_user(current_user: Annotated[User, Depends(get_current_user)]):
    return current_user


# Tokens are stateless; the client discards its copy.
@router.post("/logout", status_code=200)
async def logout():
    return {"message": "Logged out successfully"}
