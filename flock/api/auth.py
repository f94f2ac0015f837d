from typing import Annotated

from fastapi import APIRouter, Depends, status

from flock.core.db import Database, get_db
from flock.schemas.schemas import LoginResponse, LoginUser, MessageResponse, UserCreate, UserLogin
from flock.services.account_service import authenticate_user, register_user

router = APIRouter(tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    db: Annotated[Database, Depends(get_db)],
) -> MessageResponse:
    """
    Register a new user.

    Parameters:
    - **user_data**: name, email and password

    Returns:
    - **MessageResponse**: Confirmation message

    Raises:
    - **400 Bad Request**: If the email is already registered or the body is malformed
    """
    await register_user(db, name=user_data.name, email=user_data.email, password=user_data.password)
    return MessageResponse(message="User registered successfully")


@router.post("/login", status_code=status.HTTP_200_OK)
async def login(
    credentials: UserLogin,
    db: Annotated[Database, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate a user and return a bearer token valid for one hour.

    Parameters:
    - **credentials**: email and password

    Returns:
    - **LoginResponse**: Signed token and public user summary

    Raises:
    - **404 Not Found**: If no user has this email
    - **401 Unauthorized**: If the password does not match
    """
    token, user = await authenticate_user(db, credentials.email, credentials.password)
    return LoginResponse(
        token=token,
        user=LoginUser(name=user.name, email=user.email, id=user.id),
    )
