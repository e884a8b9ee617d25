# careconnect/auth/auth_controller.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.auth.dependencies import get_current_user
from careconnect.common.database.database import get_db_session
from careconnect.auth import auth_service, schemas
from careconnect.models.models import User

router = APIRouter(prefix="/auth", tags=["auth"])


def user_to_response(user: User) -> schemas.UserResponse:
    """Convert User model to UserResponse schema."""
    return schemas.UserResponse(
        id=str(user.id),
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
    )


@router.post("/login", response_model=schemas.LoginResponse)
async def login(
    credentials: schemas.LoginRequest,
    db: AsyncSession = Depends(get_db_session)
):
    """
    Authenticate a user and return an access token.

    - **email**: User's email address
    - **password**: User's password
    """
    user, access_token = await auth_service.login_user(
        email=credentials.email,
        password=credentials.password,
        db=db
    )

    return schemas.LoginResponse(
        access_token=access_token,
        user=user_to_response(user)
    )


@router.get("/me", response_model=schemas.UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get the current authenticated user's information.

    Requires authentication.
    """
    return user_to_response(current_user)
