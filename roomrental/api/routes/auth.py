"""
Sign-up and sign-in.

Login answers with the bearer token together with the account's id and role,
so a client can open the matching dashboard without a second request.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from roomrental.core.config import get_settings
from roomrental.db.session import get_db
from roomrental.schemas.user import Token, UserCreate, UserLogin, UserResponse
from roomrental.services.auth_service import authenticate_user, register_user

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """Create a TENANT or LANDLORD account. Admins are only made by other admins."""
    user = await register_user(db, user_data)
    response.headers["Location"] = str(request.url_for("read_user", user_id=user.id))
    return user


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    user, access_token = await authenticate_user(db, login_data)
    return Token(
        access_token=access_token,
        user_id=user.id,
        role=user.role,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
