from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.auth_handler import sign_jwt
from carcheck.auth.dependencies import get_current_user
from carcheck.auth.passwords_handler import hash_password_async, verify_password_async
from carcheck.core.db import get_db
from carcheck.models.user import User
from carcheck.schemas.user import ProfileUpdate, UserLoginSchema, UserOut, UserSchema

router = APIRouter(prefix="/auth", tags=["auth"])


async def _find_user(db: AsyncSession, email: str):
    return (
        await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    ).scalar_one_or_none()


@router.post("/register", status_code=201)
async def register_user(user: UserSchema, db: AsyncSession = Depends(get_db)):
    email = user.email.strip().lower()
    if await _find_user(db, email):
        raise HTTPException(status_code=409, detail="Email already registered.")

    hashed_password = await hash_password_async(user.password)
    db.add(User(email=email, fullname=user.fullname.strip(), password=hashed_password))

    try:
        await db.commit()
    except IntegrityError:
        # handle race where another request created the same email
        await db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered.")

    return sign_jwt(email)


@router.post("/login")
async def login_user(user: UserLoginSchema, db: AsyncSession = Depends(get_db)):
    existing_user = await _find_user(db, user.email)
    # Same answer for unknown email and wrong password
    if not existing_user or not await verify_password_async(user.password, existing_user.password):
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return sign_jwt(existing_user.email)


@router.get("/me", response_model=UserOut)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserOut)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    for field, value in profile.model_dump(exclude_unset=True).items():
        setattr(current_user, field, (value or "").strip() or None)
    await db.commit()
    return current_user
