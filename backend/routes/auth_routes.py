"""
Auth Routes - identity provider
Profiles live in the record store; the role is always read from the profile
"""
from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr
from datetime import datetime, timezone, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
import logging

from database import settings
from app.records.application.repository import Repositories
from app.records.domain.errors import PersistenceError
from app.records.domain.models import Create, UserRole, UserSummary
from app.records.presentation.response_mapper import user_to_response
from routes.dependencies import get_repositories, to_http_error

logger = logging.getLogger(__name__)

# JWT Settings
ALGORITHM = "HS256"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Security
security = HTTPBearer()

# Create router
auth_router = APIRouter(prefix="/api", tags=["Auth"])


# ==================== PYDANTIC MODELS ====================

class SignUpRequest(BaseModel):
    full_name: str
    email: EmailStr
    password: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    name: str
    role: str
    email: str = ""


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# ==================== HELPER FUNCTIONS ====================

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    repositories: Repositories = Depends(get_repositories)
) -> UserSummary:
    """Resolve the bearer token to the user's profile"""
    try:
        payload = jwt.decode(credentials.credentials, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid access token")

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid access token")

    try:
        profile = (await repositories.profiles.get(user_id)).unwrap()
    except PersistenceError as exc:
        raise to_http_error(exc)
    if profile is None:
        raise HTTPException(status_code=401, detail="User not found")

    return profile.summary()


def _token_response(profile) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token({"sub": profile.id}),
        user=UserResponse(**user_to_response(profile)),
    )


# ==================== AUTH ROUTES ====================

@auth_router.post("/auth/signup", response_model=TokenResponse)
async def sign_up(
    data: SignUpRequest,
    repositories: Repositories = Depends(get_repositories)
):
    """Register a new profile - the first profile becomes the admin"""
    full_name = data.full_name.strip()
    email = data.email.lower()
    if not full_name:
        raise HTTPException(status_code=400, detail="Please fill in all fields")
    if len(data.password) < 6:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")

    try:
        existing = (await repositories.profiles.list_where(email=email)).unwrap()
        if existing:
            raise HTTPException(status_code=400, detail="Email is already registered")

        profiles = (await repositories.profiles.list()).unwrap()
        role = UserRole.EMPLOYEE if profiles else UserRole.ADMIN

        profile = (
            await repositories.profiles.save(
                Create(
                    fields={
                        "name": full_name,
                        "email": email,
                        "role": role,
                        "password_hash": get_password_hash(data.password),
                    }
                )
            )
        ).unwrap()
    except PersistenceError as exc:
        raise to_http_error(exc)

    logger.info(f"Registered profile {profile.id} with role {profile.role}")
    return _token_response(profile)


@auth_router.post("/auth/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    repositories: Repositories = Depends(get_repositories)
):
    """Sign in with email and password"""
    try:
        matches = (await repositories.profiles.list_where(email=credentials.email.lower())).unwrap()
    except PersistenceError as exc:
        raise to_http_error(exc)

    profile = matches[0] if matches else None
    if profile is None or not verify_password(credentials.password, profile.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return _token_response(profile)


@auth_router.post("/auth/logout")
async def logout(current_user: UserSummary = Depends(get_current_user)):
    """Tokens are stateless; the client discards its token"""
    return {"message": "Signed out"}


@auth_router.get("/auth/me")
async def get_me(current_user: UserSummary = Depends(get_current_user)):
    """Get the current user's id, name and role"""
    return user_to_response(current_user)
