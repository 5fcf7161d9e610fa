# taskhub/auth/auth_router.py

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from taskhub.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from taskhub.database import commit, get_db
from taskhub.group.group_service import create_default_groups
from taskhub.models.user import User
from taskhub.stats.stats_service import recompute_user_stats

if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY is not set (see .env)")

router = APIRouter(tags=["auth"])
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

MIN_PASSWORD_LENGTH = 8
PASSWORD_RULES = (
    (r"[A-Z]", "Password needs an uppercase letter"),
    (r"\d", "Password needs a digit"),
    (r"[^A-Za-z0-9]", "Password needs a symbol"),
)

_CREDENTIALS_ERROR = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


# ---------------- TOKENS + HASHING ----------------
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: int, expires_in: Optional[timedelta] = None) -> str:
    expires_at = datetime.now(timezone.utc) + (expires_in or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(user_id), "exp": expires_at}
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """Owner id taken from the bearer token; every other router scopes by it."""
    try:
        claims = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise _CREDENTIALS_ERROR


# ---------------- REQUEST BODIES ----------------
class RegisterRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=100)
    password: str
    confirm_password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        for pattern, message in PASSWORD_RULES:
            if not re.search(pattern, value):
                raise ValueError(message)
        return value

    @model_validator(mode="after")
    def confirmation_matches(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# ---------------- ROUTES ----------------
@router.post("/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    email = body.email.lower()
    if db.query(User).filter(User.email == email).first() is not None:
        raise HTTPException(400, "Email already registered")

    account = User(email=email, name=body.name, password_hash=hash_password(body.password))
    db.add(account)
    commit(db)
    db.refresh(account)

    # every account starts with its default groups and an empty stats row
    create_default_groups(db, account.id)
    recompute_user_stats(db, user_id=account.id)

    return {"id": account.id, "email": account.email, "name": account.name}


@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    account = db.query(User).filter(User.email == body.email.lower()).first()
    if account is None or not verify_password(body.password, account.password_hash):
        raise HTTPException(401, "Invalid credentials")
    if not account.is_active:
        raise HTTPException(403, "Account disabled")

    return {"access_token": create_access_token(account.id), "token_type": "bearer"}


@router.get("/me")
def me(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    account = db.get(User, user_id)
    if account is None:
        raise HTTPException(404, "User not found")
    return {"id": account.id, "email": account.email, "name": account.name}
