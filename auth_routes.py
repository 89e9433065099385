import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import models
import schemas
from config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ADMIN_EMAILS,
    INITIAL_CREDITS,
    JWT_ALGORITHM,
    JWT_SECRET,
    LOGIN_RATE_LIMIT,
    LOGIN_RATE_WINDOW_SECONDS,
)
from database import get_db
from rate_limiter import enforce_rate_limit, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


# ===== Helpers =====
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(models.User.email == email.strip().lower())
        .first()
    )


def is_admin_user(user: models.User) -> bool:
    if user.is_admin:
        return True
    return bool(user.email) and user.email.lower() in ADMIN_EMAILS


def serialize_user(user: models.User) -> schemas.UserRead:
    return schemas.UserRead(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        photo_url=user.photo_url,
        credits=user.credits or 0,
        is_admin=is_admin_user(user),
        created_at=user.created_at,
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> models.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Não foi possível autenticar. Faça login novamente.",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        user_id: int = payload.get("sub_id")
        email: str = payload.get("sub_email")
        if user_id is None or email is None:
            raise credentials_exception
        token_data = schemas.TokenData(user_id=user_id, email=email)
    except JWTError:
        raise credentials_exception

    user = db.get(models.User, token_data.user_id)
    if user is None:
        raise credentials_exception
    return user


def require_admin(current_user: models.User = Depends(get_current_user)) -> models.User:
    if is_admin_user(current_user):
        return current_user
    raise HTTPException(status_code=403, detail="Acesso restrito.")


# ===== Rotas =====
@router.post("/register", response_model=schemas.UserRead)
def register(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    email = user_in.email.strip().lower()
    if get_user_by_email(db, email):
        raise HTTPException(
            status_code=400, detail="Já existe um usuário com esse e-mail."
        )
    user = models.User(
        email=email,
        full_name=user_in.full_name,
        photo_url=user_in.photo_url,
        hashed_password=get_password_hash(user_in.password),
        credits=INITIAL_CREDITS,
        is_admin=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("user_registered user_id=%s credits=%s", user.id, user.credits)
    return user


@router.post("/login", response_model=schemas.Token)
def login(
    login_in: schemas.LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    enforce_rate_limit(
        f"login:{get_client_ip(request)}",
        limit=LOGIN_RATE_LIMIT,
        window_seconds=LOGIN_RATE_WINDOW_SECONDS,
    )

    user = get_user_by_email(db, login_in.email)
    if not user or not verify_password(login_in.password, user.hashed_password):
        logger.info("login_failed email=%s", login_in.email)
        raise HTTPException(status_code=400, detail="E-mail ou senha inválidos.")

    token = create_access_token(
        data={"sub_id": user.id, "sub_email": user.email},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return schemas.Token(access_token=token)


@router.get("/me", response_model=schemas.UserRead)
def read_me(current_user: models.User = Depends(get_current_user)):
    return serialize_user(current_user)
