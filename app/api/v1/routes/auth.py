import logging
import uuid
from fastapi import APIRouter, Depends, HTTPException
from jose import JWTError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import RegisterRequest, LoginRequest, RefreshRequest, TokenPair
from app.models.user import User
from app.core.security import hash_password, verify_password, create_access_token, create_refresh_token, decode_token
from app.api.deps import get_current_user
from app.services.notifications import after_commit, notify_welcome

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _user_out(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "firstname": u.firstname,
        "lastname": u.lastname,
        "phone": u.phone,
        "role": u.role,
    }


def _tokens(u: User) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(u.id, role=u.role),
        refresh_token=create_refresh_token(u.id),
    )


@router.post("/auth/register", status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="valid email required")
    if len(body.password) < 8:
        raise HTTPException(status_code=400, detail="Password too short")
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="email already exists")
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        firstname=body.firstname.strip(),
        lastname=body.lastname.strip(),
        phone=body.phone.strip(),
        role="client",
        password_hash=hash_password(body.password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    logger.info("user %s registered", u.id)
    after_commit(notify_welcome, db, u)
    return {"user": _user_out(u), **_tokens(u).model_dump()}


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _tokens(user)


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.refresh_token, expected_type="refresh")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = db.get(User, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _tokens(user)


@router.get("/auth/me")
def me(me: User = Depends(get_current_user)):
    """Return current user info including role."""
    return _user_out(me)
