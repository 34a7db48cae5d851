# backend/routes/auth.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.cart import Cart
from models.users import User
from schemas import user as schemas
from schemas.common import Envelope, MessageOut
from utils.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from utils.hashing import get_password_hash, verify_password
from utils.response import ok
from utils.tokenJWT import decode_refresh_token, get_current_user, issue_tokens

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _find_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def _auth_payload(user: User) -> schemas.AuthResponse:
    return schemas.AuthResponse(**issue_tokens(user), user=schemas.UserResponse.model_validate(user))


# Register a new user together with their (empty) cart
@router.post("/register", response_model=Envelope[schemas.AuthResponse], status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    if _find_by_email(db, normalized_email):
        logger.info("Registration refused, email exists: %s", normalized_email)
        raise ConflictError("Email already registered", field="email")

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        name=payload.name,
    )
    new_user.cart = Cart()
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info("User %s registered", new_user.id)
    return ok(_auth_payload(new_user))


# Authenticate user and issue a JWT token pair
@router.post("/login", response_model=Envelope[schemas.AuthResponse])
def login(payload: schemas.UserLogin, db: Session = Depends(get_db)):
    db_user = _find_by_email(db, payload.email)

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        logger.info("Failed login for %s", payload.email)
        raise UnauthorizedError("Invalid credentials", code="INVALID_CREDENTIALS")

    return ok(_auth_payload(db_user))


# Exchange a refresh token for a new token pair
@router.post("/refresh", response_model=Envelope[schemas.TokenPair])
def refresh(payload: schemas.RefreshRequest, db: Session = Depends(get_db)):
    claims = decode_refresh_token(payload.refresh_token)
    user_id = claims.get("id")
    if user_id is None:
        raise UnauthorizedError("Invalid refresh token", code="INVALID_TOKEN")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found", code="USER_NOT_FOUND")

    return ok(schemas.TokenPair(**issue_tokens(user)))


# Retrieve current authenticated user details
@router.get("/me", response_model=Envelope[schemas.UserResponse])
def me(current_user: User = Depends(get_current_user)):
    return ok(schemas.UserResponse.model_validate(current_user))


@router.put("/profile", response_model=Envelope[schemas.UserResponse])
def update_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if payload.email:
        normalized_email = payload.email.strip().lower()
        existing = _find_by_email(db, normalized_email)
        if existing and existing.id != current_user.id:
            raise ConflictError("Email already in use", field="email")
        current_user.email = normalized_email
    if payload.name:
        current_user.name = payload.name

    db.commit()
    db.refresh(current_user)
    return ok(schemas.UserResponse.model_validate(current_user))


@router.put("/change-password", response_model=Envelope[MessageOut])
def change_password(
    payload: schemas.PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = db.get(User, current_user.id)
    if user is None:
        raise NotFoundError("User not found")

    if not verify_password(payload.current_password, user.password_hash):
        raise BadRequestError(
            "Current password is incorrect",
            details={"validationErrors": [
                {"field": "currentPassword", "message": "Current password is incorrect"}
            ]},
        )

    user.password_hash = get_password_hash(payload.new_password)
    db.commit()
    logger.info("User %s changed password", user.id)
    return ok(MessageOut(message="Password updated successfully"))
