import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from jose import JWTError, jwt
import bcrypt
from sqlalchemy.orm import Session

from ..config import JWT_EXPIRES_DAYS, JWT_SECRET, RESET_TOKEN_EXPIRE_MINUTES
from ..database import get_db
from ..errors import BadRequestError, ConflictError, UnauthorizedError
from ..models import User
from ..schemas.base import MessageResponse
from ..schemas.user import (
    AuthResponse,
    PasswordReset,
    PasswordResetRequest,
    UserCreate,
    UserPublic,
    UserSignin,
)
from ..services.email_service import EmailDeliveryError, send_password_reset_email
from ..services.storage import remove_notebook_dir

logger = logging.getLogger(__name__)

router = APIRouter()

ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
RESET_TOKEN_BYTES = 32

INVALID_CREDENTIALS = "Invalid email or password"
RESET_REQUESTED_MESSAGE = "If an account with that email exists, a password reset link has been sent"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
    return bcrypt.checkpw(password_bytes, hashed_bytes)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt directly."""
    password_bytes = password.encode('utf-8')[:72]  # Truncate to 72 bytes (bcrypt limit)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user by exact email match."""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token carrying the user id."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=JWT_EXPIRES_DAYS))
    return jwt.encode({"sub": user_id, "exp": expire}, JWT_SECRET, algorithm=ALGORITHM)


def generate_reset_token() -> str:
    """32 random bytes rendered as 64 hex characters."""
    return secrets.token_hex(RESET_TOKEN_BYTES)


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    # Scheme match is exact: only "Bearer <token>" is accepted
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):].strip() or None
    return None


def _decode_token(token: str) -> Optional[str]:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("sub")
    return user_id or None


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer token."""
    token = _get_token_from_request(request)
    if not token:
        raise UnauthorizedError("No token provided")

    user_id = _decode_token(token)
    if not user_id:
        raise UnauthorizedError("Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(
    user: UserCreate,
    db: Session = Depends(get_db),
):
    """Create a new user account."""
    db_user = db.query(User).filter(User.email == user.email).first()
    if db_user:
        raise ConflictError("User already exists with this email")

    db_user = User(
        email=user.email,
        hashed_password=get_password_hash(user.password),
        name=user.name,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("User %s signed up", db_user.id)

    return {
        "message": "User created successfully",
        "token": create_access_token(db_user.id),
        "user": db_user,
    }


@router.post("/signin", response_model=AuthResponse)
def signin(
    user: UserSignin,
    db: Session = Depends(get_db),
):
    """Sign in and get JWT token."""
    db_user = authenticate_user(db, user.email, user.password)
    if not db_user:
        # Same message for unknown email and wrong password
        raise UnauthorizedError(INVALID_CREDENTIALS)

    logger.info("User %s signed in", db_user.id)
    return {
        "message": "Signed in successfully",
        "token": create_access_token(db_user.id),
        "user": db_user,
    }


@router.post("/request-password-reset", response_model=MessageResponse)
def request_password_reset(
    payload: PasswordResetRequest,
    db: Session = Depends(get_db),
):
    """Issue a reset token and email the link.

    The response never reveals whether the account exists.
    """
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        return {"message": RESET_REQUESTED_MESSAGE}

    reset_token = generate_reset_token()
    user.reset_token = reset_token
    user.reset_token_expiry = datetime.utcnow() + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    try:
        send_password_reset_email(user.email, reset_token, user_name=user.name)
    except EmailDeliveryError:
        logger.error("Failed to send reset email for user %s", user.id)

    return {"message": RESET_REQUESTED_MESSAGE}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: PasswordReset,
    db: Session = Depends(get_db),
):
    """Set a new password using a valid reset token.

    The token fields are cleared in the same commit as the password
    change, so a token works at most once.
    """
    user = (
        db.query(User)
        .filter(
            User.reset_token == payload.token,
            User.reset_token_expiry > datetime.utcnow(),
        )
        .first()
    )
    if not user:
        raise BadRequestError("Invalid or expired reset token")

    user.hashed_password = get_password_hash(payload.new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    user.updated_at = datetime.utcnow()
    db.commit()
    logger.info("Password reset for user %s", user.id)

    return {"message": "Password has been reset successfully"}


@router.get("/me", response_model=UserPublic)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user information."""
    return current_user


@router.delete("/me", response_model=MessageResponse)
def delete_account(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete the account along with every notebook it owns."""
    user_id = current_user.id
    notebook_ids = [notebook.id for notebook in current_user.notebooks]
    db.delete(current_user)
    db.commit()
    for notebook_id in notebook_ids:
        remove_notebook_dir(notebook_id)
    logger.info("User %s deleted their account", user_id)
    return {"message": "Account deleted successfully"}
