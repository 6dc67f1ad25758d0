"""
Account endpoints: register, login, profile, plus development-only admin helpers.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.auth import create_access_token, get_current_user, hash_password, verify_password
from storefront.config import settings
from storefront.database import get_db
from storefront.errors import ConflictError, NotFoundError
from storefront.logger import get_logger
from storefront.models import User
from storefront.schemas import (
    LoginRequest, MakeAdminRequest, ProfileUpdate, RegisterRequest, UserOut, dump,
)

logger = get_logger("api.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])

DEV_ADMIN_EMAIL = "admin@smartlocks.ge"
DEV_ADMIN_PASSWORD = "admin123"


def _require_dev_routes():
    if not settings.enable_dev_routes:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


@router.post("/register", status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == request.email).first() is not None:
        raise ConflictError("User already exists with this email", field="email")

    user = User(
        email=request.email,
        password=hash_password(request.password),
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
        is_admin=False,
    )
    db.add(user)
    db.commit()
    logger.info(f"Registered user {user.id}")
    return {
        "message": "User registered successfully",
        "user": dump(UserOut.model_validate(user)),
        "token": create_access_token(user.id),
    }


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == request.email).first()
    if user is None or not user.password or not verify_password(request.password, user.password):
        logger.info("Failed login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return {
        "message": "Login successful",
        "user": dump(UserOut.model_validate(user)),
        "token": create_access_token(user.id),
    }


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"user": dump(UserOut.model_validate(user))}


@router.put("/profile")
def update_profile(request: ProfileUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    for name in request.model_fields_set:
        setattr(user, name, getattr(request, name))
    db.commit()
    return {"message": "Profile updated successfully", "user": dump(UserOut.model_validate(user))}


@router.post("/create-admin", dependencies=[Depends(_require_dev_routes)])
def create_admin(db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == DEV_ADMIN_EMAIL).first()
    if existing is not None:
        return {"message": "Admin user already exists", "user": dump(UserOut.model_validate(existing))}

    admin = User(
        email=DEV_ADMIN_EMAIL,
        password=hash_password(DEV_ADMIN_PASSWORD),
        first_name="Admin",
        last_name="User",
        phone="+995555123456",
        is_admin=True,
    )
    db.add(admin)
    db.commit()
    logger.info(f"Created development admin {admin.id}")
    return {"message": "Admin user created successfully", "user": dump(UserOut.model_validate(admin))}


@router.post("/make-admin", dependencies=[Depends(_require_dev_routes)])
def make_admin(request: MakeAdminRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == request.email).first()
    if user is None:
        raise NotFoundError("User not found")
    user.is_admin = True
    db.commit()
    logger.info(f"Promoted user {user.id} to admin")
    return {"message": "User promoted to admin successfully", "user": dump(UserOut.model_validate(user))}
