from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import models, schemas, users
from app.auth import create_access_token, get_current_user
from app.db import get_db

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(user: schemas.UserCreate, db: Session = Depends(get_db)):
    new_user = users.create_user(db, user)
    return schemas.envelope(schemas.User.model_validate(new_user), message="User registered successfully")


@router.post("/login")
def login_user(credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    """
    Log in with email and password.

    Returns the public user record and a bearer token valid for 24 hours.
    """
    user = users.authenticate_user(db, credentials.email, credentials.password)
    data = {
        "user": schemas.User.model_validate(user),
        "token": create_access_token(user),
        "token_type": "bearer",
    }
    return schemas.envelope(data, message="Login successful")


@router.post("/logout")
def logout_user():
    # Tokens are stateless; the client drops its copy
    return schemas.envelope(
        {"message": "Please remove the token from client storage"},
        message="User logged out successfully",
    )


@router.put("/update-password")
def update_password(
    body: schemas.PasswordUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    users.update_password(db, current_user, body.current_password, body.new_password)
    return schemas.envelope(message="Password updated successfully")
