import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models, schemas
from app.auth import hash_password, verify_password
from app.exceptions import (
    InvalidCredentialsError,
    SamePasswordError,
    UserAlreadyExistsError,
    WrongCurrentPasswordError,
)

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str):
    return db.query(models.User).filter(models.User.email == email).first()


def create_user(db: Session, user: schemas.UserCreate) -> models.User:
    if get_user_by_email(db, user.email):
        raise UserAlreadyExistsError()

    db_user = models.User(name=user.name, email=user.email, password=hash_password(user.password))
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise UserAlreadyExistsError()
    db.refresh(db_user)
    logger.info(f"Registered user {db_user.id}")
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> models.User:
    # Unknown email and wrong password are reported the same way
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password):
        raise InvalidCredentialsError()
    return user


def update_password(db: Session, user: models.User, current_password: str, new_password: str) -> models.User:
    if not verify_password(current_password, user.password):
        raise WrongCurrentPasswordError()
    if verify_password(new_password, user.password):
        raise SamePasswordError()

    user.password = hash_password(new_password)
    db.commit()
    db.refresh(user)
    logger.info(f"Password updated for user {user.id}")
    return user
