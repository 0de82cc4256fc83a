import logging

from sqlalchemy.orm import Session, selectinload

from app import models, schemas
from app.exceptions import ContactNotFoundError, NoContactsFoundError, NoFavoritesFoundError, ValidationError
from app.tags import decrement_usage

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "phone", "is_favorite")


def _owned_contacts(db: Session, owner_id: int):
    return (
        db.query(models.Contact)
        .options(selectinload(models.Contact.tags))
        .filter(models.Contact.created_by == owner_id)
    )


def get_owned_contact(db: Session, owner_id: int, contact_id: int) -> models.Contact:
    contact = _owned_contacts(db, owner_id).filter(models.Contact.id == contact_id).first()
    if contact is None:
        raise ContactNotFoundError(contact_id)
    return contact


def list_contacts(db: Session, owner_id: int) -> list[models.Contact]:
    contacts = _owned_contacts(db, owner_id).order_by(models.Contact.id).all()
    if not contacts:
        raise NoContactsFoundError()
    return contacts


def list_favorites(db: Session, owner_id: int) -> list[models.Contact]:
    contacts = (
        _owned_contacts(db, owner_id)
        .filter(models.Contact.is_favorite.is_(True))
        .order_by(models.Contact.id)
        .all()
    )
    if not contacts:
        raise NoFavoritesFoundError()
    return contacts


def create_contact(db: Session, owner_id: int, contact: schemas.ContactCreate) -> models.Contact:
    db_contact = models.Contact(**contact.model_dump(), created_by=owner_id)
    db.add(db_contact)
    db.commit()
    db.refresh(db_contact)
    logger.info(f"Created contact {db_contact.id} for user {owner_id}")
    return db_contact


def update_contact(db: Session, owner_id: int, contact_id: int, data: dict) -> models.Contact:
    """
    Apply a partial update to an owned contact.

    The owner and the tag list cannot be changed here: ``created_by`` and
    ``tags`` are dropped from ``data`` before anything else happens.
    """
    changes = {key: value for key, value in data.items() if key in UPDATABLE_FIELDS}
    if not changes:
        raise ValidationError("Request body is required")

    contact = get_owned_contact(db, owner_id, contact_id)
    for key, value in changes.items():
        setattr(contact, key, value)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(contact)
    return contact


def delete_contact(db: Session, owner_id: int, contact_id: int) -> schemas.Contact:
    contact = get_owned_contact(db, owner_id, contact_id)

    # Keep usage counters equal to the number of contacts carrying each tag
    for tag in contact.tags:
        decrement_usage(tag)

    deleted = schemas.Contact.model_validate(contact)
    db.delete(contact)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Deleted contact {contact_id} for user {owner_id}")
    return deleted


def set_favorite(db: Session, owner_id: int, contact_id: int, value: bool) -> models.Contact:
    contact = get_owned_contact(db, owner_id, contact_id)
    if contact.is_favorite != value:
        contact.is_favorite = value
        db.commit()
        db.refresh(contact)
    return contact
