import logging
import re
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models, schemas
from app.config import DEFAULT_TAG_COLOR
from app.exceptions import NoTagsFoundError, TagNameConflictError, TagNotFoundError, ValidationError

logger = logging.getLogger(__name__)

TAG_NAME_MAX_LENGTH = 50
TAG_NAME_PATTERN = re.compile(r"[A-Za-z0-9\s\-_]+")
TAG_COLOR_PATTERN = re.compile(r"#[0-9A-Fa-f]{6}")


def normalize_tag_name(name: Optional[str]) -> str:
    if name is None:
        raise ValidationError("Tag name is required")
    name = name.strip()
    if not name:
        raise ValidationError("Tag name cannot be empty")
    if len(name) > TAG_NAME_MAX_LENGTH:
        raise ValidationError(f"Tag name cannot exceed {TAG_NAME_MAX_LENGTH} characters")
    if not TAG_NAME_PATTERN.fullmatch(name):
        raise ValidationError("Tag name can only contain letters, numbers, spaces, hyphens, and underscores")
    return name


def validate_color(color: Optional[str]) -> str:
    if color is None:
        return DEFAULT_TAG_COLOR
    if not TAG_COLOR_PATTERN.fullmatch(color):
        raise ValidationError("Color must be a valid hex color code (e.g., #FF5733)")
    return color


def find_tag_by_name(db: Session, owner_id: int, name: str, exclude_id: Optional[int] = None):
    query = db.query(models.Tag).filter(
        models.Tag.created_by == owner_id,
        func.lower(models.Tag.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(models.Tag.id != exclude_id)
    return query.first()


def get_owned_tag(db: Session, owner_id: int, tag_id: int) -> models.Tag:
    tag = (
        db.query(models.Tag)
        .filter(models.Tag.id == tag_id, models.Tag.created_by == owner_id)
        .first()
    )
    if tag is None:
        raise TagNotFoundError(tag_id)
    return tag


def list_tags(db: Session, owner_id: int) -> list[models.Tag]:
    tags = (
        db.query(models.Tag)
        .filter(models.Tag.created_by == owner_id)
        .order_by(models.Tag.usage_count.desc(), models.Tag.created_at.desc(), models.Tag.id.desc())
        .all()
    )
    if not tags:
        raise NoTagsFoundError()
    return tags


def _commit_tag(db: Session, tag: models.Tag) -> None:
    # The unique index on (created_by, lower(name)) settles races the early check misses
    name = tag.name
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise TagNameConflictError(name)
    db.refresh(tag)


def create_tag(db: Session, owner_id: int, name: Optional[str], color: Optional[str] = None) -> models.Tag:
    name = normalize_tag_name(name)
    color = validate_color(color)

    if find_tag_by_name(db, owner_id, name):
        raise TagNameConflictError(name)

    tag = models.Tag(name=name, color=color, created_by=owner_id, usage_count=0)
    db.add(tag)
    _commit_tag(db, tag)
    logger.info(f"Created tag {tag.id} ({tag.name!r}) for user {owner_id}")
    return tag


def update_tag(
    db: Session,
    owner_id: int,
    tag_id: int,
    name: Optional[str] = None,
    color: Optional[str] = None,
) -> models.Tag:
    if name is None and color is None:
        raise ValidationError("At least one field is required for update")

    tag = get_owned_tag(db, owner_id, tag_id)

    if name is not None:
        name = normalize_tag_name(name)
        if find_tag_by_name(db, owner_id, name, exclude_id=tag.id):
            raise TagNameConflictError(name)
        tag.name = name
    if color is not None:
        tag.color = validate_color(color)

    _commit_tag(db, tag)
    logger.info(f"Updated tag {tag.id} for user {owner_id}")
    return tag


def delete_tag(db: Session, owner_id: int, tag_id: int) -> tuple[schemas.Tag, int]:
    """
    Delete an owned tag after detaching it from every contact that carries it.

    Runs in two phases inside one transaction: first the affected contacts
    are found and the tag removed from each, then the tag row is deleted.
    A failure in either phase rolls both back, so the call can simply be
    repeated; once it has succeeded, repeating it raises TagNotFoundError.

    :return: the deleted tag as it was, and the number of contacts detached.
    """
    tag = get_owned_tag(db, owner_id, tag_id)

    affected = (
        db.query(models.Contact)
        .filter(models.Contact.created_by == owner_id, models.Contact.tags.any(models.Tag.id == tag.id))
        .all()
    )
    deleted = schemas.Tag.model_validate(tag)
    try:
        for contact in affected:
            contact.tags.remove(tag)
        db.flush()

        db.delete(tag)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Deleted tag {tag_id} for user {owner_id}, detached from {len(affected)} contacts")
    return deleted, len(affected)


# usage_count equals the number of the owner's contacts carrying the tag.
# Callers change the links and the counter in the same transaction.
def increment_usage(tag: models.Tag, by: int = 1) -> models.Tag:
    tag.usage_count = (tag.usage_count or 0) + by
    return tag


def decrement_usage(tag: models.Tag) -> models.Tag:
    if tag.usage_count and tag.usage_count > 0:
        tag.usage_count -= 1
    return tag
