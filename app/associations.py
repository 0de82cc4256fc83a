import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import models
from app.contacts import get_owned_contact
from app.exceptions import (
    NoContactsFoundError,
    NoContactsWithTagError,
    TagAlreadyAssignedError,
    TagNotAssignedError,
)
from app.schemas import MAX_ID
from app.tags import decrement_usage, get_owned_tag, increment_usage

logger = logging.getLogger(__name__)

STATUS_ADDED = "added"
STATUS_ALREADY_HAS_TAG = "already_has_tag"


def _commit(db: Session) -> None:
    # Links and usage counters go in together or not at all
    try:
        db.commit()
    except IntegrityError:
        # Primary key on contact_tags: a concurrent request linked the pair first
        db.rollback()
        raise TagAlreadyAssignedError()
    except Exception:
        db.rollback()
        raise


def _has_tag(contact: models.Contact, tag: models.Tag) -> bool:
    return any(existing.id == tag.id for existing in contact.tags)


def link(db: Session, owner_id: int, tag_id: int, contact_id: int) -> tuple[models.Contact, models.Tag]:
    tag = get_owned_tag(db, owner_id, tag_id)
    contact = get_owned_contact(db, owner_id, contact_id)

    if _has_tag(contact, tag):
        raise TagAlreadyAssignedError()

    contact.tags.append(tag)
    increment_usage(tag)
    _commit(db)
    db.refresh(contact)
    db.refresh(tag)
    logger.info(f"Linked tag {tag_id} to contact {contact_id} for user {owner_id}")
    return contact, tag


def unlink(db: Session, owner_id: int, tag_id: int, contact_id: int) -> tuple[models.Contact, models.Tag]:
    tag = get_owned_tag(db, owner_id, tag_id)
    contact = get_owned_contact(db, owner_id, contact_id)

    if not _has_tag(contact, tag):
        raise TagNotAssignedError()

    contact.tags.remove(tag)
    decrement_usage(tag)
    _commit(db)
    db.refresh(contact)
    db.refresh(tag)
    logger.info(f"Unlinked tag {tag_id} from contact {contact_id} for user {owner_id}")
    return contact, tag


def bulk_link(db: Session, owner_id: int, tag_id: int, contact_ids: list[int]) -> dict:
    """
    Link one tag to many contacts.

    Ids that are repeated are processed once; ids that do not name one of the
    owner's contacts are skipped without being reported. Contacts that already
    carry the tag are reported as ``already_has_tag`` and not counted again.
    The usage counter is raised once, by the number of contacts newly linked.

    :return: ``{"tag", "total_processed", "added_count", "results"}`` where
        each result is ``{"contact_id", "name", "status"}``.
    :raises TagNotFoundError: if the tag is not one of the owner's.
    :raises NoContactsFoundError: if none of the ids resolve.
    """
    tag = get_owned_tag(db, owner_id, tag_id)

    # Ids outside the key range can never resolve
    wanted = [contact_id for contact_id in dict.fromkeys(contact_ids) if 0 < contact_id <= MAX_ID]
    found = (
        db.query(models.Contact)
        .filter(models.Contact.created_by == owner_id, models.Contact.id.in_(wanted))
        .all()
    )
    by_id = {contact.id: contact for contact in found}
    if not by_id:
        raise NoContactsFoundError("None of the provided contact IDs exist")

    added_count = 0
    results = []
    for contact_id in wanted:
        contact = by_id.get(contact_id)
        if contact is None:
            continue
        if _has_tag(contact, tag):
            status = STATUS_ALREADY_HAS_TAG
        else:
            contact.tags.append(tag)
            added_count += 1
            status = STATUS_ADDED
        results.append({"contact_id": contact.id, "name": contact.name, "status": status})

    if added_count:
        increment_usage(tag, by=added_count)
    _commit(db)
    db.refresh(tag)

    logger.info(f"Bulk linked tag {tag_id} to {added_count} of {len(results)} contacts for user {owner_id}")
    return {
        "tag": tag,
        "total_processed": len(results),
        "added_count": added_count,
        "results": results,
    }


def contacts_by_tag(db: Session, owner_id: int, tag_id: int) -> tuple[models.Tag, list[models.Contact]]:
    tag = get_owned_tag(db, owner_id, tag_id)
    contacts = (
        db.query(models.Contact)
        .filter(models.Contact.created_by == owner_id, models.Contact.tags.any(models.Tag.id == tag.id))
        .order_by(models.Contact.id)
        .all()
    )
    if not contacts:
        raise NoContactsWithTagError(tag.name)
    return tag, contacts


def contacts_not_in_tag(db: Session, owner_id: int, tag_id: int) -> tuple[models.Tag, list[models.Contact]]:
    tag = get_owned_tag(db, owner_id, tag_id)
    contacts = (
        db.query(models.Contact)
        .filter(models.Contact.created_by == owner_id, ~models.Contact.tags.any(models.Tag.id == tag.id))
        .order_by(models.Contact.id)
        .all()
    )
    return tag, contacts
