from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import associations, models, schemas, tags
from app.auth import get_current_user
from app.db import get_db

router = APIRouter(prefix="/user", tags=["Tags"])


def _tag_info(tag: models.Tag, with_usage: bool = True) -> dict:
    info = {"id": tag.id, "name": tag.name, "color": tag.color}
    if with_usage:
        info["usage_count"] = tag.usage_count
    return info


@router.get("/tags")
def get_tags(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    found = tags.list_tags(db, current_user.id)
    return schemas.envelope([schemas.Tag.model_validate(t) for t in found], count=len(found))


@router.post("/tags", status_code=status.HTTP_201_CREATED)
def create_tag(
    body: schemas.TagCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    tag = tags.create_tag(db, current_user.id, body.name, body.color)
    return schemas.envelope(schemas.Tag.model_validate(tag), message="Tag created successfully")


@router.put("/tags/{tag_id}")
def update_tag(
    tag_id: schemas.IdPath,
    body: schemas.TagUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    tag = tags.update_tag(db, current_user.id, tag_id, name=body.name, color=body.color)
    return schemas.envelope(schemas.Tag.model_validate(tag), message="Tag updated successfully")


@router.delete("/tags/{tag_id}")
def delete_tag(
    tag_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    deleted, detached = tags.delete_tag(db, current_user.id, tag_id)
    return schemas.envelope(deleted, message="Tag deleted successfully", detached_contacts=detached)


@router.get("/tags/{tag_id}/contacts")
def get_contacts_by_tag(
    tag_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    tag, found = associations.contacts_by_tag(db, current_user.id, tag_id)
    return schemas.envelope(
        [schemas.Contact.model_validate(c) for c in found],
        message=f'Contacts with tag "{tag.name}"',
        count=len(found),
        tag=_tag_info(tag),
    )


@router.post("/tags/{tag_id}/contacts")
def add_contact_to_tag(
    tag_id: schemas.IdPath,
    body: schemas.TagLink,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    contact, tag = associations.link(db, current_user.id, tag_id, body.contact_id)
    return schemas.envelope(
        {"contact": schemas.Contact.model_validate(contact), "tag": schemas.Tag.model_validate(tag)},
        message=f'Tag "{tag.name}" added to contact successfully',
    )


@router.post("/tags/{tag_id}/contacts/bulk")
def add_contacts_to_tag(
    tag_id: schemas.IdPath,
    body: schemas.TagBulkLink,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    outcome = associations.bulk_link(db, current_user.id, tag_id, body.contact_ids)
    tag = outcome["tag"]
    outcome["tag"] = schemas.Tag.model_validate(tag)
    return schemas.envelope(outcome, message=f'Tag "{tag.name}" processing completed')


@router.delete("/tags/{tag_id}/contacts/{contact_id}")
def remove_contact_from_tag(
    tag_id: schemas.IdPath,
    contact_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    contact, tag = associations.unlink(db, current_user.id, tag_id, contact_id)
    return schemas.envelope(
        {"contact": schemas.Contact.model_validate(contact), "tag": schemas.Tag.model_validate(tag)},
        message=f'Tag "{tag.name}" removed from contact successfully',
    )


@router.get("/tags/{tag_id}/available-contacts")
def get_contacts_not_in_tag(
    tag_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    tag, found = associations.contacts_not_in_tag(db, current_user.id, tag_id)
    return schemas.envelope(
        [schemas.Contact.model_validate(c) for c in found],
        message=f'Contacts not in tag "{tag.name}"',
        count=len(found),
        tag=_tag_info(tag, with_usage=False),
    )
