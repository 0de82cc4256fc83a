from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app import contacts, models, schemas
from app.auth import get_current_user
from app.db import get_db

router = APIRouter(prefix="/user", tags=["Contacts"])


@router.get("/contacts")
def get_contacts(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    found = contacts.list_contacts(db, current_user.id)
    return schemas.envelope([schemas.Contact.model_validate(c) for c in found], count=len(found))


@router.post("/contacts", status_code=status.HTTP_201_CREATED)
def create_contact(
    contact: schemas.ContactCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    created = contacts.create_contact(db, current_user.id, contact)
    return schemas.envelope(schemas.Contact.model_validate(created), message="Contact created successfully")


@router.put("/contacts/{contact_id}")
def update_contact(
    contact_id: schemas.IdPath,
    contact: schemas.ContactUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    updated = contacts.update_contact(db, current_user.id, contact_id, contact.model_dump(exclude_unset=True))
    return schemas.envelope(schemas.Contact.model_validate(updated), message="Contact updated successfully")


@router.delete("/contacts/{contact_id}")
def delete_contact(
    contact_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    deleted = contacts.delete_contact(db, current_user.id, contact_id)
    return schemas.envelope(deleted, message="Contact deleted successfully")
