from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import contacts, models, schemas
from app.auth import get_current_user
from app.db import get_db

router = APIRouter(prefix="/user", tags=["Favorites"])


@router.get("/favorites")
def get_favorites(db: Session = Depends(get_db), current_user: models.User = Depends(get_current_user)):
    found = contacts.list_favorites(db, current_user.id)
    return schemas.envelope([schemas.Contact.model_validate(c) for c in found], count=len(found))


@router.put("/favorites/{contact_id}")
def add_favorite(
    contact_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    contact = contacts.set_favorite(db, current_user.id, contact_id, True)
    return schemas.envelope(schemas.Contact.model_validate(contact), message="Contact added to favorites successfully")


@router.delete("/favorites/{contact_id}")
def remove_favorite(
    contact_id: schemas.IdPath,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
):
    contact = contacts.set_favorite(db, current_user.id, contact_id, False)
    return schemas.envelope(
        schemas.Contact.model_validate(contact), message="Contact removed from favorites successfully"
    )
