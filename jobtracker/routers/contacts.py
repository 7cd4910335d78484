"""
Contacts router — networking log.

Endpoints:
- GET    /api/contacts                      — list (?type=recruiter, ?search=text)
- POST   /api/contacts
- GET    /api/contacts/{id}                 — with all interactions, newest first
- PUT    /api/contacts/{id}
- DELETE /api/contacts/{id}
- GET    /api/contacts/{id}/interactions
- POST   /api/contacts/{id}/interactions    — log a touchpoint
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from jobtracker.auth import get_current_user
from jobtracker.database import get_db
from jobtracker.errors import NotFound, ValidationError
from jobtracker.models import Contact, ContactInteraction, User, utcnow
from jobtracker.schemas import (
    ContactCreate, ContactDetail, ContactListItem, ContactOut, ContactUpdate,
    InteractionCreate, InteractionOut,
)

router = APIRouter()


def get_contact(db: Session, user: User, contact_id: int) -> Contact:
    contact = db.query(Contact).filter(Contact.id == contact_id, Contact.user_id == user.id).first()
    if not contact:
        raise NotFound("Contact not found")
    return contact


def _encode_tags(tags: Optional[list[str]]) -> Optional[str]:
    return json.dumps(tags) if tags else None


@router.get("/contacts", response_model=list[ContactListItem])
def list_contacts(
    type: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = (
        db.query(Contact)
        .options(selectinload(Contact.interactions))
        .filter(Contact.user_id == user.id)
    )
    if type and type != "all":
        query = query.filter(Contact.relationship_type == type)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Contact.name.ilike(pattern),
            Contact.company.ilike(pattern),
            Contact.email.ilike(pattern),
        ))

    items = []
    for contact in query.order_by(Contact.updated_at.desc(), Contact.id.desc()).all():
        item = ContactListItem.model_validate(contact)
        if contact.interactions:
            item.last_interaction = InteractionOut.model_validate(contact.interactions[0])
        items.append(item)
    return items


@router.post("/contacts", response_model=ContactOut, status_code=201)
def create_contact(data: ContactCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if not data.name.strip():
        raise ValidationError("Name is required")

    fields = data.model_dump(exclude={"tags", "relationship_type"})
    contact = Contact(
        user_id=user.id,
        relationship_type=data.relationship_type.value,
        tags=_encode_tags(data.tags),
        **fields,
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


@router.get("/contacts/{contact_id}", response_model=ContactDetail)
def get_one(contact_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_contact(db, user, contact_id)


@router.put("/contacts/{contact_id}", response_model=ContactOut)
def update_contact(
    contact_id: int,
    data: ContactUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    contact = get_contact(db, user, contact_id)
    changes = data.model_dump(exclude_unset=True)

    if "tags" in changes:
        contact.tags = _encode_tags(changes.pop("tags"))
    if "relationship_type" in changes:
        value = changes.pop("relationship_type")
        if value is not None:
            contact.relationship_type = value.value
    if "name" in changes and not (changes["name"] or "").strip():
        changes.pop("name")     # keep the existing name rather than blanking it
    for name, value in changes.items():
        setattr(contact, name, value)

    db.commit()
    db.refresh(contact)
    return contact


@router.delete("/contacts/{contact_id}", status_code=204)
def delete_contact(contact_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    contact = get_contact(db, user, contact_id)
    db.delete(contact)
    db.commit()


@router.get("/contacts/{contact_id}/interactions", response_model=list[InteractionOut])
def list_interactions(contact_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_contact(db, user, contact_id).interactions


@router.post("/contacts/{contact_id}/interactions", response_model=InteractionOut, status_code=201)
def add_interaction(
    contact_id: int,
    data: InteractionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    contact = get_contact(db, user, contact_id)
    interaction = ContactInteraction(
        contact_id=contact.id,
        type=data.type.value,
        date=data.date,
        notes=data.notes,
        next_action=data.next_action,
    )
    db.add(interaction)
    # Recently contacted people float to the top of the list
    contact.updated_at = utcnow()
    db.commit()
    db.refresh(interaction)
    return interaction
