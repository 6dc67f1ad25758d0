"""
Contact form inbox: public submission, admin triage.
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.auth import require_admin
from storefront.database import get_db
from storefront.errors import NotFoundError, ValidationError
from storefront.logger import get_logger
from storefront.models import Contact, ContactStatus, ContactSubject
from storefront.schemas import ContactCreate, ContactOut, ContactStatusUpdate, dump

logger = get_logger("api.contacts")

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


def _get_or_404(db: Session, contact_id: int) -> Contact:
    contact = db.get(Contact, contact_id)
    if contact is None:
        raise NotFoundError("კონტაქტი ვერ მოიძებნა")
    return contact


@router.post("", status_code=201)
def create_contact(request: ContactCreate, db: Session = Depends(get_db)):
    contact = Contact(
        name=request.name,
        email=str(request.email).strip().lower(),
        phone=request.phone or None,
        subject=request.subject,
        message=request.message,
        status=ContactStatus.NEW,
    )
    db.add(contact)
    db.commit()
    logger.info(f"New contact message {contact.contact_number} ({contact.subject.value})")
    return {
        "success": True,
        "message": "შეტყობინება წარმატებით გაიგზავნა! ჩვენ მალე დაგიკავშირდებით.",
        "contact": {
            "id": contact.id,
            "name": contact.name,
            "email": contact.email,
            "subject": contact.subject.value,
            "createdAt": contact.created_at.isoformat() if contact.created_at else None,
        },
    }


@router.get("", dependencies=[Depends(require_admin)])
def list_contacts(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    query = db.query(Contact)
    if status and status != "all":
        try:
            query = query.filter(Contact.status == ContactStatus(status))
        except ValueError:
            raise ValidationError("არასწორი სტატუსი", field="status")
    total = query.count()
    contacts = (
        query.order_by(Contact.created_at.desc(), Contact.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "success": True,
        "contacts": [dump(ContactOut.model_validate(c)) for c in contacts],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit),
        },
    }


@router.get("/stats", dependencies=[Depends(require_admin)])
def contact_stats(db: Session = Depends(get_db)):
    by_status = dict(db.query(Contact.status, func.count(Contact.id)).group_by(Contact.status).all())
    by_subject = dict(db.query(Contact.subject, func.count(Contact.id)).group_by(Contact.subject).all())
    return {
        "success": True,
        "stats": {
            "total": sum(by_status.values()),
            "byStatus": {s.value: by_status.get(s, 0) for s in ContactStatus},
            "bySubject": {s.value: by_subject.get(s, 0) for s in ContactSubject},
        },
    }


@router.get("/{contact_id}", dependencies=[Depends(require_admin)])
def get_contact(contact_id: int, db: Session = Depends(get_db)):
    return {"success": True, "contact": dump(ContactOut.model_validate(_get_or_404(db, contact_id)))}


@router.put("/{contact_id}", dependencies=[Depends(require_admin)])
def update_contact_status(contact_id: int, request: ContactStatusUpdate, db: Session = Depends(get_db)):
    contact = _get_or_404(db, contact_id)
    contact.status = request.status
    db.commit()
    return {
        "success": True,
        "message": "კონტაქტის სტატუსი წარმატებით განახლდა",
        "contact": dump(ContactOut.model_validate(contact)),
    }


@router.delete("/{contact_id}", dependencies=[Depends(require_admin)])
def delete_contact(contact_id: int, db: Session = Depends(get_db)):
    contact = _get_or_404(db, contact_id)
    db.delete(contact)
    db.commit()
    logger.info(f"Deleted contact {contact_id}")
    return {"success": True, "message": "კონტაქტი წარმატებით წაიშალა"}
