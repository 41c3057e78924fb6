from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from app.models.property import Property


def get_current_user_id(x_user_id: int = Header(...)) -> int:
    """Authentication lives upstream; the gateway forwards the caller's id."""
    return x_user_id


def get_owned_property_or_404(property_id: int, user_id: int, db: Session) -> Property:
    prop = (
        db.query(Property)
        .filter(Property.id == property_id, Property.user_id == user_id, Property.is_active)
        .first()
    )
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found.")
    return prop
