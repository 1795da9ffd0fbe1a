"""
School service: school lookup and settings edits.

Schools are configuration; the device lifecycle only reads them (for
the auto-registration flag).  Every settings change is audit-logged.
"""

import logging

from loanerdesk.constants import DEFAULT_SCHOOLS
from loanerdesk.errors import SchoolNotFound
from loanerdesk.extensions import db
from loanerdesk.models.school import School
from loanerdesk.services import audit_service
from loanerdesk.timeutil import utcnow

logger = logging.getLogger(__name__)

# Public (camelCase) setting name -> model attribute.
_EDITABLE_FIELDS = {
    "name": "name",
    "allowNewDevices": "allow_new_devices",
    "logoUrl": "logo_url",
    "address": "address",
    "contact": "contact",
}


def get_schools() -> list[School]:
    """Return all schools ordered by name."""
    return School.query.order_by(School.name).all()


def get_school(school_id: str) -> School:
    """
    Return a school by id.

    Raises:
        SchoolNotFound: If no school has this id.
    """
    school = db.session.get(School, school_id)
    if school is None:
        raise SchoolNotFound(f"School '{school_id}' not found")
    return school


def update_school(
    school_id: str,
    changes: dict,
    user_id: int | None = None,
) -> School:
    """
    Apply a partial settings update.

    Args:
        school_id: The school to edit.
        changes:   Public setting names to new values; keys that are
                   absent are left untouched.
        user_id:   ID of the admin making the change.

    Raises:
        SchoolNotFound: If the school does not exist.
    """
    school = get_school(school_id)

    previous = {}
    updated = {}
    for public_name, attr in _EDITABLE_FIELDS.items():
        if public_name not in changes:
            continue
        old_value = getattr(school, attr)
        new_value = changes[public_name]
        if old_value == new_value:
            continue
        previous[public_name] = old_value
        updated[public_name] = new_value
        setattr(school, attr, new_value)

    if updated:
        school.updated_at = utcnow()
        audit_service.log_change(
            user_id=user_id,
            action_type="UPDATE",
            entity_type="schools",
            entity_id=school.id,
            previous_value=previous,
            new_value=updated,
        )
        db.session.commit()
        logger.info("Updated school %s: %s", school.id, sorted(updated))

    return school


def set_logo(school_id: str, logo_url: str | None, user_id: int | None = None) -> School:
    """Replace a school's logo URL (or clear it with None)."""
    return update_school(school_id, {"logoUrl": logo_url}, user_id=user_id)


def seed_default_schools() -> int:
    """
    Insert the district's default schools that are not present yet.

    Existing rows are left alone so local settings survive re-seeding.

    Returns:
        Number of schools created.
    """
    created = 0
    for school_id, name in DEFAULT_SCHOOLS:
        if db.session.get(School, school_id) is not None:
            continue
        db.session.add(School(id=school_id, name=name, allow_new_devices=False))
        created += 1

    db.session.commit()
    logger.info("Seeded %d default school(s)", created)
    return created
