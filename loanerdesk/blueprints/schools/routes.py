"""
Routes for the schools blueprint.

Any signed-in user may read school settings (kiosks need the
auto-registration flag); only admins may change them.
"""

from flask import jsonify
from flask_login import current_user, login_required

from loanerdesk.blueprints.schools import bp
from loanerdesk.decorators import admin_required
from loanerdesk.errors import ValidationError
from loanerdesk.schemas import LogoUpdate, SchoolUpdate, fields_set, load_request
from loanerdesk.services import school_service


@bp.route("")
@login_required
def list_schools():
    """List all schools ordered by name."""
    return jsonify([school.to_dict() for school in school_service.get_schools()])


@bp.route("/<school_id>")
@login_required
def get_school(school_id):
    """Return one school's settings."""
    return jsonify(school_service.get_school(school_id).to_dict())


@bp.route("/<school_id>", methods=["PATCH"])
@login_required
@admin_required
def update_school(school_id):
    """
    Partially update a school's settings.

    Body: any of ``name``, ``allowNewDevices``, ``logoUrl``,
    ``address``, ``contact``.
    """
    changes = fields_set(load_request(SchoolUpdate))
    for required in ("name", "allowNewDevices"):
        if required in changes and changes[required] is None:
            raise ValidationError(f"{required} cannot be null")
    school = school_service.update_school(school_id, changes, user_id=current_user.id)
    return jsonify(school.to_dict())


@bp.route("/<school_id>/logo", methods=["POST"])
@login_required
@admin_required
def set_logo(school_id):
    """Replace (or clear, with ``null``) the school's logo URL."""
    body = load_request(LogoUpdate)
    school = school_service.set_logo(school_id, body.logo_url, user_id=current_user.id)
    return jsonify(school.to_dict())
