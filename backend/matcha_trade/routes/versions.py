from __future__ import annotations
from flask import Blueprint, request
from matcha_trade.constants.permissions import TIER_ADMIN
from matcha_trade.decorators.auth import require_permissions, require_roles
from matcha_trade.models.version import DataVersion
from matcha_trade.services import versioning
from matcha_trade.services.audit import add_audit
from matcha_trade.services.policy import current_user
from matcha_trade.utils.dates import iso
from matcha_trade.utils.validation import require_fields, coerce_int
from matcha_trade import get_db

versions_bp = Blueprint('versions', __name__)


def _version_json(v: DataVersion):
    return {
        'id': v.id,
        'entity_type': v.entity_type,
        'entity_id': v.entity_id,
        'version_number': v.version_number,
        'data': v.data,
        'change_description': v.change_description,
        'created_by': v.created_by,
        'created_by_name': v.created_by_name,
        'created_at': iso(v.created_at),
    }


@versions_bp.get('/<entity_type>/<int:entity_id>')
@require_permissions('audit:view')
def list_versions(entity_type: str, entity_id: int):
    rows = versioning.list_versions(entity_type, entity_id)
    return {'data': [_version_json(v) for v in rows]}


@versions_bp.post('/<entity_type>/<int:entity_id>/rollback')
@require_roles(*TIER_ADMIN)
def rollback(entity_type: str, entity_id: int):
    session = get_db()
    data = request.json or {}
    require_fields(data, 'version_number')
    version_number = coerce_int(data['version_number'], 'version_number', minimum=1)
    entity, before, new_version = versioning.rollback(entity_type, entity_id, version_number, current_user())
    add_audit(
        'ROLLBACK', entity_type, entity_id,
        previous_data=before,
        new_data=new_version.data,
        meta={'restored_version': version_number, 'new_version': new_version.version_number},
    )
    session.commit()
    return {
        'entity_type': entity_type,
        'entity_id': entity.id,
        'restored_version': version_number,
        'version': _version_json(new_version),
    }
